"""Shared test fixtures."""

from __future__ import annotations

import json

import pytest
from pydantic_ai import models

from growthlab.config import Settings
from growthlab.db import Database
from growthlab.models.context import DiagnosticContext
from growthlab.models.goal import Goal

# Safety net: block all real LLM API calls during tests.
# TestModel and FunctionModel are exempt from this check.
models.ALLOW_MODEL_REQUESTS = False

USER_ID = "user-1"
UUID_GOAL_ID = "3f2b8c1e-9d4a-4e7b-a1c2-5f6e7d8c9b0a"

SAMPLE_ANALYSIS = {
    "strategic_overview": "Conta com CTR baixo e CPA acima da meta.",
    "funnel_stage": "TOFU",
    "findings": ["Criativos saturados", "Público amplo demais"],
}

FENCED_OUTPUT = """```json
{"strategic_vision": "Focar em criativos de topo de funil.",
 "experiments": [{"title": "T1", "hypothesis": "H1", "metric": "CTR",
                  "target": 2.0, "cutoff_line": "pause if CPA>50", "ice_score": 8}]}
```"""


class FakeGenerator:
    """TextGenerator double returning canned text and recording each call."""

    def __init__(self, text: str = FENCED_OUTPUT, available: bool = True) -> None:
        self.text = text
        self.available = available
        self.calls: list[tuple[str, str]] = []

    @property
    def is_available(self) -> bool:
        return self.available

    async def generate_json_text(self, system: str, prompt: str) -> str:
        self.calls.append((system, prompt))
        return self.text


def _experiments_json(count: int) -> str:
    return json.dumps(
        {
            "strategic_vision": "Visão estratégica",
            "experiments": [
                {
                    "title": f"T{i}",
                    "hypothesis": f"H{i}",
                    "metric": "CPA",
                    "target": 25,
                    "cutoff_line": f"Pausar se CPA > R$ {40 + i}",
                    "ice_score": 7,
                }
                for i in range(1, count + 1)
            ],
        }
    )


@pytest.fixture()
def user_id() -> str:
    return USER_ID


@pytest.fixture()
def sample_analysis() -> dict:
    return dict(SAMPLE_ANALYSIS)


@pytest.fixture()
def experiments_json():
    """Factory: model output holding ``count`` well-formed experiments."""
    return _experiments_json


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return Settings(
        anthropic_api_key="test-key",
        data_dir=tmp_path / "data",
        api_tokens={"test-token": USER_ID, "other-token": "user-2"},
        log_level="DEBUG",
        log_format="console",
        _env_file=None,
    )


@pytest.fixture()
def db(tmp_path) -> Database:
    db = Database(tmp_path / "test.db")
    db.init_schema()
    yield db
    db.close()


@pytest.fixture()
def numeric_goal(db: Database) -> Goal:
    return db.create_goal(
        Goal(
            id=7,
            user_id=USER_ID,
            title="Reduzir CPA",
            target_metric="CPA",
            ad_platform="Meta Ads",
            current_cycle=2,
        )
    )


@pytest.fixture()
def uuid_goal(db: Database) -> Goal:
    return db.create_goal(
        Goal(id=UUID_GOAL_ID, user_id=USER_ID, title="Aumentar ROAS", target_metric="ROAS")
    )


@pytest.fixture()
def sample_context(db: Database, uuid_goal: Goal) -> DiagnosticContext:
    return db.create_context(
        DiagnosticContext(
            user_id=USER_ID,
            raw_input="Minhas campanhas no Meta estão caras.",
            structured_analysis=SAMPLE_ANALYSIS,
            goal_id=uuid_goal.id,
        )
    )


@pytest.fixture()
def fake_llm() -> FakeGenerator:
    return FakeGenerator()
