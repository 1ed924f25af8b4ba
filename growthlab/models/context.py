"""Diagnostic context: a prior free-form analysis and its structured reading."""

from __future__ import annotations

import json
import re
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from growthlab.models.goal import GoalId

_SPARSE_INFO_PATTERNS = (
    re.compile(r"pouca informação", re.IGNORECASE),
    re.compile(r"faltam dados", re.IGNORECASE),
)


def parse_structured_analysis(value: Any) -> Any:
    """Decode an analysis stored as a JSON-encoded string.

    Older diagnostics were saved as plain text; those come back unchanged.
    """
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        return value


def strategic_overview(analysis: Any) -> str:
    """Return the analysis' strategic overview text, or an empty string."""
    if not isinstance(analysis, dict):
        return ""
    for key in ("strategic_overview", "strategic_analysis"):
        value = analysis.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ""


def has_sparse_information(overview: str) -> bool:
    """True when the overview itself admits it was built from thin data."""
    return bool(overview) and any(p.search(overview) for p in _SPARSE_INFO_PATTERNS)


class DiagnosticContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int | None = None
    user_id: str
    raw_input: str = ""
    structured_analysis: Any = None
    goal_id: GoalId | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def analysis(self) -> Any:
        return parse_structured_analysis(self.structured_analysis)
