"""Experiment record: the persisted, lifecycle-tracked growth experiment."""

from __future__ import annotations

import math
import re
from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from growthlab.models.goal import GoalId

_FIRST_NUMBER = re.compile(r"([+-]?\d+(?:[.,]\d+)?)\s*%?")


class ExperimentStatus(StrEnum):
    BACKLOG = "backlog"
    ACTIVE = "em_execucao"
    ARCHIVED = "archived"


ExpectedResult = int | float | str


class NewExperiment(BaseModel):
    """A mapped row waiting for the batch insert."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    hypothesis: str
    variable: str
    expected_result: ExpectedResult | None = None
    target_value: float | None = None
    cutoff_line: str | None = None
    ice_score: int | None = None
    context_id: int | None = None
    goal_id: GoalId
    status: ExperimentStatus = ExperimentStatus.BACKLOG


class Experiment(BaseModel):
    """Represents one stored growth experiment."""

    model_config = ConfigDict(frozen=True)

    id: int | None = None
    user_id: str
    hypothesis: str | None = None
    variable: str | None = None
    expected_result: ExpectedResult | None = None
    target_value: float | None = None
    cutoff_line: str | None = None
    ice_score: int | None = None
    context_id: int | None = None
    goal_id: GoalId
    status: ExperimentStatus = ExperimentStatus.BACKLOG

    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def suggested_cutoff_line(self) -> str:
        if self.cutoff_line:
            return ""
        return suggest_cutoff_line(self.expected_result)


def suggest_cutoff_line(expected: ExpectedResult | None) -> str:
    """Half of the first number in the expected result, keeping a ``%`` suffix.

    "+20%" -> "10%", "3,5" -> "1.75". Returns "" when no number is present.
    """
    if expected is None or isinstance(expected, bool):
        return ""
    text = str(expected).strip()
    if not text:
        return ""
    match = _FIRST_NUMBER.search(text)
    if match is None:
        return ""
    half = float(match.group(1).replace(",", ".")) * 0.5
    rendered = str(int(half)) if half.is_integer() else str(half)
    return f"{rendered}%" if "%" in text else rendered


def numeric_target(value: object) -> float | None:
    """Typed mirror of an expected result; None when it is not a plain number."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip().replace(",", "."))
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None
