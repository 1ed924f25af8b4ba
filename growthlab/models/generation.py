"""Transient models that only live inside one generation request."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class TrafficContext(BaseModel):
    """Quantitative snapshot from the latest diagnostic. Every field is optional."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    platform: Any = None
    cpa_current: Any = None
    cpa_target: Any = None
    ctr_current: Any = None
    daily_test_budget: Any = None

    @classmethod
    def from_raw(cls, raw: object) -> TrafficContext | None:
        """Accept only JSON objects; anything else means "no traffic context"."""
        if not isinstance(raw, dict):
            return None
        return cls.model_validate(raw)


class ExperimentCandidate(BaseModel):
    """One experiment suggestion recovered from model output, not yet mapped."""

    model_config = ConfigDict(frozen=True)

    title: str = ""
    hypothesis: str = ""
    metric: str = ""
    target: int | float | str | None = None
    cutoff_line: str | None = None
    # Kept raw; the mapper decides whether it is an acceptable integer.
    ice_score: Any = None


class GenerationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    strategic_vision: str = ""
    candidates: list[ExperimentCandidate] = Field(default_factory=list)
