"""Goal model and the goal-id shape classifier."""

from __future__ import annotations

import math
from typing import TypeAlias

from pydantic import BaseModel, ConfigDict

# A goal id is either a positive integer or an opaque UUID-shaped string.
GoalId: TypeAlias = int | str

_OPAQUE_MIN_LENGTH = 10


def is_opaque_goal_id(value: object) -> bool:
    """UUID-shaped heuristic: a string longer than 10 chars containing a hyphen."""
    return isinstance(value, str) and len(value) > _OPAQUE_MIN_LENGTH and "-" in value


def classify_goal_id(value: object) -> GoalId | None:
    """Classify a raw goal id by shape.

    UUID-shaped strings are returned unchanged. Everything else is coerced to
    a number; ``None`` means "not a number" (unresolved). Only positive
    integers count as numeric ids.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str) and value == "":
        return None
    if is_opaque_goal_id(value):
        return value  # type: ignore[return-value]
    return _coerce_numeric(value)


def _coerce_numeric(value: object) -> int | None:
    number: int | float
    if isinstance(value, int):
        number = value
    elif isinstance(value, float):
        number = value
    elif isinstance(value, str):
        text = value.strip()
        try:
            number = int(text)
        except ValueError:
            try:
                number = float(text)
            except ValueError:
                return None
    else:
        return None

    if isinstance(number, float):
        if not math.isfinite(number) or not number.is_integer():
            return None
        number = int(number)
    return number if number > 0 else None


def goal_id_to_text(goal_id: GoalId) -> str:
    """Canonical storage form; ``classify_goal_id`` inverts it."""
    return str(goal_id)


class Goal(BaseModel):
    """A user-defined optimization objective. Read-only for the pipeline."""

    model_config = ConfigDict(frozen=True)

    id: GoalId
    user_id: str = ""
    title: str = ""
    target_metric: str = ""
    ad_platform: str = ""
    current_cycle: int = 1


class GoalProfile(BaseModel):
    """Personalization data injected into the prompt. Empty strings mean absent."""

    model_config = ConfigDict(frozen=True)

    title: str = ""
    target_metric: str = ""
    ad_platform: str = ""
