"""Map recovered candidates into rows for the experiment store."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Any

import structlog

from growthlab.errors import PreconditionError
from growthlab.models.experiment import ExperimentStatus, NewExperiment, numeric_target

if TYPE_CHECKING:
    from growthlab.models.generation import ExperimentCandidate
    from growthlab.models.goal import GoalId

logger = structlog.get_logger()


def ensure_goal_id(goal_id: GoalId | None) -> GoalId:
    """Last guard before a store write: no null, empty or NaN goal ids."""
    if goal_id is None or isinstance(goal_id, bool):
        raise PreconditionError("goal_id missing or invalid while saving experiments")
    if isinstance(goal_id, str) and not goal_id.strip():
        raise PreconditionError("goal_id missing or invalid while saving experiments")
    if isinstance(goal_id, float) and math.isnan(goal_id):
        raise PreconditionError("goal_id missing or invalid while saving experiments")
    return goal_id


def checked_ice_score(value: Any) -> int | None:
    """Integers pass; anything else is rejected (None), never coerced."""
    if value is None:
        return None
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    logger.warning("Rejected non-integer ice_score", ice_score=repr(value))
    return None


def map_candidate(
    candidate: ExperimentCandidate,
    *,
    user_id: str,
    goal_id: GoalId,
    context_id: int | None = None,
) -> NewExperiment:
    return NewExperiment(
        user_id=user_id,
        hypothesis=candidate.hypothesis,
        variable=candidate.metric,
        expected_result=candidate.target,
        target_value=numeric_target(candidate.target),
        cutoff_line=candidate.cutoff_line,
        ice_score=checked_ice_score(candidate.ice_score),
        context_id=context_id,
        goal_id=goal_id,
        status=ExperimentStatus.BACKLOG,
    )


def map_candidates(
    candidates: list[ExperimentCandidate],
    *,
    user_id: str,
    goal_id: GoalId | None,
    context_id: int | None = None,
) -> list[NewExperiment]:
    """Map a whole batch. Fails before producing anything if the goal id is unusable."""
    resolved = ensure_goal_id(goal_id)
    return [
        map_candidate(c, user_id=user_id, goal_id=resolved, context_id=context_id)
        for c in candidates
    ]
