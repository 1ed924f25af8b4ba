"""Goal resolution and goal-based personalization for a generation request."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog

from growthlab.errors import PreconditionError
from growthlab.models.goal import GoalId, GoalProfile, classify_goal_id

if TYPE_CHECKING:
    from growthlab.protocols import ContextStore, GoalStore

logger = structlog.get_logger()

GOAL_REQUIRED_MESSAGE = (
    "A goal (goal_id) is required. Select a global goal in the diagnostic "
    "before generating experiments."
)


async def resolve_goal_id(
    explicit_goal_id: object,
    context_id: int | None,
    contexts: ContextStore,
) -> GoalId:
    """Return the goal the experiment batch belongs to.

    The explicit id wins. When it is missing or not a number, the goal stored
    on the diagnostic context is used instead. There is no default goal.

    Raises:
        PreconditionError: neither source yields a usable goal id.
    """
    goal_id = classify_goal_id(explicit_goal_id)

    if goal_id is None and context_id is not None:
        context = await asyncio.to_thread(contexts.get_context, context_id)
        if context is not None:
            goal_id = classify_goal_id(context.goal_id)
            if goal_id is not None:
                logger.debug("Goal inferred from context", context_id=context_id, goal_id=goal_id)

    if goal_id is None:
        raise PreconditionError(GOAL_REQUIRED_MESSAGE)
    return goal_id


async def load_goal_profile(
    goal_id: GoalId,
    goals: GoalStore,
    fallback_metric: str | None = None,
) -> GoalProfile:
    """Best-effort goal metadata for the prompt; never blocks generation.

    The goal's own target metric takes precedence over the caller's.
    """
    metric = fallback_metric or ""
    try:
        goal = await asyncio.to_thread(goals.get_goal, goal_id)
    except Exception as exc:
        logger.warning("Goal lookup failed, generating without it", goal_id=goal_id, error=str(exc))
        return GoalProfile(target_metric=metric)

    if goal is None:
        logger.warning("Goal not found, generating without it", goal_id=goal_id)
        return GoalProfile(target_metric=metric)

    return GoalProfile(
        title=goal.title or "",
        target_metric=goal.target_metric or metric,
        ad_platform=goal.ad_platform or "",
    )
