"""Goal endpoints."""

from __future__ import annotations

import uuid

from fastapi import APIRouter

from growthlab.api.deps import CurrentUserDep, DbDep
from growthlab.api.schemas import CreateGoalRequest, GoalResponse
from growthlab.errors import NotFoundError, PreconditionError
from growthlab.models.goal import Goal, classify_goal_id

router = APIRouter(prefix="/goals", tags=["goals"])


def _goal_to_response(goal: Goal) -> GoalResponse:
    return GoalResponse(
        id=goal.id,
        title=goal.title,
        target_metric=goal.target_metric,
        ad_platform=goal.ad_platform,
        current_cycle=goal.current_cycle,
    )


@router.post("", response_model=GoalResponse, status_code=201)
def create_goal(
    body: CreateGoalRequest,
    db: DbDep,
    user: CurrentUserDep,
) -> GoalResponse:
    goal_id = classify_goal_id(body.id) if body.id is not None else str(uuid.uuid4())
    if goal_id is None:
        raise PreconditionError(f"Invalid goal id: {body.id!r}")
    goal = db.create_goal(
        Goal(
            id=goal_id,
            user_id=user.id,
            title=body.title,
            target_metric=body.target_metric,
            ad_platform=body.ad_platform,
            current_cycle=body.current_cycle,
        )
    )
    return _goal_to_response(goal)


@router.get("/{goal_id}", response_model=GoalResponse)
def get_goal(
    goal_id: str,
    db: DbDep,
    _user: CurrentUserDep,
) -> GoalResponse:
    resolved = classify_goal_id(goal_id)
    goal = db.get_goal(resolved) if resolved is not None else None
    if goal is None:
        raise NotFoundError(f"Goal {goal_id} not found")
    return _goal_to_response(goal)
