"""Diagnostic context endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from growthlab.api.deps import CurrentUserDep, DbDep
from growthlab.api.schemas import (
    ContextResponse,
    CreateContextRequest,
    LatestContextResponse,
    SetContextGoalRequest,
)
from growthlab.errors import NotFoundError, PreconditionError
from growthlab.models.context import (
    DiagnosticContext,
    has_sparse_information,
    strategic_overview,
)
from growthlab.models.goal import GoalId, classify_goal_id

router = APIRouter(prefix="/contexts", tags=["contexts"])


def _context_to_response(ctx: DiagnosticContext) -> ContextResponse:
    return ContextResponse(
        id=ctx.id,
        raw_input=ctx.raw_input,
        structured_analysis=ctx.analysis,
        goal_id=ctx.goal_id,
        created_at=str(ctx.created_at),
    )


def _optional_goal_id(raw: int | str | None) -> GoalId | None:
    if raw is None or raw == "":
        return None
    goal_id = classify_goal_id(raw)
    if goal_id is None:
        raise PreconditionError(f"Invalid goal id: {raw!r}")
    return goal_id


@router.post("", response_model=ContextResponse, status_code=201)
def create_context(
    body: CreateContextRequest,
    db: DbDep,
    user: CurrentUserDep,
) -> ContextResponse:
    ctx = db.create_context(
        DiagnosticContext(
            user_id=user.id,
            raw_input=body.raw_input,
            structured_analysis=body.structured_analysis,
            goal_id=_optional_goal_id(body.goal_id),
        )
    )
    return _context_to_response(ctx)


@router.get("/latest", response_model=LatestContextResponse)
def get_latest_context(
    db: DbDep,
    user: CurrentUserDep,
) -> LatestContextResponse:
    ctx = db.get_latest_context(user.id)
    if ctx is None:
        return LatestContextResponse(context=None)

    current_cycle = 1
    if ctx.goal_id is not None:
        goal = db.get_goal(ctx.goal_id)
        if goal is not None:
            current_cycle = goal.current_cycle

    overview = strategic_overview(ctx.analysis)
    return LatestContextResponse(
        context=_context_to_response(ctx),
        current_cycle=current_cycle,
        strategic_overview=overview,
        sparse_information=has_sparse_information(overview),
    )


@router.put("/{context_id}/goal", response_model=ContextResponse)
def set_context_goal(
    context_id: int,
    body: SetContextGoalRequest,
    db: DbDep,
    user: CurrentUserDep,
) -> ContextResponse:
    ctx = db.get_context(context_id)
    if ctx is None or ctx.user_id != user.id:
        raise NotFoundError(f"Context {context_id} not found")
    db.set_context_goal(context_id, _optional_goal_id(body.goal_id))
    updated = db.get_context(context_id)
    assert updated is not None
    return _context_to_response(updated)
