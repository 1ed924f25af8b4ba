"""Experiment generation, listing, editing and lifecycle endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Query

from growthlab.api.deps import CurrentUserDep, DbDep, GeneratorDep
from growthlab.api.schemas import (
    ExperimentEditRequest,
    ExperimentListResponse,
    ExperimentResponse,
    GenerateExperimentsRequest,
    GenerateExperimentsResponse,
)
from growthlab.editing import edit_experiment
from growthlab.errors import NotFoundError
from growthlab.lifecycle import LifecycleAction, allowed_actions, transition_experiment
from growthlab.models.experiment import Experiment, ExperimentStatus
from growthlab.pipeline import GenerationRequest

router = APIRouter(prefix="/experiments", tags=["experiments"])


def _experiment_to_response(exp: Experiment) -> ExperimentResponse:
    return ExperimentResponse(
        id=exp.id,
        user_id=exp.user_id,
        hypothesis=exp.hypothesis,
        variable=exp.variable,
        expected_result=exp.expected_result,
        target_value=exp.target_value,
        cutoff_line=exp.cutoff_line,
        suggested_cutoff_line=exp.suggested_cutoff_line,
        ice_score=exp.ice_score,
        context_id=exp.context_id,
        goal_id=exp.goal_id,
        status=exp.status.value,
        allowed_actions=[a.value for a in allowed_actions(exp.status)],
        created_at=str(exp.created_at),
        updated_at=str(exp.updated_at),
    )


@router.post("/generate", response_model=GenerateExperimentsResponse)
async def generate_experiments(
    body: GenerateExperimentsRequest,
    user: CurrentUserDep,
    generator: GeneratorDep,
) -> GenerateExperimentsResponse:
    outcome = await generator.generate(
        GenerationRequest(
            structured_analysis=body.structured_analysis,
            target_metric=body.target_metric,
            context_id=body.context_id,
            goal_id=body.goal_id,
            traffic_context=body.traffic_context,
        ),
        user,
    )
    return GenerateExperimentsResponse(
        success=True,
        experiments=[_experiment_to_response(e) for e in outcome.experiments],
        strategic_vision=outcome.strategic_vision,
    )


@router.get("", response_model=ExperimentListResponse)
def list_experiments(
    db: DbDep,
    user: CurrentUserDep,
    status: ExperimentStatus | None = None,
    exclude: Annotated[list[int] | None, Query()] = None,
) -> ExperimentListResponse:
    experiments = db.list_experiments(status, user_id=user.id, exclude_ids=exclude or ())
    return ExperimentListResponse(
        experiments=[_experiment_to_response(e) for e in experiments],
        total=len(experiments),
    )


@router.get("/{experiment_id}", response_model=ExperimentResponse)
def get_experiment(
    experiment_id: int,
    db: DbDep,
    user: CurrentUserDep,
) -> ExperimentResponse:
    exp = db.get_experiment(experiment_id, user_id=user.id)
    if exp is None:
        raise NotFoundError(f"Experiment {experiment_id} not found")
    return _experiment_to_response(exp)


@router.patch("/{experiment_id}", response_model=ExperimentResponse)
def update_experiment(
    experiment_id: int,
    body: ExperimentEditRequest,
    db: DbDep,
    user: CurrentUserDep,
) -> ExperimentResponse:
    updated = edit_experiment(
        db, experiment_id, body.model_dump(exclude_unset=True), user_id=user.id
    )
    return _experiment_to_response(updated)


@router.post("/{experiment_id}/{action}", response_model=ExperimentResponse)
def apply_lifecycle_action(
    experiment_id: int,
    action: LifecycleAction,
    db: DbDep,
    user: CurrentUserDep,
) -> ExperimentResponse:
    updated = transition_experiment(db, experiment_id, action, user_id=user.id)
    return _experiment_to_response(updated)
