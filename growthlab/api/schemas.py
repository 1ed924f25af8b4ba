"""API request/response schemas (separate from domain models)."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# --- Responses ---


class ExperimentResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int | None
    user_id: str
    hypothesis: str | None
    variable: str | None
    expected_result: int | float | str | None
    target_value: float | None
    cutoff_line: str | None
    suggested_cutoff_line: str
    ice_score: int | None
    context_id: int | None
    goal_id: int | str
    status: str
    allowed_actions: list[str]
    created_at: str
    updated_at: str


class ExperimentListResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    experiments: list[ExperimentResponse]
    total: int


class GenerateExperimentsResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True
    experiments: list[ExperimentResponse]
    strategic_vision: str = ""


class GoalResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int | str
    title: str
    target_metric: str
    ad_platform: str
    current_cycle: int


class ContextResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int | None
    raw_input: str
    structured_analysis: Any
    goal_id: int | str | None
    created_at: str


class LatestContextResponse(BaseModel):
    """The fetch flow behind the generation screen."""

    model_config = ConfigDict(frozen=True)

    context: ContextResponse | None
    current_cycle: int = 1
    strategic_overview: str = ""
    sparse_information: bool = False


class HealthResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: str
    version: str
    db_connected: bool
    checks: dict[str, bool] = Field(default_factory=dict)


class ConfigCheckResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    configured: dict[str, bool]


# --- Requests ---


class GenerateExperimentsRequest(BaseModel):
    """Wire names follow the existing web client (camelCase mixed with snake_case)."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    structured_analysis: Any = Field(default=None, alias="structuredAnalysis")
    target_metric: str | None = Field(default=None, alias="targetMetric")
    context_id: int | None = Field(default=None, alias="contextId")
    # Number or UUID string; classified by shape in the goal resolver.
    goal_id: Any = None
    traffic_context: Any = None


class ExperimentEditRequest(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    hypothesis: str | None = None
    variable: str | None = None
    expected_result: int | float | str | None = None
    cutoff_line: str | None = None


class CreateGoalRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int | str | None = None
    title: str = ""
    target_metric: str = ""
    ad_platform: str = ""
    current_cycle: int = Field(default=1, ge=1)


class CreateContextRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    raw_input: str = ""
    structured_analysis: Any = None
    goal_id: int | str | None = None


class SetContextGoalRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    goal_id: int | str | None
