"""Port interfaces (Protocols) for the pipeline's external collaborators."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterable

    from starlette.requests import Request

    from growthlab.models.context import DiagnosticContext
    from growthlab.models.experiment import Experiment, ExperimentStatus, NewExperiment
    from growthlab.models.goal import Goal, GoalId
    from growthlab.models.user import User


@runtime_checkable
class AuthProvider(Protocol):
    """Resolves the caller of a request; ``None`` means unauthenticated."""

    def get_current_user(self, request: Request) -> User | None: ...


@runtime_checkable
class ContextStore(Protocol):
    def get_context(self, context_id: int) -> DiagnosticContext | None: ...
    def get_latest_context(self, user_id: str) -> DiagnosticContext | None: ...


@runtime_checkable
class GoalStore(Protocol):
    def get_goal(self, goal_id: GoalId) -> Goal | None: ...


@runtime_checkable
class ExperimentStore(Protocol):
    """Atomic batch insert plus single-row updates."""

    def insert_experiments(self, experiments: list[NewExperiment]) -> list[Experiment]: ...
    def get_experiment(
        self, experiment_id: int, user_id: str | None = None
    ) -> Experiment | None: ...
    def list_experiments(
        self,
        status: ExperimentStatus | None = None,
        user_id: str | None = None,
        exclude_ids: Iterable[int] = (),
    ) -> list[Experiment]: ...
    def update_experiment_status(self, experiment_id: int, status: ExperimentStatus) -> None: ...
    def update_experiment_fields(self, experiment_id: int, **fields: object) -> None: ...


@runtime_checkable
class TextGenerator(Protocol):
    """Single-shot generative model call returning raw, untrusted text."""

    @property
    def is_available(self) -> bool: ...

    async def generate_json_text(self, system: str, prompt: str) -> str: ...
