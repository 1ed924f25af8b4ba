"""Experiment lifecycle: backlog -> em_execucao -> archived.

Transitions only ever touch ``status``; the goal and context references are
left as they are and no record is ever deleted. Updates are last-writer-wins:
the current status is checked, then written unconditionally.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

import structlog

from growthlab.errors import InvalidTransitionError, NotFoundError
from growthlab.metrics import experiments_total
from growthlab.models.experiment import ExperimentStatus

if TYPE_CHECKING:
    from growthlab.models.experiment import Experiment
    from growthlab.protocols import ExperimentStore

logger = structlog.get_logger()


class LifecycleAction(StrEnum):
    ACTIVATE = "activate"
    QUEUE = "queue"
    ARCHIVE = "archive"


# action -> (allowed source states, target state)
TRANSITIONS: dict[LifecycleAction, tuple[frozenset[ExperimentStatus], ExperimentStatus]] = {
    LifecycleAction.ACTIVATE: (frozenset({ExperimentStatus.BACKLOG}), ExperimentStatus.ACTIVE),
    LifecycleAction.QUEUE: (frozenset({ExperimentStatus.ACTIVE}), ExperimentStatus.BACKLOG),
    LifecycleAction.ARCHIVE: (
        frozenset({ExperimentStatus.BACKLOG, ExperimentStatus.ACTIVE}),
        ExperimentStatus.ARCHIVED,
    ),
}


def next_status(current: ExperimentStatus, action: LifecycleAction) -> ExperimentStatus:
    """Pure transition function.

    Raises:
        InvalidTransitionError: the action is not defined from ``current``.
    """
    sources, target = TRANSITIONS[action]
    if current not in sources:
        raise InvalidTransitionError(
            f"Cannot {action.value} an experiment with status '{current.value}'"
        )
    return target


def allowed_actions(current: ExperimentStatus) -> list[LifecycleAction]:
    return [action for action, (sources, _) in TRANSITIONS.items() if current in sources]


def transition_experiment(
    store: ExperimentStore,
    experiment_id: int,
    action: LifecycleAction,
    user_id: str | None = None,
) -> Experiment:
    """Apply ``action`` to one stored experiment and return the updated record."""
    experiment = store.get_experiment(experiment_id, user_id=user_id)
    if experiment is None:
        raise NotFoundError(f"Experiment {experiment_id} not found")

    target = next_status(experiment.status, action)
    store.update_experiment_status(experiment_id, target)
    experiments_total.labels(status=target.value).inc()
    logger.info(
        "Experiment transitioned",
        experiment_id=experiment_id,
        action=action.value,
        from_status=experiment.status.value,
        to_status=target.value,
    )

    updated = store.get_experiment(experiment_id, user_id=user_id)
    if updated is None:
        raise NotFoundError(f"Experiment {experiment_id} not found")
    return updated
