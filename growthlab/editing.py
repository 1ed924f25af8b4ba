"""Direct field edits on a stored experiment."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from growthlab.errors import NotFoundError
from growthlab.models.experiment import numeric_target

if TYPE_CHECKING:
    from growthlab.models.experiment import Experiment
    from growthlab.protocols import ExperimentStore

logger = structlog.get_logger()


def _blank_to_none(value: object) -> object:
    if not isinstance(value, str):
        return value
    value = value.strip()
    return value or None


def edit_experiment(
    store: ExperimentStore,
    experiment_id: int,
    changes: dict[str, object],
    user_id: str | None = None,
) -> Experiment:
    """Apply operator edits. Blank text clears a field.

    ``expected_result`` is mirrored into ``target_value``, which holds the
    number when the text parses as one.
    """
    experiment = store.get_experiment(experiment_id, user_id=user_id)
    if experiment is None:
        raise NotFoundError(f"Experiment {experiment_id} not found")

    fields: dict[str, object] = {name: _blank_to_none(value) for name, value in changes.items()}
    if "expected_result" in fields:
        fields["target_value"] = numeric_target(fields["expected_result"])

    if fields:
        store.update_experiment_fields(experiment_id, **fields)
        logger.info("Experiment edited", experiment_id=experiment_id, fields=sorted(fields))

    updated = store.get_experiment(experiment_id, user_id=user_id)
    if updated is None:
        raise NotFoundError(f"Experiment {experiment_id} not found")
    return updated
