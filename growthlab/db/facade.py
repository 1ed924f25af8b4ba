"""SQLAlchemy-backed store for goals, diagnostic contexts and experiments."""

from __future__ import annotations

import json
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import select, text
from sqlalchemy.exc import DBAPIError, SQLAlchemyError

from growthlab.db.engine import create_db_engine, create_session_factory
from growthlab.db.orm import Base, ContextRow, ExperimentRow, GoalRow
from growthlab.errors import PersistenceError
from growthlab.models.context import DiagnosticContext
from growthlab.models.experiment import Experiment, ExperimentStatus, NewExperiment
from growthlab.models.goal import Goal, GoalId, classify_goal_id, goal_id_to_text

if TYPE_CHECKING:
    from pathlib import Path

    from sqlalchemy import Engine
    from sqlalchemy.orm import Session, sessionmaker

logger = structlog.get_logger()

# Fields an operator may edit directly on a stored experiment.
EDITABLE_FIELDS = frozenset(
    {"hypothesis", "variable", "expected_result", "target_value", "cutoff_line"}
)


class Database:
    """SQLAlchemy-backed wrapper implementing the goal, context and experiment stores."""

    def __init__(self, db_path: str | Path = ":memory:"):
        self.db_path = str(db_path)
        self._engine: Engine = create_db_engine(self.db_path)
        self._session_factory: sessionmaker[Session] = create_session_factory(self._engine)

    @property
    def engine(self) -> Engine:
        """Expose the SQLAlchemy engine for inspection and advanced use."""
        return self._engine

    @property
    def Session(self) -> sessionmaker[Session]:  # noqa: N802
        """Expose the session factory for consumers that need direct access."""
        return self._session_factory

    def init_schema(self) -> None:
        """Create all tables via ORM metadata."""
        Base.metadata.create_all(self._engine)

    def close(self) -> None:
        self._engine.dispose()

    def check_connection(self) -> bool:
        """Verify the database is reachable. Returns True or raises."""
        with self._session_factory() as session:
            session.execute(text("SELECT 1"))
        return True

    # --- Goals ---

    def create_goal(self, goal: Goal) -> Goal:
        with _store_errors("create_goal"), self._session_factory() as session:
            row = GoalRow(
                id=goal_id_to_text(goal.id),
                user_id=goal.user_id,
                title=goal.title,
                target_metric=goal.target_metric,
                ad_platform=goal.ad_platform,
                current_cycle=goal.current_cycle,
            )
            session.add(row)
            session.commit()
            return self._row_to_goal(row)

    def get_goal(self, goal_id: GoalId) -> Goal | None:
        with self._session_factory() as session:
            row = session.get(GoalRow, goal_id_to_text(goal_id))
            if row is None:
                return None
            return self._row_to_goal(row)

    # --- Diagnostic contexts ---

    def create_context(self, context: DiagnosticContext) -> DiagnosticContext:
        analysis = context.structured_analysis
        with _store_errors("create_context"), self._session_factory() as session:
            row = ContextRow(
                user_id=context.user_id,
                raw_input=context.raw_input,
                structured_analysis=(
                    analysis if analysis is None or isinstance(analysis, str)
                    else json.dumps(analysis, ensure_ascii=False)
                ),
                goal_id=goal_id_to_text(context.goal_id) if context.goal_id is not None else None,
            )
            session.add(row)
            session.commit()
            return self._row_to_context(row)

    def get_context(self, context_id: int) -> DiagnosticContext | None:
        with self._session_factory() as session:
            row = session.get(ContextRow, context_id)
            if row is None:
                return None
            return self._row_to_context(row)

    def get_latest_context(self, user_id: str) -> DiagnosticContext | None:
        with self._session_factory() as session:
            stmt = (
                select(ContextRow)
                .where(ContextRow.user_id == user_id)
                .order_by(ContextRow.created_at.desc(), ContextRow.id.desc())
                .limit(1)
            )
            row = session.scalars(stmt).first()
            if row is None:
                return None
            return self._row_to_context(row)

    def set_context_goal(self, context_id: int, goal_id: GoalId | None) -> None:
        """The goal association is the only mutable part of a context."""
        with _store_errors("set_context_goal"), self._session_factory() as session:
            row = session.get(ContextRow, context_id)
            if row is None:
                return
            row.goal_id = goal_id_to_text(goal_id) if goal_id is not None else None
            session.commit()

    # --- Experiments ---

    def insert_experiments(self, experiments: list[NewExperiment]) -> list[Experiment]:
        """Insert a whole batch in one transaction; nothing is kept on failure."""
        now = _utcnow_str()
        rows = [
            ExperimentRow(
                user_id=exp.user_id,
                hypothesis=exp.hypothesis,
                variable=exp.variable,
                expected_result=exp.expected_result,
                target_value=exp.target_value,
                cutoff_line=exp.cutoff_line,
                ice_score=exp.ice_score,
                context_id=exp.context_id,
                goal_id=goal_id_to_text(exp.goal_id),
                status=exp.status.value,
                created_at=now,
                updated_at=now,
            )
            for exp in experiments
        ]
        with (
            _store_errors("insert_experiments"),
            self._session_factory() as session,
            session.begin(),
        ):
            session.add_all(rows)
        return [self._row_to_experiment(r) for r in rows]

    def get_experiment(self, experiment_id: int, user_id: str | None = None) -> Experiment | None:
        with self._session_factory() as session:
            row = session.get(ExperimentRow, experiment_id)
            if row is None or (user_id is not None and row.user_id != user_id):
                return None
            return self._row_to_experiment(row)

    def list_experiments(
        self,
        status: ExperimentStatus | None = None,
        user_id: str | None = None,
        exclude_ids: Iterable[int] = (),
    ) -> list[Experiment]:
        """Newest first."""
        with self._session_factory() as session:
            stmt = select(ExperimentRow).order_by(
                ExperimentRow.created_at.desc(), ExperimentRow.id.desc()
            )
            if status:
                stmt = stmt.where(ExperimentRow.status == status.value)
            if user_id is not None:
                stmt = stmt.where(ExperimentRow.user_id == user_id)
            excluded = list(exclude_ids)
            if excluded:
                stmt = stmt.where(ExperimentRow.id.not_in(excluded))
            rows = session.scalars(stmt).all()
            return [self._row_to_experiment(r) for r in rows]

    def update_experiment_status(self, experiment_id: int, status: ExperimentStatus) -> None:
        with _store_errors("update_experiment_status"), self._session_factory() as session:
            row = session.get(ExperimentRow, experiment_id)
            if row is None:
                return
            row.status = status.value
            row.updated_at = _utcnow_str()
            session.commit()

    def update_experiment_fields(self, experiment_id: int, **fields: Any) -> None:
        unknown = set(fields) - EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields not editable: {', '.join(sorted(unknown))}")
        with _store_errors("update_experiment_fields"), self._session_factory() as session:
            row = session.get(ExperimentRow, experiment_id)
            if row is None:
                return
            for name, value in fields.items():
                setattr(row, name, value)
            row.updated_at = _utcnow_str()
            session.commit()

    # --- Helpers ---

    @staticmethod
    def _parse_dt(value: str) -> datetime:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))

    @staticmethod
    def _goal_id_from_text(value: str) -> GoalId:
        goal_id = classify_goal_id(value)
        if goal_id is None:
            # Stored by hand with a shape the classifier rejects; keep it verbatim.
            return value
        return goal_id

    @staticmethod
    def _row_to_goal(row: GoalRow) -> Goal:
        return Goal(
            id=Database._goal_id_from_text(row.id),
            user_id=row.user_id,
            title=row.title,
            target_metric=row.target_metric,
            ad_platform=row.ad_platform,
            current_cycle=row.current_cycle,
        )

    @staticmethod
    def _row_to_context(row: ContextRow) -> DiagnosticContext:
        return DiagnosticContext(
            id=row.id,
            user_id=row.user_id,
            raw_input=row.raw_input,
            structured_analysis=row.structured_analysis,
            goal_id=Database._goal_id_from_text(row.goal_id) if row.goal_id else None,
            created_at=Database._parse_dt(row.created_at),
        )

    @staticmethod
    def _row_to_experiment(row: ExperimentRow) -> Experiment:
        return Experiment(
            id=row.id,
            user_id=row.user_id,
            hypothesis=row.hypothesis,
            variable=row.variable,
            expected_result=row.expected_result,
            target_value=row.target_value,
            cutoff_line=row.cutoff_line,
            ice_score=row.ice_score,
            context_id=row.context_id,
            goal_id=Database._goal_id_from_text(row.goal_id),
            status=ExperimentStatus(row.status),
            created_at=Database._parse_dt(row.created_at),
            updated_at=Database._parse_dt(row.updated_at),
        )


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    """Re-raise store failures as PersistenceError carrying the driver's own message."""
    try:
        yield
    except SQLAlchemyError as exc:
        message = str(exc.orig) if isinstance(exc, DBAPIError) else str(exc)
        logger.error("Store write failed", operation=operation, error=message)
        raise PersistenceError(message) from exc


def _utcnow_str() -> str:
    return datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%S.%fZ")
