"""SQLAlchemy ORM models mapping to the GrowthLab database tables."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Float,
    ForeignKey,
    Index,
    Integer,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utcnow_str() -> str:
    return datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


class Base(DeclarativeBase):
    pass


class GoalRow(Base):
    __tablename__ = "goals"

    # Canonical text form of a GoalId: "42" or a UUID string.
    id: Mapped[str] = mapped_column(Text, primary_key=True)
    user_id: Mapped[str] = mapped_column(Text, nullable=False, default="")
    title: Mapped[str] = mapped_column(Text, nullable=False, default="")
    target_metric: Mapped[str] = mapped_column(Text, nullable=False, default="")
    ad_platform: Mapped[str] = mapped_column(Text, nullable=False, default="")
    current_cycle: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[str] = mapped_column(Text, nullable=False, default=_utcnow_str)


class ContextRow(Base):
    __tablename__ = "contexts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(Text, nullable=False)
    raw_input: Mapped[str] = mapped_column(Text, nullable=False, default="")
    # Stored as text; may hold JSON or a legacy free-form analysis.
    structured_analysis: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
    goal_id: Mapped[str | None] = mapped_column(
        Text, ForeignKey("goals.id"), nullable=True, default=None
    )
    created_at: Mapped[str] = mapped_column(Text, nullable=False, default=_utcnow_str)

    __table_args__ = (Index("idx_contexts_user_created", "user_id", "created_at"),)


class ExperimentRow(Base):
    __tablename__ = "experiments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(Text, nullable=False)
    hypothesis: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
    variable: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
    expected_result: Mapped[Any] = mapped_column(
        JSON(none_as_null=True), nullable=True, default=None
    )
    target_value: Mapped[float | None] = mapped_column(Float, nullable=True, default=None)
    cutoff_line: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
    ice_score: Mapped[int | None] = mapped_column(Integer, nullable=True, default=None)
    context_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("contexts.id"), nullable=True, default=None
    )
    goal_id: Mapped[str] = mapped_column(Text, ForeignKey("goals.id"), nullable=False)
    status: Mapped[str] = mapped_column(Text, nullable=False, default="backlog")

    created_at: Mapped[str] = mapped_column(Text, nullable=False, default=_utcnow_str)
    updated_at: Mapped[str] = mapped_column(Text, nullable=False, default=_utcnow_str)

    __table_args__ = (
        CheckConstraint(
            "status IN ('backlog', 'em_execucao', 'archived')",
            name="ck_experiments_status",
        ),
        CheckConstraint("goal_id <> ''", name="ck_experiments_goal_id"),
        Index("idx_experiments_user_status", "user_id", "status"),
    )
