"""Database package: engine, ORM models and the store facade."""

from growthlab.db.engine import create_db_engine, create_session_factory
from growthlab.db.facade import EDITABLE_FIELDS, Database
from growthlab.db.orm import Base, ContextRow, ExperimentRow, GoalRow

__all__ = [
    "EDITABLE_FIELDS",
    "Base",
    "ContextRow",
    "Database",
    "ExperimentRow",
    "GoalRow",
    "create_db_engine",
    "create_session_factory",
]
