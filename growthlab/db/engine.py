"""SQLAlchemy engine factory and session maker for SQLite."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

if TYPE_CHECKING:
    from sqlalchemy import Engine


def create_db_engine(db_path: str | object, echo: bool = False) -> Engine:
    """Create a SQLite engine with WAL mode and foreign keys enforced.

    Store calls run in worker threads, so connections must be shareable
    across threads. An in-memory database is pinned to one connection.
    """
    path_str = str(db_path)
    connect_args = {"timeout": 30.0, "check_same_thread": False}

    if path_str == ":memory:":
        engine = create_engine(
            "sqlite://", echo=echo, connect_args=connect_args, poolclass=StaticPool
        )
    else:
        engine = create_engine(f"sqlite:///{path_str}", echo=echo, connect_args=connect_args)

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn: object, _connection_record: object) -> None:
        cursor = dbapi_conn.cursor()  # type: ignore[attr-defined]
        if path_str != ":memory:":
            cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA busy_timeout=30000")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Create a sessionmaker bound to the given engine."""
    return sessionmaker(bind=engine, expire_on_commit=False)
