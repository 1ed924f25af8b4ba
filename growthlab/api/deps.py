"""FastAPI dependency injection."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from growthlab.config import Settings
from growthlab.db import Database
from growthlab.errors import AuthenticationError
from growthlab.models.user import User
from growthlab.pipeline import ExperimentGenerator
from growthlab.protocols import AuthProvider, TextGenerator


def _get_db(request: Request) -> Database:
    """Get the database instance from app state."""
    return request.app.state.db  # type: ignore[no-any-return]


def _get_settings(request: Request) -> Settings:
    """Get the settings instance from app state."""
    return request.app.state.settings  # type: ignore[no-any-return]


def _get_llm(request: Request) -> TextGenerator:
    return request.app.state.llm  # type: ignore[no-any-return]


def _get_current_user(request: Request) -> User:
    auth: AuthProvider = request.app.state.auth
    user = auth.get_current_user(request)
    if user is None:
        raise AuthenticationError("Unauthorized. Log in to continue.")
    return user


DbDep = Annotated[Database, Depends(_get_db)]
SettingsDep = Annotated[Settings, Depends(_get_settings)]
LLMDep = Annotated[TextGenerator, Depends(_get_llm)]
CurrentUserDep = Annotated[User, Depends(_get_current_user)]


def _get_generator(db: DbDep, llm: LLMDep) -> ExperimentGenerator:
    return ExperimentGenerator(contexts=db, goals=db, experiments=db, llm=llm)


GeneratorDep = Annotated[ExperimentGenerator, Depends(_get_generator)]
