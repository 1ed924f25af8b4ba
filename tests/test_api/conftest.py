"""FastAPI test client fixtures."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from growthlab.api.middleware import CorrelationIdMiddleware, add_exception_handlers
from growthlab.api.routes import contexts, experiments, goals, system
from growthlab.auth import StaticTokenAuth

if TYPE_CHECKING:
    from growthlab.config import Settings
    from growthlab.db import Database
    from growthlab.protocols import TextGenerator


def _create_test_app(db: Database, settings: Settings, llm: TextGenerator) -> FastAPI:
    """Create a FastAPI app with injected test collaborators (no lifespan)."""
    app = FastAPI(title="GrowthLab Test")

    app.state.db = db
    app.state.settings = settings
    app.state.llm = llm
    app.state.auth = StaticTokenAuth(settings.api_tokens)

    app.add_middleware(CorrelationIdMiddleware)
    add_exception_handlers(app)

    prefix = "/api/v1"
    app.include_router(system.router, prefix=prefix)
    app.include_router(experiments.router, prefix=prefix)
    app.include_router(goals.router, prefix=prefix)
    app.include_router(contexts.router, prefix=prefix)

    return app


@pytest.fixture()
def app(db: Database, settings: Settings, fake_llm: TextGenerator) -> FastAPI:
    return _create_test_app(db, settings, fake_llm)


@pytest.fixture()
def client(app: FastAPI) -> TestClient:
    return TestClient(app, headers={"Authorization": "Bearer test-token"})


@pytest.fixture()
def anon_client(app: FastAPI) -> TestClient:
    return TestClient(app)


@pytest.fixture()
def other_client(app: FastAPI) -> TestClient:
    return TestClient(app, headers={"Authorization": "Bearer other-token"})
