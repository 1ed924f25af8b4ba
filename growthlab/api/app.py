"""FastAPI application factory and entry point."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import structlog
from fastapi import FastAPI

from growthlab.api.middleware import CorrelationIdMiddleware, add_exception_handlers
from growthlab.api.routes import contexts, experiments, goals, system
from growthlab.auth import StaticTokenAuth
from growthlab.config import Settings
from growthlab.db import Database
from growthlab.llm import LLMClient
from growthlab.logging import configure_logging

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Initialize DB, settings and the model client on startup, cleanup on shutdown."""
    settings = Settings()
    settings.ensure_data_dir()

    configure_logging(
        log_level=settings.log_level,
        log_format=settings.log_format,
    )

    db = Database(settings.db_path)
    db.init_schema()

    app.state.db = db
    app.state.settings = settings
    app.state.llm = LLMClient(settings)
    app.state.auth = StaticTokenAuth(settings.api_tokens)

    if not settings.anthropic_api_key:
        logger.warning("ANTHROPIC_API_KEY not set; generation requests will fail")

    logger.info("GrowthLab API started", host=settings.api_host, port=settings.api_port)
    yield

    db.close()
    logger.info("GrowthLab API shut down")


def create_app() -> FastAPI:
    """Application factory."""
    app = FastAPI(
        title="GrowthLab",
        description="Growth experiment generation and backlog API",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(CorrelationIdMiddleware)
    add_exception_handlers(app)

    # Prometheus metrics endpoint
    from prometheus_client import make_asgi_app

    metrics_app = make_asgi_app()
    app.mount("/metrics", metrics_app)

    # Mount routes under /api/v1
    prefix = "/api/v1"
    app.include_router(system.router, prefix=prefix)
    app.include_router(experiments.router, prefix=prefix)
    app.include_router(goals.router, prefix=prefix)
    app.include_router(contexts.router, prefix=prefix)

    return app


def main() -> None:
    """Entry point for `growthlab-api` command."""
    import uvicorn

    settings = Settings()
    uvicorn.run(
        "growthlab.api.app:create_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
    )
