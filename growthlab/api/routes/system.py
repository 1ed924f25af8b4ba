"""Health check and config endpoints."""

from __future__ import annotations

import structlog
from fastapi import APIRouter

from growthlab.api.deps import DbDep, SettingsDep
from growthlab.api.schemas import ConfigCheckResponse, HealthResponse

router = APIRouter(tags=["system"])

logger = structlog.get_logger()


@router.get("/health", response_model=HealthResponse)
def health_check(
    db: DbDep,
) -> HealthResponse:
    db_ok = False
    try:
        db.check_connection()
        db_ok = True
    except Exception as exc:
        logger.warning("Database health check failed", error=str(exc))

    return HealthResponse(
        status="healthy" if db_ok else "unhealthy",
        version="0.1.0",
        db_connected=db_ok,
        checks={"database": db_ok},
    )


@router.get("/config/check", response_model=ConfigCheckResponse)
def config_check(
    settings: SettingsDep,
) -> ConfigCheckResponse:
    return ConfigCheckResponse(
        configured={
            "anthropic": bool(settings.anthropic_api_key),
            "api_tokens": bool(settings.api_tokens),
        }
    )
