"""
Health and readiness check endpoints for container probes.
"""

from __future__ import annotations

from typing import Optional

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine

from sync_guesty.db.engine import check_engine_health
from sync_guesty.dependencies import get_configured_db_engine

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("/health")
def health_check() -> JSONResponse:
    """
    Liveness probe endpoint. Returns 200 whenever the process is up.

    Example:
        >>> GET /health
        {"status": "ok"}
    """
    return JSONResponse(content={"status": "ok"})


@router.get("/ready")
def readiness_check(engine: Optional[Engine] = Depends(get_configured_db_engine)) -> JSONResponse:
    """
    Readiness probe endpoint.

    Returns 200 if the database holding guesty_listings and sync_logs is
    reachable, 503 otherwise. Sync triggers should not be routed to an
    instance that is not ready.

    Example:
        >>> GET /ready
        {"status": "ready", "checks": {"database": "ok"}}
    """
    checks = {}

    if engine is None:
        logger.error("readiness_check_failed", reason="database_not_configured")
        checks["database"] = "not configured"
        return JSONResponse(
            status_code=503,
            content={"status": "not ready", "checks": checks},
        )

    if check_engine_health(engine):
        checks["database"] = "ok"
        return JSONResponse(content={"status": "ready", "checks": checks})

    logger.error("readiness_check_failed", reason="database_not_accessible")
    checks["database"] = "failed"
    return JSONResponse(
        status_code=503,
        content={"status": "not ready", "checks": checks},
    )
