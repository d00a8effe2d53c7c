"""
Prometheus metrics endpoint.

Example:
    GET /metrics

    Response:
        # HELP guesty_sync_runs_total Total number of listing sync runs (success and error)
        # TYPE guesty_sync_runs_total counter
        guesty_sync_runs_total{mode="full",status="success"} 12.0
        ...
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter()


@router.get("/metrics", response_class=Response)
async def metrics() -> Any:
    """
    Expose sync, API and archival metrics in Prometheus text format.
    """
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
