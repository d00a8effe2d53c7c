"""Guesty listing sync trigger route."""

from typing import Any, Optional

import structlog
from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse, Response
from sqlalchemy.engine import Engine
from starlette.concurrency import run_in_threadpool

from sync_guesty.db.readers.sync_logs import get_recent_sync_logs
from sync_guesty.dependencies import get_db_engine, get_sync_orchestrator
from sync_guesty.schemas.sync import SyncErrorResponse, SyncLogRead, SyncResponse
from sync_guesty.services.sync import ListingSyncOrchestrator

router = APIRouter()
logger = structlog.get_logger(__name__)

SYNC_PATH = "/listings/sync"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
}


def _json(content: Any, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=content, headers=CORS_HEADERS)


async def read_listing_id(request: Request, query_listing_id: Optional[str]) -> Optional[str]:
    """
    Resolve the requested listing id: JSON body first, then query string.

    A missing, empty or non-JSON body is ignored.

    Args:
        request: Incoming request
        query_listing_id: listing_id query parameter, if any

    Returns:
        Optional[str]: Listing id, or None for a full-catalog sync
    """
    body_listing_id = None
    try:
        body = await request.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        value = body.get("listing_id")
        if value is not None and not isinstance(value, (dict, list, bool)):
            body_listing_id = str(value).strip() or None

    return body_listing_id or query_listing_id or None


@router.options(SYNC_PATH)
def sync_listings_preflight() -> Response:
    """CORS preflight; always 204."""
    return Response(status_code=status.HTTP_204_NO_CONTENT, headers=CORS_HEADERS)


@router.post(
    SYNC_PATH,
    response_model=SyncResponse,
    response_model_exclude_none=True,
    responses={500: {"model": SyncErrorResponse}},
)
async def sync_listings(
    request: Request,
    listing_id: Optional[str] = Query(None, description="Sync a single listing"),
    orchestrator: ListingSyncOrchestrator = Depends(get_sync_orchestrator),
) -> JSONResponse:
    """
    Run a Guesty listing sync and report its outcome.

    Without listing_id the whole catalog is synced and listings missing upstream
    are archived. With listing_id only that listing is refreshed.

    Returns:
        JSONResponse: 200 with counts, or 500 with the failure reason

    Example:
        >>> POST /guesty/listings/sync {"listing_id": "64f1c0ffee"}
        {"success": true, "synced": 1, "archived": 0, "listing_id": "64f1c0ffee"}
    """
    requested_id = await read_listing_id(request, listing_id)

    try:
        result = await run_in_threadpool(orchestrator.run, requested_id)
    except Exception as e:
        logger.exception("listing_sync_request_failed", listing_id=requested_id, error=str(e))
        return _json(
            SyncErrorResponse(error=str(e)).model_dump(),
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if not result.success:
        return _json(result.to_response(), status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    return _json(result.to_response())


@router.api_route(
    SYNC_PATH,
    methods=["GET", "HEAD", "PUT", "PATCH", "DELETE", "TRACE", "CONNECT"],
    include_in_schema=False,
)
def sync_listings_method_not_allowed() -> JSONResponse:
    return _json({"error": "Method Not Allowed"}, status_code=status.HTTP_405_METHOD_NOT_ALLOWED)


@router.get(f"{SYNC_PATH}/logs", response_model=list[SyncLogRead])
def list_sync_logs(
    limit: int = Query(20, ge=1, le=200, description="Max rows to return"),
    engine: Engine = Depends(get_db_engine),
) -> list[dict[str, Any]]:
    """
    Return the most recent listing sync runs, newest first.

    Args:
        limit: Max number of rows
        engine: Database engine

    Returns:
        list[dict]: Sync log rows
    """
    with engine.connect() as conn:
        return get_recent_sync_logs(conn, limit=limit)
