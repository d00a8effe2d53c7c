"""
FastAPI dependency injection providers.

Routes receive the engine, the sync configuration and the orchestrator through
these providers so tests can swap them with app.dependency_overrides.
"""

from __future__ import annotations

from typing import Generator, Optional

import structlog
from fastapi import Depends
from sqlalchemy.engine import Engine

from sync_guesty.config import SyncConfig, load_sync_config
from sync_guesty.db.engine import get_engine
from sync_guesty.services.sync import ListingSyncOrchestrator

logger = structlog.get_logger(__name__)


def get_db_engine() -> Generator[Engine, None, None]:
    """
    Provide the database engine.

    Yields:
        Engine: SQLAlchemy database engine

    Testing Example:
        >>> mock_engine = Mock(spec=Engine)
        >>> app.dependency_overrides[get_db_engine] = lambda: mock_engine
    """
    yield get_engine()


def get_configured_db_engine() -> Generator[Optional[Engine], None, None]:
    """
    Provide the database engine, or None when DATABASE_URL is not set.

    Used by the readiness probe, which reports a missing configuration as
    "not ready" instead of failing the request.
    """
    try:
        engine = get_engine()
    except RuntimeError as e:
        logger.error("database_not_configured", error=str(e))
        engine = None
    yield engine


def get_sync_config() -> SyncConfig:
    """
    Provide a SyncConfig read from the environment for this request.

    Read per request so a rotated secret is picked up without a restart.
    """
    return load_sync_config()


def get_sync_orchestrator(
    engine: Engine = Depends(get_db_engine),
    config: SyncConfig = Depends(get_sync_config),
) -> ListingSyncOrchestrator:
    """
    Build a fresh orchestrator for one sync request.

    Each request gets its own HTTP sessions and collaborators; nothing is shared
    between runs.
    """
    return ListingSyncOrchestrator(config=config, engine=engine)
