"""
SQLAlchemy engine with production-ready connection pooling.

The engine is built on first use rather than at import time so that modules and
tests can be imported without a DATABASE_URL. The first call without a
configured URL is fatal, which is why the API builds it at startup.
"""

from functools import lru_cache

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine

from sync_guesty.config import DATABASE_URL


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    """
    Return the process-wide engine, creating it on first call.

    Raises:
        RuntimeError: If DATABASE_URL is not set
    """
    if not DATABASE_URL:
        raise RuntimeError("DATABASE_URL is not set.")

    return create_engine(
        DATABASE_URL,
        future=True,
        pool_size=5,  # One sync run holds a single connection at a time
        max_overflow=10,
        pool_pre_ping=True,  # Verify connections before using (detect stale connections)
        pool_recycle=3600,
        echo=False,
    )


def check_engine_health(engine: Engine) -> bool:
    """
    Check if the database is reachable.

    Used by the /ready endpoint before the service accepts sync triggers.

    Args:
        engine: Engine to probe

    Returns:
        bool: True if a trivial query succeeds, False otherwise
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception:
        return False
