from datetime import datetime
from typing import Optional

from sqlalchemy import insert
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from sync_guesty.config import SYNC_SERVICE, SYNC_TYPE
from sync_guesty.errors import LogError
from sync_guesty.models.sync_logs import SyncLog


def insert_sync_log(
    engine: Engine,
    status: str,
    message: str,
    start_time: datetime,
    end_time: datetime,
    items_count: int,
) -> Optional[int]:
    """
    Append one row to the sync log.

    Args:
        engine: SQLAlchemy Engine
        status: "success" or "error"
        message: Human readable summary
        start_time: When the run began
        end_time: When the run finished
        items_count: Number of listings upserted

    Returns:
        Optional[int]: The new row id, when the driver reports it

    Raises:
        LogError: If the insert fails
    """
    try:
        with engine.begin() as conn:
            result = conn.execute(
                insert(SyncLog).values(
                    service=SYNC_SERVICE,
                    sync_type=SYNC_TYPE,
                    status=status,
                    message=message,
                    start_time=start_time,
                    end_time=end_time,
                    items_count=items_count,
                )
            )
            inserted = result.inserted_primary_key
    except SQLAlchemyError as e:
        raise LogError(f"Failed to write sync log: {e}") from e

    return inserted[0] if inserted else None
