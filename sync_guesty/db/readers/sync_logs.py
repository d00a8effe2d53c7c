from typing import Any

from sqlalchemy import select
from sqlalchemy.engine import Connection

from sync_guesty.config import SYNC_SERVICE, SYNC_TYPE
from sync_guesty.models.sync_logs import SyncLog


def get_recent_sync_logs(conn: Connection, limit: int = 20) -> list[dict[str, Any]]:
    """
    Fetch the most recent listing sync log rows, newest first.

    Args:
        conn: SQLAlchemy connection
        limit: Max number of rows

    Returns:
        list[dict]: Sync log rows as plain dicts
    """
    result = conn.execute(
        select(
            SyncLog.id,
            SyncLog.status,
            SyncLog.message,
            SyncLog.start_time,
            SyncLog.end_time,
            SyncLog.items_count,
        )
        .where(SyncLog.service == SYNC_SERVICE, SyncLog.sync_type == SYNC_TYPE)
        .order_by(SyncLog.id.desc())
        .limit(limit)
    )
    return [dict(row) for row in result.mappings().all()]
