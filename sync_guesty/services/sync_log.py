"""Best-effort writer of one sync_logs row per run."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import structlog
from sqlalchemy.engine import Engine

from sync_guesty.db.writers.sync_logs import insert_sync_log
from sync_guesty.metrics import listing_failures
from sync_guesty.utils.datetime import utc_now

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SyncOutcome:
    count: int
    started_at: datetime
    listing_id: Optional[str] = None
    error: Optional[str] = None

    @property
    def status(self) -> str:
        return "error" if self.error else "success"


def format_sync_message(outcome: SyncOutcome) -> str:
    """
    Build the human-readable sync log message.

    Example:
        >>> format_sync_message(SyncOutcome(count=1, started_at=utc_now(), listing_id="abc"))
        'Synced 1 listing (single: abc)'
    """
    if outcome.error:
        scope = " (single)" if outcome.listing_id else ""
        return f"Failed to sync listings{scope}: {outcome.error}"

    plural = "" if outcome.count == 1 else "s"
    scope = f" (single: {outcome.listing_id})" if outcome.listing_id else ""
    return f"Synced {outcome.count} listing{plural}{scope}"


class SyncRunLogger:
    """
    Records the outcome of a sync run in the sync_logs table.

    A failed write is logged and dropped; it never turns a run into a failure.
    """

    def __init__(self, engine: Engine):
        self.engine = engine

    def log(self, outcome: SyncOutcome) -> bool:
        """
        Write one sync log row.

        Args:
            outcome: Result of the run

        Returns:
            bool: True if the row was written
        """
        message = format_sync_message(outcome)
        try:
            insert_sync_log(
                self.engine,
                status=outcome.status,
                message=message,
                start_time=outcome.started_at,
                end_time=utc_now(),
                items_count=outcome.count,
            )
        except Exception as e:
            listing_failures.labels(stage="log").inc()
            logger.error("sync_log_write_failed", error=str(e), sync_message=message)
            return False

        return True
