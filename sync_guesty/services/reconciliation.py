"""Archival of mirrored listings that disappeared from the upstream catalog."""

from datetime import datetime
from typing import AbstractSet, Optional

import structlog
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from sync_guesty.db.readers.listings import get_active_listing_ids
from sync_guesty.db.writers.listings import archive_listings
from sync_guesty.errors import ArchiveError
from sync_guesty.utils.datetime import utc_now

logger = structlog.get_logger(__name__)


def archive_missing_listings(
    engine: Engine, remote_ids: AbstractSet[str], now: Optional[datetime] = None
) -> int:
    """
    Archive every locally active listing that is absent from remote_ids.

    This is a full-replace reconciliation: remote_ids must be the complete set
    observed by a full-catalog sync. Never call it after a single-listing sync.

    Args:
        engine: SQLAlchemy Engine
        remote_ids: Listing ids seen (and upserted) in this run
        now: Timestamp for last_synced on archived rows

    Returns:
        int: Number of listings archived

    Raises:
        ArchiveError: If reading active ids or the bulk update fails
    """
    try:
        with engine.connect() as conn:
            local_active_ids = get_active_listing_ids(conn)
    except SQLAlchemyError as e:
        raise ArchiveError(f"Failed to load local listings: {e}") from e

    to_archive = local_active_ids - set(remote_ids)
    if not to_archive:
        logger.info("no_listings_to_archive", local_active=len(local_active_ids))
        return 0

    logger.info(
        "archiving_missing_listings",
        local_active=len(local_active_ids),
        remote=len(remote_ids),
        to_archive=len(to_archive),
    )

    try:
        return archive_listings(engine, to_archive, now=now or utc_now())
    except SQLAlchemyError as e:
        raise ArchiveError(f"Failed to archive listings: {e}", candidates=len(to_archive)) from e
