from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Mapping, Optional

import structlog
from sqlalchemy import insert, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from sync_guesty.db.readers.listings import listing_exists
from sync_guesty.errors import UpsertError
from sync_guesty.models.listings import SYNC_STATUS_ARCHIVED, Listing
from sync_guesty.utils.datetime import utc_now

logger = structlog.get_logger(__name__)

# Columns rewritten on every upsert; first_synced_at is only set on insert
UPDATE_COLUMNS = (
    "title",
    "address",
    "bedrooms",
    "bathrooms",
    "max_guests",
    "square_meters",
    "property_type",
    "status",
    "thumbnail_url",
    "highres_url",
    "images",
    "raw_data",
    "sync_status",
    "is_deleted",
    "last_synced",
)


@dataclass(frozen=True)
class UpsertResult:
    id: str
    created: bool


def upsert_listing(engine: Engine, row: Mapping[str, Any]) -> UpsertResult:
    """
    Insert or update one listing row, keyed by its Guesty id.

    New rows get first_synced_at = now. Existing rows get every projected field
    plus last_synced rewritten and keep their original first_synced_at, so
    repeating the call with the same row only moves last_synced.

    Args:
        engine: SQLAlchemy Engine
        row: Mapped listing row (see normalizers.listings.map_listing)

    Returns:
        UpsertResult: The listing id and whether a new row was created

    Raises:
        UpsertError: If the row has no id or the database rejects the write
    """
    listing_id = row.get("id")
    if not listing_id:
        raise UpsertError("Listing row has no id")

    values = {column: row.get(column) for column in UPDATE_COLUMNS}
    if values["last_synced"] is None:
        values["last_synced"] = utc_now()

    try:
        with engine.begin() as conn:
            if listing_exists(conn, listing_id):
                conn.execute(update(Listing).where(Listing.id == listing_id).values(**values))
                created = False
            else:
                conn.execute(
                    insert(Listing).values(
                        id=listing_id,
                        first_synced_at=values["last_synced"],
                        **values,
                    )
                )
                created = True
    except SQLAlchemyError as e:
        raise UpsertError(f"Failed to upsert listing {listing_id}: {e}", listing_id=listing_id) from e

    logger.debug("listing_upserted", listing_id=listing_id, created=created)
    return UpsertResult(id=listing_id, created=created)


def archive_listings(engine: Engine, listing_ids: Iterable[str], now: Optional[datetime] = None) -> int:
    """
    Mark listings as archived in a single bulk UPDATE.

    Args:
        engine: SQLAlchemy Engine
        listing_ids: Ids to archive
        now: Timestamp for last_synced (defaults to utc_now())

    Returns:
        int: Number of ids submitted for archival
    """
    ids = sorted(set(listing_ids))
    if not ids:
        return 0

    with engine.begin() as conn:
        conn.execute(
            update(Listing)
            .where(Listing.id.in_(ids))
            .values(
                sync_status=SYNC_STATUS_ARCHIVED,
                is_deleted=True,
                last_synced=now or utc_now(),
            )
        )

    logger.info("listings_archived", count=len(ids))
    return len(ids)
