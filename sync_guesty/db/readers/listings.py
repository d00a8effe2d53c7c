from sqlalchemy import select
from sqlalchemy.engine import Connection

from sync_guesty.models.listings import SYNC_STATUS_ACTIVE, Listing


def get_active_listing_ids(conn: Connection) -> set[str]:
    """
    Return the ids of all mirrored listings currently marked active.

    Args:
        conn: SQLAlchemy connection

    Returns:
        set[str]: Listing ids with sync_status = 'active' and is_deleted = false
    """
    result = conn.execute(
        select(Listing.id).where(
            Listing.sync_status == SYNC_STATUS_ACTIVE,
            Listing.is_deleted.is_(False),
        )
    )
    return set(result.scalars().all())


def listing_exists(conn: Connection, listing_id: str) -> bool:
    """
    Check whether a listing row is already mirrored.

    Args:
        conn: SQLAlchemy connection
        listing_id: Guesty listing id

    Returns:
        bool: True if a row with this primary key exists
    """
    result = conn.execute(select(Listing.id).where(Listing.id == listing_id))
    return result.scalar_one_or_none() is not None
