from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, TypedDict

from sync_guesty.errors import MapError
from sync_guesty.models.listings import SYNC_STATUS_ACTIVE
from sync_guesty.utils.datetime import utc_now

# Opaque upstream payload; stored verbatim in raw_data
RawListing = Dict[str, Any]


class ListingRow(TypedDict):
    """Column values for one guesty_listings row, minus first_synced_at."""

    id: str
    title: Optional[str]
    address: Optional[Dict[str, Any]]
    bedrooms: Optional[int]
    bathrooms: Optional[float]
    max_guests: Optional[int]
    square_meters: Optional[float]
    property_type: Optional[str]
    status: Optional[str]
    thumbnail_url: Optional[str]
    highres_url: Optional[str]
    images: Optional[List[Any]]
    raw_data: RawListing
    sync_status: str
    is_deleted: bool
    last_synced: datetime


def _first(raw: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = raw.get(key)
        if value is not None and value != "":
            return value
    return None


def _as_str(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None


def _as_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return None


def _as_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError, OverflowError):
        return None


def _picture_url(picture: Any, *keys: str) -> Optional[str]:
    if not isinstance(picture, dict):
        return None
    return _as_str(_first(picture, *keys))


def map_listing(raw: Any, now: Optional[datetime] = None) -> ListingRow:
    """
    Shape one raw Guesty listing into a guesty_listings row.

    Known fields are projected to typed columns; a missing or unusable value
    becomes None rather than an error. The whole payload is kept in raw_data.

    Args:
        raw: Raw Guesty listing record
        now: Timestamp for last_synced (defaults to utc_now())

    Returns:
        ListingRow: Row marked active and not deleted

    Raises:
        MapError: If the record is not an object or has no _id
    """
    if not isinstance(raw, dict):
        raise MapError(f"Listing record is not an object: {type(raw).__name__}")

    listing_id = _as_str(raw.get("_id"))
    if listing_id is None:
        raise MapError("Listing record has no _id")

    picture = raw.get("picture")
    address = raw.get("address")
    images = _first(raw, "images", "pictures")

    return ListingRow(
        id=listing_id,
        title=_as_str(_first(raw, "title", "nickname")),
        address=address if isinstance(address, dict) else None,
        bedrooms=_as_int(raw.get("bedrooms")),
        bathrooms=_as_float(raw.get("bathrooms")),
        max_guests=_as_int(_first(raw, "maxGuests", "accommodates")),
        square_meters=_as_float(raw.get("squareMeters")),
        property_type=_as_str(raw.get("propertyType")),
        status=_as_str(raw.get("status")),
        thumbnail_url=_picture_url(picture, "thumbnail"),
        highres_url=_picture_url(picture, "original", "large"),
        images=images if isinstance(images, list) else None,
        raw_data=raw,
        sync_status=SYNC_STATUS_ACTIVE,
        is_deleted=False,
        last_synced=now or utc_now(),
    )
