from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Float, Integer, String, Text
from sqlalchemy.sql import func

from sync_guesty.models.base import Base, JSONDocument

SYNC_STATUS_ACTIVE = "active"
SYNC_STATUS_ARCHIVED = "archived"


class Listing(Base):
    """
    ORM model for the local mirror of Guesty listings.

    Display fields are projected out of the upstream payload for querying; the
    complete payload is kept in raw_data. Only the sync job writes sync_status
    and is_deleted, and the two always move together.
    """

    __tablename__ = "guesty_listings"
    __table_args__ = (
        CheckConstraint(
            "sync_status IN ('active', 'archived')",
            name="ck_guesty_listings_sync_status",
        ),
        CheckConstraint(
            "is_deleted = (sync_status = 'archived')",
            name="ck_guesty_listings_deleted_matches_status",
        ),
    )

    id = Column(String, primary_key=True)  # Guesty _id
    title = Column(String, nullable=True)
    address = Column(JSONDocument, nullable=True)
    bedrooms = Column(Integer, nullable=True)
    bathrooms = Column(Float, nullable=True)
    max_guests = Column(Integer, nullable=True)
    square_meters = Column(Float, nullable=True)
    property_type = Column(String, nullable=True)
    status = Column(String, nullable=True)
    thumbnail_url = Column(Text, nullable=True)
    highres_url = Column(Text, nullable=True)
    images = Column(JSONDocument, nullable=True)
    raw_data = Column(JSONDocument, nullable=False)  # Full raw listing blob
    sync_status = Column(String, nullable=False, default=SYNC_STATUS_ACTIVE, index=True)
    is_deleted = Column(Boolean, nullable=False, default=False)
    first_synced_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    last_synced = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
