"""SQLAlchemy model for the append-only sync run log."""

from sqlalchemy import Column, DateTime, Integer, String, Text

from sync_guesty.models.base import Base


class SyncLog(Base):
    """
    One row per sync invocation, written on success and on failure.

    Rows are never updated or deleted by the sync job.
    """

    __tablename__ = "sync_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    service = Column(String, nullable=False, index=True)  # "guesty"
    sync_type = Column(String, nullable=False)  # "listings"
    status = Column(String, nullable=False)  # success | error
    message = Column(Text, nullable=True)
    start_time = Column(DateTime(timezone=True), nullable=False)
    end_time = Column(DateTime(timezone=True), nullable=False)
    items_count = Column(Integer, nullable=False, default=0)
