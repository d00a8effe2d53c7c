from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class SyncResponse(BaseModel):
    """
    Body of a successful sync run. listing_id is only present in single mode.
    """

    success: bool = Field(True, description="Always true for a completed run")
    synced: int = Field(..., description="Listings upserted in this run")
    archived: int = Field(..., description="Listings archived (always 0 in single mode)")
    listing_id: Optional[str] = Field(None, description="Requested listing id, if any")


class SyncErrorResponse(BaseModel):
    success: bool = Field(False, description="Always false for a failed run")
    error: str = Field(..., description="Why the run failed")


class SyncLogRead(BaseModel):
    """
    One row of the sync log as returned by the history endpoint.
    """

    id: int
    status: str
    message: Optional[str] = None
    start_time: datetime
    end_time: datetime
    items_count: int
