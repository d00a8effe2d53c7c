"""
Error taxonomy for the listing sync.

Fatal errors (AuthError, FetchError) abort a run before anything is written.
Per-record errors (MapError, UpsertError) and ArchiveError are recorded and the
run carries on. LogError is never raised past the run logger.
"""

from __future__ import annotations

from typing import Any, Optional


class SyncError(Exception):
    """
    Base class for all sync errors.

    Attributes:
        message: Human readable description, also used in sync log rows
        context: Structured details (upstream id, HTTP status, attempts, ...)
    """

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.context = {key: value for key, value in context.items() if value is not None}
        super().__init__(message)


class AuthError(SyncError):
    """Credentials missing, token exchange rejected, or token response malformed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message, status_code=status_code)
        self.status_code = status_code


class FetchError(SyncError):
    """Upstream listing request failed, returned a bad shape, or stayed rate limited."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        attempts: Optional[int] = None,
        page: Optional[int] = None,
        listing_id: Optional[str] = None,
    ):
        super().__init__(
            message,
            status_code=status_code,
            attempts=attempts,
            page=page,
            listing_id=listing_id,
        )
        self.status_code = status_code
        self.attempts = attempts
        self.page = page
        self.listing_id = listing_id


class MapError(SyncError):
    """A single upstream record could not be shaped into a listing row."""

    def __init__(self, message: str, listing_id: Optional[str] = None):
        super().__init__(message, listing_id=listing_id)
        self.listing_id = listing_id


class UpsertError(SyncError):
    """A single listing row could not be written."""

    def __init__(self, message: str, listing_id: Optional[str] = None):
        super().__init__(message, listing_id=listing_id)
        self.listing_id = listing_id


class ArchiveError(SyncError):
    """The bulk archive update (or the active-id read before it) failed."""

    def __init__(self, message: str, candidates: Optional[int] = None):
        super().__init__(message, candidates=candidates)
        self.candidates = candidates


class LogError(SyncError):
    """Writing the sync log row failed."""
