"""Listing sync orchestrator for the Guesty integration."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional

import structlog
from sqlalchemy.engine import Engine

from sync_guesty.config import SyncConfig
from sync_guesty.db.writers.listings import upsert_listing
from sync_guesty.errors import ArchiveError, AuthError, FetchError, MapError, SyncError, UpsertError
from sync_guesty.metrics import (
    listing_failures,
    listings_archived,
    listings_synced,
    sync_duration,
    sync_runs_total,
)
from sync_guesty.network.auth import TokenProvider
from sync_guesty.network.client import ListingsFetcher
from sync_guesty.normalizers.listings import map_listing
from sync_guesty.services.reconciliation import archive_missing_listings
from sync_guesty.services.sync_log import SyncOutcome, SyncRunLogger
from sync_guesty.utils.datetime import utc_now

logger = structlog.get_logger(__name__)


class SyncMode(str, Enum):
    FULL = "full"
    SINGLE = "single"


@dataclass
class SyncResult:
    """
    Outcome of one orchestrator run.

    success is False only for fatal (auth or fetch) failures. Per-record and
    archive failures are collected in failures and leave success untouched.
    """

    success: bool
    mode: SyncMode
    synced: int = 0
    archived: int = 0
    created: int = 0
    updated: int = 0
    listing_id: Optional[str] = None
    error: Optional[str] = None
    failures: List[SyncError] = field(default_factory=list)

    def to_response(self) -> dict[str, Any]:
        if not self.success:
            return {"success": False, "error": self.error}

        body: dict[str, Any] = {
            "success": True,
            "synced": self.synced,
            "archived": self.archived,
        }
        if self.listing_id:
            body["listing_id"] = self.listing_id
        return body


class ListingSyncOrchestrator:
    """
    Runs one listing sync: authenticate, fetch, upsert each record, reconcile
    (full-catalog mode only), and record the outcome in the sync log.

    Collaborators default to the real implementations built from config and can
    be replaced per instance in tests.

    Example:
        >>> orchestrator = ListingSyncOrchestrator(load_sync_config(), get_engine())
        >>> orchestrator.run().to_response()
        {'success': True, 'synced': 42, 'archived': 1}
    """

    def __init__(
        self,
        config: SyncConfig,
        engine: Engine,
        token_provider: Optional[TokenProvider] = None,
        fetcher: Optional[ListingsFetcher] = None,
        run_logger: Optional[SyncRunLogger] = None,
    ):
        self.config = config
        self.engine = engine
        self.token_provider = token_provider or TokenProvider(config)
        self.fetcher = fetcher or ListingsFetcher(config)
        self.run_logger = run_logger or SyncRunLogger(engine)

    def run(self, listing_id: Optional[str] = None) -> SyncResult:
        """
        Execute a sync run. Exactly one sync log row is written per call.

        Args:
            listing_id: Sync only this listing and skip archival

        Returns:
            SyncResult: success=False when authentication or fetching failed

        Raises:
            Exception: Unexpected errors are re-raised after being logged
        """
        mode = SyncMode.SINGLE if listing_id else SyncMode.FULL
        started_at = utc_now()
        log = logger.bind(mode=mode.value, listing_id=listing_id)
        log.info("listing_sync_started")

        with sync_duration.labels(mode=mode.value).time():
            try:
                result = self._sync(mode, listing_id)
            except (AuthError, FetchError) as e:
                log.error("listing_sync_failed", error=e.message, error_type=type(e).__name__, **e.context)
                sync_runs_total.labels(mode=mode.value, status="error").inc()
                self.run_logger.log(
                    SyncOutcome(count=0, started_at=started_at, listing_id=listing_id, error=e.message)
                )
                return SyncResult(success=False, mode=mode, listing_id=listing_id, error=e.message)
            except Exception as e:
                log.exception("listing_sync_crashed", error=str(e))
                sync_runs_total.labels(mode=mode.value, status="error").inc()
                self.run_logger.log(
                    SyncOutcome(count=0, started_at=started_at, listing_id=listing_id, error=str(e))
                )
                raise

        self.run_logger.log(SyncOutcome(count=result.synced, started_at=started_at, listing_id=listing_id))
        sync_runs_total.labels(mode=mode.value, status="success").inc()
        listings_synced.labels(mode=mode.value).inc(result.synced)

        log.info(
            "listing_sync_completed",
            synced=result.synced,
            created=result.created,
            updated=result.updated,
            archived=result.archived,
            failed=len(result.failures),
        )
        return result

    def _sync(self, mode: SyncMode, listing_id: Optional[str]) -> SyncResult:
        token = self.token_provider.get_token()
        raw_listings = self.fetcher.fetch(token, listing_id)

        result = SyncResult(success=True, mode=mode, listing_id=listing_id)
        synced_ids: set[str] = set()
        attempted = 0

        for raw in raw_listings:
            try:
                row = map_listing(raw)
            except MapError as e:
                self._record_failure(result, e, "map", raw)
                continue

            attempted += 1
            try:
                upserted = upsert_listing(self.engine, row)
            except UpsertError as e:
                self._record_failure(result, e, "upsert", raw)
                continue

            synced_ids.add(upserted.id)
            result.synced += 1
            if upserted.created:
                result.created += 1
            else:
                result.updated += 1

        if mode is SyncMode.FULL and attempted > 0:
            result.archived = self._reconcile(result, synced_ids)

        return result

    def _record_failure(self, result: SyncResult, error: SyncError, stage: str, raw: Any) -> None:
        upstream_id = raw.get("_id") if isinstance(raw, dict) else None
        listing_failures.labels(stage=stage).inc()
        logger.warning(
            "listing_sync_skipped",
            stage=stage,
            listing_id=upstream_id,
            error=error.message,
        )
        result.failures.append(error)

    def _reconcile(self, result: SyncResult, synced_ids: set[str]) -> int:
        # Failed upserts are not in synced_ids, so an existing row for them is archived too
        for failure in result.failures:
            if isinstance(failure, UpsertError) and failure.listing_id:
                logger.warning("listing_unprotected_from_archival", listing_id=failure.listing_id)

        try:
            archived = archive_missing_listings(self.engine, synced_ids)
        except ArchiveError as e:
            listing_failures.labels(stage="archive").inc()
            logger.error("listing_archive_failed", error=e.message, **e.context)
            result.failures.append(e)
            return 0

        listings_archived.inc(archived)
        return archived
