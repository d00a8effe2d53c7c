"""
Tests for ListingSyncOrchestrator against an in-memory database with the
Guesty token exchange and listing fetcher mocked out.
"""

from __future__ import annotations

from typing import Any, Callable, Optional
from unittest.mock import Mock, patch

import pytest
from sqlalchemy import select
from sqlalchemy.engine import Engine

from sync_guesty.config import SyncConfig
from sync_guesty.db.writers.listings import UpsertResult, upsert_listing
from sync_guesty.errors import ArchiveError, AuthError, FetchError, LogError, UpsertError
from sync_guesty.models.listings import Listing
from sync_guesty.models.sync_logs import SyncLog
from sync_guesty.network.auth import TokenProvider
from sync_guesty.network.client import ListingsFetcher
from sync_guesty.services.sync import ListingSyncOrchestrator, SyncMode


def _upsert_failing_for(failing_id: str) -> Callable[[Engine, dict[str, Any]], UpsertResult]:
    def _upsert(engine: Engine, row: dict[str, Any]) -> UpsertResult:
        if row["id"] == failing_id:
            raise UpsertError(f"Failed to upsert listing {failing_id}: disk full", listing_id=failing_id)
        return upsert_listing(engine, row)

    return _upsert


def _listing(listing_id: str, **fields: Any) -> dict[str, Any]:
    return {"_id": listing_id, "title": f"Listing {listing_id}", "status": "active", **fields}


@pytest.fixture
def token_provider() -> Mock:
    provider = Mock(spec=TokenProvider)
    provider.get_token.return_value = "test-token"
    return provider


@pytest.fixture
def fetcher() -> Mock:
    return Mock(spec=ListingsFetcher)


@pytest.fixture
def orchestrator(
    sync_config: SyncConfig, sqlite_engine: Engine, token_provider: Mock, fetcher: Mock
) -> ListingSyncOrchestrator:
    return ListingSyncOrchestrator(
        sync_config, sqlite_engine, token_provider=token_provider, fetcher=fetcher
    )


def _rows(engine: Engine) -> dict[str, Any]:
    with engine.connect() as conn:
        return {row.id: row for row in conn.execute(select(Listing)).all()}


def _logs(engine: Engine) -> list[Any]:
    with engine.connect() as conn:
        return conn.execute(select(SyncLog).order_by(SyncLog.id)).all()


def _run(
    orchestrator: ListingSyncOrchestrator,
    fetcher: Mock,
    listings: list[Any],
    listing_id: Optional[str] = None,
) -> Any:
    fetcher.fetch.return_value = listings
    return orchestrator.run(listing_id=listing_id)


@pytest.mark.unit
def test_full_sync_inserts_listings_and_logs_success(
    orchestrator: ListingSyncOrchestrator, fetcher: Mock, sqlite_engine: Engine
) -> None:
    result = _run(orchestrator, fetcher, [_listing("A"), _listing("B")])

    assert result.success is True
    assert result.mode is SyncMode.FULL
    assert (result.synced, result.created, result.updated, result.archived) == (2, 2, 0, 0)
    assert result.to_response() == {"success": True, "synced": 2, "archived": 0}
    fetcher.fetch.assert_called_once_with("test-token", None)

    rows = _rows(sqlite_engine)
    assert set(rows) == {"A", "B"}
    assert rows["A"].sync_status == "active"
    assert rows["A"].is_deleted is False

    logs = _logs(sqlite_engine)
    assert len(logs) == 1
    assert logs[0].status == "success"
    assert logs[0].items_count == 2
    assert logs[0].message == "Synced 2 listings"
    assert logs[0].service == "guesty"
    assert logs[0].sync_type == "listings"


@pytest.mark.unit
def test_rerun_is_idempotent_apart_from_last_synced(
    orchestrator: ListingSyncOrchestrator, fetcher: Mock, sqlite_engine: Engine
) -> None:
    """Test that a second identical run updates in place and keeps first_synced_at."""
    listings = [_listing("A", bedrooms=2), _listing("B")]
    _run(orchestrator, fetcher, listings)
    first = _rows(sqlite_engine)

    result = _run(orchestrator, fetcher, listings)
    second = _rows(sqlite_engine)

    assert (result.synced, result.created, result.updated, result.archived) == (2, 0, 2, 0)
    assert set(second) == set(first)
    for listing_id in first:
        assert second[listing_id].first_synced_at == first[listing_id].first_synced_at
        assert second[listing_id].raw_data == first[listing_id].raw_data
        assert second[listing_id].bedrooms == first[listing_id].bedrooms
        assert second[listing_id].sync_status == "active"
    assert len(_logs(sqlite_engine)) == 2


@pytest.mark.unit
def test_full_sync_archives_listings_missing_upstream(
    orchestrator: ListingSyncOrchestrator, fetcher: Mock, sqlite_engine: Engine
) -> None:
    """Local {A, B, C} against upstream {A, C, D}: B is archived, D inserted."""
    _run(orchestrator, fetcher, [_listing("A"), _listing("B"), _listing("C")])

    result = _run(orchestrator, fetcher, [_listing("A"), _listing("C"), _listing("D")])

    assert result.synced == 3
    assert result.archived == 1
    rows = _rows(sqlite_engine)
    assert rows["B"].sync_status == "archived"
    assert rows["B"].is_deleted is True
    for listing_id in ("A", "C", "D"):
        assert rows[listing_id].sync_status == "active"
        assert rows[listing_id].is_deleted is False


@pytest.mark.unit
def test_archived_listing_is_reactivated_when_it_reappears(
    orchestrator: ListingSyncOrchestrator, fetcher: Mock, sqlite_engine: Engine
) -> None:
    _run(orchestrator, fetcher, [_listing("A"), _listing("B")])
    _run(orchestrator, fetcher, [_listing("A")])
    assert _rows(sqlite_engine)["B"].sync_status == "archived"

    result = _run(orchestrator, fetcher, [_listing("A"), _listing("B")])

    assert result.archived == 0
    assert _rows(sqlite_engine)["B"].sync_status == "active"
    assert _rows(sqlite_engine)["B"].is_deleted is False


@pytest.mark.unit
def test_single_mode_never_archives(
    orchestrator: ListingSyncOrchestrator, fetcher: Mock, sqlite_engine: Engine
) -> None:
    _run(orchestrator, fetcher, [_listing("A"), _listing("B"), _listing("C")])

    result = _run(orchestrator, fetcher, [_listing("B", title="Renamed")], listing_id="B")

    assert result.mode is SyncMode.SINGLE
    assert result.to_response() == {
        "success": True,
        "synced": 1,
        "archived": 0,
        "listing_id": "B",
    }
    fetcher.fetch.assert_called_with("test-token", "B")
    rows = _rows(sqlite_engine)
    assert rows["B"].title == "Renamed"
    assert all(row.sync_status == "active" for row in rows.values())
    assert _logs(sqlite_engine)[-1].message == "Synced 1 listing (single: B)"


@pytest.mark.unit
def test_empty_catalog_does_not_archive(
    orchestrator: ListingSyncOrchestrator, fetcher: Mock, sqlite_engine: Engine
) -> None:
    """Test that a full run with nothing to upsert leaves existing rows active."""
    _run(orchestrator, fetcher, [_listing("A"), _listing("B")])

    result = _run(orchestrator, fetcher, [])

    assert result.success is True
    assert result.synced == 0
    assert result.archived == 0
    assert all(row.sync_status == "active" for row in _rows(sqlite_engine).values())


@pytest.mark.unit
def test_malformed_record_is_skipped(
    orchestrator: ListingSyncOrchestrator, fetcher: Mock, sqlite_engine: Engine
) -> None:
    """One malformed record out of ten: nine synced, run still succeeds."""
    listings: list[Any] = [_listing(f"L{i}") for i in range(9)]
    listings.insert(4, {"title": "no id here"})

    result = _run(orchestrator, fetcher, listings)

    assert result.success is True
    assert result.synced == 9
    assert len(result.failures) == 1
    assert len(_rows(sqlite_engine)) == 9
    assert _logs(sqlite_engine)[-1].items_count == 9


@pytest.mark.unit
def test_failed_upsert_is_skipped(
    orchestrator: ListingSyncOrchestrator, fetcher: Mock, sqlite_engine: Engine
) -> None:
    with patch("sync_guesty.services.sync.upsert_listing", side_effect=_upsert_failing_for("B")):
        result = _run(orchestrator, fetcher, [_listing("A"), _listing("B"), _listing("C")])

    assert result.success is True
    assert result.synced == 2
    assert [type(failure) for failure in result.failures] == [UpsertError]
    assert set(_rows(sqlite_engine)) == {"A", "C"}


@pytest.mark.unit
def test_failed_upsert_leaves_existing_row_exposed_to_archival(
    orchestrator: ListingSyncOrchestrator, fetcher: Mock, sqlite_engine: Engine
) -> None:
    """An existing row whose refresh fails is not in the synced set and gets archived."""
    _run(orchestrator, fetcher, [_listing("A"), _listing("B")])

    with patch("sync_guesty.services.sync.upsert_listing", side_effect=_upsert_failing_for("B")):
        result = _run(orchestrator, fetcher, [_listing("A"), _listing("B")])

    assert result.synced == 1
    assert result.archived == 1
    assert _rows(sqlite_engine)["B"].sync_status == "archived"


@pytest.mark.unit
def test_auth_failure_writes_error_log(
    orchestrator: ListingSyncOrchestrator,
    token_provider: Mock,
    fetcher: Mock,
    sqlite_engine: Engine,
) -> None:
    token_provider.get_token.side_effect = AuthError("Failed to get Guesty token: HTTP 401", 401)

    result = orchestrator.run()

    assert result.success is False
    assert result.to_response() == {
        "success": False,
        "error": "Failed to get Guesty token: HTTP 401",
    }
    fetcher.fetch.assert_not_called()
    logs = _logs(sqlite_engine)
    assert len(logs) == 1
    assert logs[0].status == "error"
    assert logs[0].items_count == 0
    assert logs[0].message == "Failed to sync listings: Failed to get Guesty token: HTTP 401"


@pytest.mark.unit
def test_fetch_failure_writes_error_log_and_nothing_else(
    orchestrator: ListingSyncOrchestrator, fetcher: Mock, sqlite_engine: Engine
) -> None:
    """Test that a fatal fetch error leaves the mirror untouched."""
    _run(orchestrator, fetcher, [_listing("A")])
    fetcher.fetch.side_effect = FetchError(
        "Guesty rate limit persisted after 3 retries", status_code=429, attempts=4, page=1
    )

    result = orchestrator.run()

    assert result.success is False
    assert "rate limit" in result.error
    assert _rows(sqlite_engine)["A"].sync_status == "active"
    logs = _logs(sqlite_engine)
    assert [log.status for log in logs] == ["success", "error"]


@pytest.mark.unit
def test_single_mode_failure_message(
    orchestrator: ListingSyncOrchestrator, fetcher: Mock, sqlite_engine: Engine
) -> None:
    fetcher.fetch.side_effect = FetchError("Failed to fetch single listing X: HTTP 404", 404)

    result = orchestrator.run(listing_id="X")

    assert result.success is False
    assert result.listing_id == "X"
    assert _logs(sqlite_engine)[0].message.startswith("Failed to sync listings (single): ")


@pytest.mark.unit
def test_unexpected_error_is_logged_and_reraised(
    orchestrator: ListingSyncOrchestrator, fetcher: Mock, sqlite_engine: Engine
) -> None:
    fetcher.fetch.side_effect = RuntimeError("kaboom")

    with pytest.raises(RuntimeError, match="kaboom"):
        orchestrator.run()

    logs = _logs(sqlite_engine)
    assert len(logs) == 1
    assert logs[0].status == "error"


@pytest.mark.unit
def test_archive_failure_does_not_fail_run(
    orchestrator: ListingSyncOrchestrator, fetcher: Mock, sqlite_engine: Engine
) -> None:
    with patch(
        "sync_guesty.services.sync.archive_missing_listings",
        side_effect=ArchiveError("Failed to archive listings: locked", candidates=3),
    ):
        result = _run(orchestrator, fetcher, [_listing("A")])

    assert result.success is True
    assert result.synced == 1
    assert result.archived == 0
    assert isinstance(result.failures[-1], ArchiveError)
    assert _logs(sqlite_engine)[-1].status == "success"


@pytest.mark.unit
def test_sync_log_failure_does_not_fail_run(
    orchestrator: ListingSyncOrchestrator, fetcher: Mock, sqlite_engine: Engine
) -> None:
    with patch(
        "sync_guesty.services.sync_log.insert_sync_log",
        side_effect=LogError("Failed to write sync log: table missing"),
    ):
        result = _run(orchestrator, fetcher, [_listing("A")])

    assert result.success is True
    assert result.synced == 1
    assert _logs(sqlite_engine) == []


@pytest.mark.unit
def test_run_logger_is_called_once_per_run(
    sync_config: SyncConfig,
    sqlite_engine: Engine,
    token_provider: Mock,
    fetcher: Mock,
    listing_factory: Callable[..., list[dict[str, Any]]],
) -> None:
    run_logger = Mock()
    orchestrator = ListingSyncOrchestrator(
        sync_config,
        sqlite_engine,
        token_provider=token_provider,
        fetcher=fetcher,
        run_logger=run_logger,
    )

    _run(orchestrator, fetcher, listing_factory(3))

    run_logger.log.assert_called_once()
    outcome = run_logger.log.call_args[0][0]
    assert outcome.count == 3
    assert outcome.status == "success"


@pytest.mark.unit
def test_out_of_range_number_does_not_fail_run(
    orchestrator: ListingSyncOrchestrator, fetcher: Mock, sqlite_engine: Engine
) -> None:
    result = _run(
        orchestrator, fetcher, [_listing("A"), _listing("B", bathrooms=10**400), _listing("C")]
    )

    assert result.success is True
    assert result.synced == 3
    assert _rows(sqlite_engine)["B"].bathrooms is None
