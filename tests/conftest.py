"""
Shared fixtures: in-memory database, sync configuration and fake Guesty responses.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Generator, Optional
from unittest.mock import Mock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from sync_guesty.config import SyncConfig
from sync_guesty.models.base import Base
from sync_guesty.models.listings import Listing  # noqa: F401
from sync_guesty.models.sync_logs import SyncLog  # noqa: F401

FIXTURE_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def sqlite_engine() -> Generator[Engine, None, None]:
    """
    In-memory SQLite engine with guesty_listings and sync_logs created.

    StaticPool keeps the single in-memory database alive across connections.
    """
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def sync_config() -> SyncConfig:
    """SyncConfig pointing at a fake Guesty host."""
    return SyncConfig(
        client_id="test-client-id",
        client_secret="test-client-secret",
        token_url="https://guesty.test/oauth2/token",
        api_url="https://guesty.test/v1/",
    )


@pytest.fixture
def make_response() -> Callable[..., Mock]:
    """
    Factory for fake requests.Response objects.

    Example:
        >>> res = make_response(200, {"results": []})
        >>> res.json()
        {'results': []}
    """

    def _make(
        status_code: int = 200,
        body: Any = None,
        headers: Optional[dict[str, str]] = None,
    ) -> Mock:
        res = Mock(status_code=status_code, headers=headers or {})
        if isinstance(body, Exception):
            res.text = "<html>Bad Gateway</html>"
            res.json.side_effect = body
        else:
            res.text = json.dumps(body) if body is not None else ""
            res.json.return_value = body
        return res

    return _make


@pytest.fixture
def sample_listings() -> list[dict[str, Any]]:
    """Recorded-shape Guesty listings (two active, one inactive)."""
    with open(FIXTURE_DIR / "listings.json") as f:
        return json.load(f)["results"]


def make_listings(count: int, prefix: str = "listing") -> list[dict[str, Any]]:
    return [
        {"_id": f"{prefix}-{i:04d}", "title": f"Listing {i}", "status": "active"}
        for i in range(count)
    ]


@pytest.fixture
def listing_factory() -> Callable[..., list[dict[str, Any]]]:
    """Build N minimal active upstream records with distinct ids."""
    return make_listings
