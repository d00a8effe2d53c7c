import sys
from pathlib import Path
from typing import Any

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import argparse
import json
import os

from sync_guesty.config import load_sync_config
from sync_guesty.network.auth import TokenProvider
from sync_guesty.network.client import ListingsFetcher

FIXTURE_DIR = "tests/fixtures"


# === FIXTURE SAVE ===


def save_fixture(data: Any, filename: str) -> None:
    os.makedirs(FIXTURE_DIR, exist_ok=True)
    path = f"{FIXTURE_DIR}/{filename}"
    with open(path, "w") as f:
        json.dump(data, f, indent=2)
    print(f"Saved {filename} ({len(data) if isinstance(data, list) else 'dict'})")


# === Fetch and save ===


def fetch_listing_fixtures(listing_id: str | None = None) -> None:
    config = load_sync_config()
    token = TokenProvider(config).get_token()
    fetcher = ListingsFetcher(config)

    if listing_id:
        save_fixture(fetcher.fetch_one(token, listing_id), f"guesty_listing_{listing_id}.json")
        return

    save_fixture(fetcher.fetch_page(token, page=1), "guesty_listings_page_1.json")
    save_fixture(fetcher.fetch_all(token), "guesty_listings_paginated.json")


# === CLI ===

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Fetch and save Guesty listing fixtures.")
    parser.add_argument("--listing-id", help="Save a single listing instead of the catalog")
    args = parser.parse_args()

    fetch_listing_fixtures(args.listing_id)
