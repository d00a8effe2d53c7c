"""
Client for fetching listings from the Guesty Open API, page by page, with
bounded exponential backoff on rate limiting.
"""

import time
from typing import Any, Dict, List, Optional
from urllib.parse import quote, urljoin

import requests
import structlog

from sync_guesty.config import SyncConfig
from sync_guesty.errors import FetchError
from sync_guesty.metrics import api_latency, api_requests, rate_limit_remaining, rate_limit_retries
from sync_guesty.network.rate_limit import RateLimitInfo, extract_rate_limit_info
from sync_guesty.network.retry import RetryPolicy

logger = structlog.get_logger(__name__)


def is_active_listing(listing: Any) -> bool:
    """
    Check whether an upstream record counts as active for a full sync.

    Records without a status are treated as active.
    """
    if not isinstance(listing, dict):
        # Let the mapper reject it as a per-record failure
        return True
    status = listing.get("status")
    return not status or str(status).lower() == "active"


def filter_active_listings(listings: List[Any]) -> List[Any]:
    return [listing for listing in listings if is_active_listing(listing)]


class ListingsFetcher:
    """
    Fetches Guesty listings, either one by id or the whole catalog.

    Pages are requested sequentially because every call draws on the same
    per-credential rate-limit budget.

    Attributes:
        config: Run configuration (API URL, batch size, timeouts)
        session: HTTP session for all requests
        retry_policy: Backoff applied to 429 responses
    """

    def __init__(
        self,
        config: SyncConfig,
        session: Optional[requests.Session] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        self.config = config
        self.session = session if session is not None else requests.Session()
        self.retry_policy = retry_policy or RetryPolicy(
            max_retries=config.max_retries,
            base_delay=config.backoff_base,
            max_delay=config.backoff_cap,
        )

    def fetch(self, token: str, listing_id: Optional[str] = None) -> List[Any]:
        """
        Fetch listings for one sync run.

        Args:
            token: Guesty bearer token
            listing_id: If given, fetch only this listing

        Returns:
            list: Raw upstream records. The full catalog is filtered to active
                  listings; a single record is returned as-is.

        Raises:
            FetchError: On any fatal upstream failure. Nothing from earlier
                        pages is returned in that case.
        """
        if listing_id:
            return [self.fetch_one(token, listing_id)]

        listings = self.fetch_all(token)
        active = filter_active_listings(listings)
        logger.info(
            "listings_fetched",
            total=len(listings),
            active=len(active),
            skipped_inactive=len(listings) - len(active),
        )
        return active

    def _headers(self, token: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {token}", "Accept": "application/json"}

    def _get(
        self, url: str, token: str, endpoint: str, params: Optional[Dict[str, Any]] = None
    ) -> requests.Response:
        start_time = time.time()
        try:
            res = self.session.get(
                url,
                headers=self._headers(token),
                params=params,
                timeout=self.config.request_timeout,
            )
        except requests.RequestException as e:
            logger.error("guesty_request_failed", endpoint=endpoint, params=params, error=str(e))
            raise FetchError(f"Guesty request failed: {e}", page=(params or {}).get("page")) from e

        api_latency.labels(endpoint=endpoint).observe(time.time() - start_time)
        api_requests.labels(endpoint=endpoint, status_code=str(res.status_code)).inc()
        return res

    def _json(self, res: requests.Response, **context: Any) -> Any:
        try:
            return res.json()
        except ValueError as e:
            raise FetchError("Guesty returned a non-JSON body", status_code=res.status_code, **context) from e

    def fetch_one(self, token: str, listing_id: str) -> Any:
        """
        Fetch a single listing by id. Any non-2xx response is fatal.

        Args:
            token: Guesty bearer token
            listing_id: Guesty listing id

        Returns:
            The raw listing record
        """
        url = urljoin(self.config.api_url, f"listings/{quote(listing_id, safe='')}")
        res = self._get(url, token, endpoint="listing")

        if not 200 <= res.status_code < 300:
            logger.error("listing_fetch_failed", listing_id=listing_id, status_code=res.status_code)
            raise FetchError(
                f"Failed to fetch single listing {listing_id}: HTTP {res.status_code}",
                status_code=res.status_code,
                listing_id=listing_id,
            )

        return self._json(res, listing_id=listing_id)

    def fetch_page(self, token: str, page: int) -> List[Any]:
        """
        Fetch one page of the listing catalog, retrying while rate limited.

        A 429 sleeps min(base * 2**retries, cap) and re-requests the same page;
        once retries exceed the policy's ceiling the run is aborted.

        Args:
            token: Guesty bearer token
            page: 1-based page number

        Returns:
            list: The page's "results" array
        """
        url = urljoin(self.config.api_url, "listings")
        params = {"limit": self.config.batch_size, "page": page}
        retries = 0

        while True:
            res = self._get(url, token, endpoint="listings", params=params)
            rate_info = extract_rate_limit_info(res.headers)
            if rate_info and rate_info.remaining is not None:
                rate_limit_remaining.set(rate_info.remaining)

            if res.status_code == 429:
                retries += 1
                fields = rate_info.as_log_fields() if rate_info else {}
                if self.retry_policy.exhausted(retries):
                    logger.error("rate_limit_retries_exhausted", page=page, attempts=retries, **fields)
                    raise FetchError(
                        f"Guesty rate limit persisted after {self.retry_policy.max_retries} retries",
                        status_code=429,
                        attempts=retries,
                        page=page,
                    )
                rate_limit_retries.inc()
                delay = self.retry_policy.delay_for(retries)
                logger.warning("rate_limited", page=page, attempt=retries, sleep_seconds=delay, **fields)
                self.retry_policy.sleep(delay)
                continue

            if not 200 <= res.status_code < 300:
                logger.error("listings_page_failed", page=page, status_code=res.status_code)
                raise FetchError(
                    f"Guesty API error on page {page}: HTTP {res.status_code}",
                    status_code=res.status_code,
                    page=page,
                )

            body = self._json(res, page=page)
            results = body.get("results") if isinstance(body, dict) else None
            if not isinstance(results, list):
                logger.error("listings_page_malformed", page=page, body_type=type(body).__name__)
                raise FetchError(
                    "Invalid response format from Guesty API", status_code=res.status_code, page=page
                )

            self._throttle_if_low(rate_info, page)
            return results

    def _throttle_if_low(self, rate_info: Optional[RateLimitInfo], page: int) -> None:
        if rate_info is None or rate_info.remaining is None:
            return
        if rate_info.remaining < self.config.low_remaining_threshold:
            logger.info(
                "rate_limit_low",
                page=page,
                remaining=rate_info.remaining,
                sleep_seconds=self.config.low_remaining_delay,
            )
            self.retry_policy.sleep(self.config.low_remaining_delay)

    def fetch_all(self, token: str) -> List[Any]:
        """
        Fetch every page of the listing catalog.

        Paging stops at the first page that comes back empty or shorter than
        the batch size, so no total count is needed from upstream.

        Args:
            token: Guesty bearer token

        Returns:
            list: All records across all pages, unfiltered
        """
        listings: List[Any] = []
        page = 1

        while True:
            results = self.fetch_page(token, page)
            listings.extend(results)
            logger.info("listing_page_fetched", page=page, count=len(results), total=len(listings))

            if len(results) < self.config.batch_size:
                break
            page += 1

        return listings
