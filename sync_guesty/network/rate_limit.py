"""Parsing of Guesty rate-limit response headers."""

from dataclasses import dataclass
from datetime import datetime
from typing import Mapping, Optional

from sync_guesty.utils.datetime import parse_reset_time

# Guesty reports per-second/minute/hour windows; the generic names come first
LIMIT_HEADERS = (
    "X-RateLimit-Limit",
    "X-RateLimit-Limit-Minute",
    "X-RateLimit-Limit-Second",
    "X-RateLimit-Limit-Hour",
)
REMAINING_HEADERS = (
    "X-RateLimit-Remaining",
    "X-RateLimit-Remaining-Minute",
    "X-RateLimit-Remaining-Second",
    "X-RateLimit-Remaining-Hour",
)
RESET_HEADERS = ("X-RateLimit-Reset", "RateLimit-Reset")


@dataclass(frozen=True)
class RateLimitInfo:
    limit: Optional[int] = None
    remaining: Optional[int] = None
    reset_at: Optional[datetime] = None
    retry_after: Optional[str] = None

    def as_log_fields(self) -> dict[str, object]:
        return {
            "rate_limit": self.limit,
            "rate_remaining": self.remaining,
            "rate_reset_at": self.reset_at.isoformat() if self.reset_at else None,
            "retry_after": self.retry_after,
        }


def _first_header(headers: Mapping[str, str], names: tuple[str, ...]) -> Optional[str]:
    for name in names:
        value = headers.get(name)
        if isinstance(value, str) and value.strip():
            return value
    return None


def _as_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(float(value))
    except (ValueError, OverflowError):
        return None


def extract_rate_limit_info(headers: Optional[Mapping[str, str]]) -> Optional[RateLimitInfo]:
    """
    Read rate-limit metadata from a response's headers.

    Args:
        headers: Response headers (requests' case-insensitive dict or a plain dict)

    Returns:
        RateLimitInfo if any rate-limit header was present, otherwise None
    """
    if not headers:
        return None

    limit = _as_int(_first_header(headers, LIMIT_HEADERS))
    remaining = _as_int(_first_header(headers, REMAINING_HEADERS))
    reset_raw = _first_header(headers, RESET_HEADERS)
    retry_after = _first_header(headers, ("Retry-After",))

    if limit is None and remaining is None and reset_raw is None and retry_after is None:
        return None

    return RateLimitInfo(
        limit=limit,
        remaining=remaining,
        reset_at=parse_reset_time(reset_raw or retry_after),
        retry_after=retry_after,
    )
