"""UTC datetime utilities."""

from datetime import datetime, timezone
from typing import Optional

from dateutil import parser as date_parser

# Epoch values at or above this are milliseconds (year 5138 in seconds)
MILLISECOND_EPOCH_FLOOR = 1e11


def utc_now() -> datetime:
    """
    Return current UTC time as timezone-aware datetime.

    Use this instead of datetime.now() or datetime.utcnow() so every
    first_synced_at / last_synced / sync log timestamp is stored in UTC.

    Returns:
        Timezone-aware datetime in UTC
    """
    return datetime.now(timezone.utc)


def parse_reset_time(value: Optional[str], now: Optional[datetime] = None) -> Optional[datetime]:
    """
    Interpret a rate-limit reset header as an absolute UTC datetime.

    Upstreams send this either as a delta in seconds, an epoch timestamp (seconds
    or milliseconds), or an HTTP/ISO date string. Out-of-range values such as
    inf or nan yield None since the header is only used for diagnostics.

    Args:
        value: Raw header value
        now: Reference time for delta values (defaults to utc_now())

    Returns:
        Timezone-aware datetime, or None if the value is missing or unparseable

    Example:
        >>> parse_reset_time("Wed, 21 Oct 2026 07:28:00 GMT").year
        2026
    """
    if not value:
        return None

    value = value.strip()
    reference = now or utc_now()

    try:
        number = float(value)
    except ValueError:
        number = None

    if number is not None:
        # Anything below a year of seconds is a delta, not an epoch
        if number < 365 * 24 * 3600:
            number += reference.timestamp()
        elif number >= MILLISECOND_EPOCH_FLOOR:
            number /= 1000
        try:
            return datetime.fromtimestamp(number, tz=timezone.utc)
        except (ValueError, OverflowError, OSError):
            return None

    try:
        parsed = date_parser.parse(value)
    except (ValueError, OverflowError):
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
