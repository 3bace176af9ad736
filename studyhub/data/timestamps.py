"""ISO 8601 timestamp utilities.

All stored timestamps are UTC with microsecond precision and an explicit
``+00:00`` offset, so they have a fixed width and sort lexicographically in
the same order as chronologically. Secondary-index sort keys rely on this.
"""

from __future__ import annotations

from datetime import UTC, datetime


def now_iso8601() -> datetime:
    """Get the current UTC datetime with timezone information.

    Returns
    -------
    datetime
        Current UTC datetime.
    """
    return datetime.now(UTC)


def parse_iso8601(timestamp: str) -> datetime:
    """Parse an ISO 8601 timestamp string.

    Naive timestamps are taken to be UTC.

    Parameters
    ----------
    timestamp : str
        ISO 8601 formatted timestamp (e.g. "2026-03-05T09:00:00+00:00").

    Returns
    -------
    datetime
        Parsed timezone-aware datetime.

    Examples
    --------
    >>> parse_iso8601("2026-03-05T09:00:00Z").year
    2026
    """
    dt = datetime.fromisoformat(timestamp)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt


def format_iso8601(dt: datetime) -> str:
    """Format a datetime as a fixed-width UTC ISO 8601 string.

    Parameters
    ----------
    dt : datetime
        Datetime to format. Naive values are assumed to be UTC.

    Returns
    -------
    str
        ISO 8601 string with microseconds and ``+00:00`` offset.

    Examples
    --------
    >>> from datetime import datetime, UTC
    >>> format_iso8601(datetime(2026, 3, 5, 9, 0, tzinfo=UTC))
    '2026-03-05T09:00:00.000000+00:00'
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC).isoformat(timespec="microseconds")


def utc_timestamp() -> str:
    """Return the current time as a stored timestamp string."""
    return format_iso8601(now_iso8601())
