"""Shared time utilities"""

from datetime import datetime, timezone


def utcnow() -> datetime:
    """
    Current UTC time as a naive datetime.

    All DateTime columns store naive UTC, so comparisons against
    deadlines must use the same representation.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)
