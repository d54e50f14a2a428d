"""Utility functions for domain models."""

import time
from datetime import UTC, datetime

from memory_context.core.constants import CONTEXT_TIMESTAMP_FORMAT, MS_PER_DAY


def utc_now() -> datetime:
    """Get the current UTC datetime with timezone awareness."""
    return datetime.now(UTC)


def now_millis() -> int:
    """Wall-clock time in milliseconds since the epoch."""
    return time.time_ns() // 1_000_000


def age_in_days(timestamp: int, now: int) -> int:
    """Whole days elapsed between ``timestamp`` and ``now`` (both epoch ms).

    Timestamps in the future count as age 0.
    """
    return max(0, (now - timestamp) // MS_PER_DAY)


def format_timestamp(timestamp: int, fmt: str = CONTEXT_TIMESTAMP_FORMAT) -> str:
    """Render an epoch-ms timestamp in local time.

    Timestamps outside the platform's datetime range render as the raw
    millisecond value instead of failing the whole context block.
    """
    try:
        return datetime.fromtimestamp(timestamp / 1000).strftime(fmt)
    except (ValueError, OverflowError, OSError):
        return str(timestamp)
