"""Timezone-aware time helpers.

Everything stored or compared by the gateway is UTC; SQLite hands datetimes
back without tzinfo, so readers normalise through ``ensure_utc``.
"""

from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def unix_seconds(value: datetime) -> int:
    """Whole seconds since the epoch, as OpenAI-style ``created`` fields expect."""

    return int(ensure_utc(value).timestamp())


__all__ = ["ensure_utc", "unix_seconds", "utc_now"]
