"""Helpers for working with timezone-aware datetimes."""

from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from functools import lru_cache
from typing import Final

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

_DEFAULT_TIMEZONE: Final[str] = "UTC"
_OFFSET_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^(?:UTC|GMT)(?P<sign>[+-])(?P<hours>\d{1,2})(?::?(?P<minutes>\d{2}))?$",
    re.IGNORECASE,
)


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""

    return datetime.now(tz=timezone.utc)


def ensure_utc(value: datetime | None) -> datetime | None:
    """Normalize ``value`` to UTC, treating naive values as UTC already."""

    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_naive_utc(value: datetime | None) -> datetime | None:
    """Return ``value`` expressed in UTC without ``tzinfo``.

    SQLite has no timezone-aware column type, so timestamps are stored as naive
    UTC values and re-attached to UTC when read back.
    """

    normalized = ensure_utc(value)
    if normalized is None:
        return None
    return normalized.replace(tzinfo=None)


def combine_local(day: date, at: time | None, tz: tzinfo) -> datetime | None:
    """Return the aware UTC instant for a wall-clock ``day`` and ``at`` in ``tz``."""

    if at is None:
        return None
    local = datetime.combine(day, at.replace(tzinfo=None)).replace(tzinfo=tz)
    return local.astimezone(timezone.utc)


@lru_cache(maxsize=32)
def resolve_timezone(tz_name: str | None) -> tzinfo:
    """Resolve ``tz_name`` into a ``tzinfo`` instance.

    Accepts IANA names (``Europe/Madrid``) and fixed offsets (``UTC-05:00``).
    Unknown values fall back to UTC.
    """

    name = (tz_name or "").strip() or _DEFAULT_TIMEZONE
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        match = _OFFSET_PATTERN.match(name)
        if match:
            sign = -1 if match.group("sign") == "-" else 1
            hours = int(match.group("hours"))
            minutes = int(match.group("minutes") or 0)
            offset = timedelta(hours=hours, minutes=minutes)
            return timezone(sign * offset)
    return timezone.utc
