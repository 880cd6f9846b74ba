"""Utility helpers for reusable functionality."""

from .datetime import (
    combine_local,
    ensure_utc,
    resolve_timezone,
    to_naive_utc,
    utc_now,
)

__all__ = [
    "combine_local",
    "ensure_utc",
    "resolve_timezone",
    "to_naive_utc",
    "utc_now",
]
