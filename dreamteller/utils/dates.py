"""Canonical calendar-day keys used to group journal entries."""

import re
from datetime import date, datetime
from typing import Union

DATE_KEY_PATTERN = re.compile(r"^\d{8}$")


def date_key(value: Union[date, datetime]) -> str:
    """
    Format a day as its ``YYYYMMDD`` journal key.

    Built from the proleptic Gregorian fields directly, never through
    ``strftime``, so the result is the same under every locale. A datetime
    is keyed by its own wall-clock day; no timezone conversion is applied.
    """
    return f"{value.year:04d}{value.month:02d}{value.day:02d}"


def parse_date_key(key: str) -> date:
    """Inverse of :func:`date_key`. Raises ValueError for anything but 8 digits naming a real day."""
    if not DATE_KEY_PATTERN.match(key or ""):
        raise ValueError(f"Invalid date key: {key!r}")
    return date(int(key[:4]), int(key[4:6]), int(key[6:]))


def month_path_segment(year: int, month: int) -> str:
    """``year/MM`` with the month zero-padded to two digits."""
    if not 1 <= month <= 12:
        raise ValueError(f"Month out of range: {month}")
    return f"{year}/{month:02d}"
