# recipe_flow/core/timestamps.py
from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Optional

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
EPOCH_ISO = "1970-01-01T00:00:00.000Z"

# fromisoformat before 3.11 only takes 3 or 6 fraction digits
_FRACTION = re.compile(r"(T\d{2}:\d{2}:\d{2})\.(\d+)")


def format_iso(dt: datetime) -> str:
    """UTC, millisecond precision, 'Z' suffix: 2024-01-15T10:00:00.000Z"""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _six_digit_fraction(m: re.Match) -> str:
    return f"{m.group(1)}.{m.group(2)[:6].ljust(6, '0')}"


def to_millis(value: Optional[str]) -> int:
    """Milliseconds since the epoch; missing or unparseable timestamps count as 0."""
    if not value or not isinstance(value, str):
        return 0
    text = _FRACTION.sub(_six_digit_fraction, value.strip().replace("Z", "+00:00"), count=1)
    try:
        dt = datetime.fromisoformat(text)
    except ValueError:
        return 0
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return (dt - EPOCH) // timedelta(milliseconds=1)
