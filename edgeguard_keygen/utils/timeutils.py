"""Timestamp and duration helpers."""

import re
from datetime import datetime, timedelta, timezone
from typing import Optional

_FRACTION_RE = re.compile(r"\.(\d+)")
_DURATION_RE = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h|d|w)")

_DURATION_UNITS = {
    "ms": timedelta(milliseconds=1),
    "s": timedelta(seconds=1),
    "m": timedelta(minutes=1),
    "h": timedelta(hours=1),
    "d": timedelta(days=1),
    "w": timedelta(weeks=1),
}


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def is_zero_time(value: Optional[datetime]) -> bool:
    """Whether a timestamp is unset (``None`` or the zero instant)."""
    if value is None:
        return True
    return value.replace(tzinfo=None) == datetime.min


def format_timestamp(value: datetime) -> str:
    """Format a datetime as RFC 3339 in UTC, e.g. ``2024-05-01T12:00:00Z``."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    text = value.astimezone(timezone.utc).isoformat()
    return text.replace("+00:00", "Z")


def parse_timestamp(text: str) -> datetime:
    """
    Parse an RFC 3339 timestamp into an aware datetime.

    Accepts a trailing ``Z`` and fractional seconds of any precision
    (nanosecond values are truncated to microseconds). Naive values are
    taken as UTC.

    Raises:
        ValueError: If the text is not a timestamp
    """
    if not isinstance(text, str) or not text:
        raise ValueError(f"Invalid timestamp: {text!r}")

    normalized = text.strip()
    if normalized.endswith(("Z", "z")):
        normalized = normalized[:-1] + "+00:00"

    # fromisoformat only takes up to 6 fractional digits on older interpreters
    normalized = _FRACTION_RE.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), normalized, count=1)

    value = datetime.fromisoformat(normalized)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def parse_duration(text: str) -> timedelta:
    """
    Parse a duration such as ``2160h``, ``90d``, ``1h30m`` or ``45s``.

    A bare number is read as hours.

    Raises:
        ValueError: If the text is not a duration
    """
    if isinstance(text, timedelta):
        return text

    value = str(text).strip().lower()
    if not value:
        raise ValueError("Duration cannot be empty")

    if re.fullmatch(r"\d+(?:\.\d+)?", value):
        return timedelta(hours=float(value))

    position = 0
    total = timedelta()
    for match in _DURATION_RE.finditer(value):
        if match.start() != position:
            raise ValueError(f"Invalid duration: {text}")
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()

    if position != len(value):
        raise ValueError(f"Invalid duration: {text}")

    return total


def format_duration(value: timedelta) -> str:
    """Render a timedelta compactly, e.g. ``90d`` or ``36h``."""
    seconds = int(value.total_seconds())
    if seconds and seconds % 86400 == 0:
        return f"{seconds // 86400}d"
    if seconds and seconds % 3600 == 0:
        return f"{seconds // 3600}h"
    if seconds and seconds % 60 == 0:
        return f"{seconds // 60}m"
    return f"{seconds}s"
