"""Utilities for the keygen CLI."""

from .logging import setup_logging
from .timeutils import format_timestamp, parse_duration, parse_timestamp, utc_now

__all__ = [
    "setup_logging",
    "format_timestamp",
    "parse_duration",
    "parse_timestamp",
    "utc_now",
]
