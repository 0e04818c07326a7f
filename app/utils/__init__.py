"""Shared utility helpers used across connectors and services."""

import math
from datetime import datetime, timezone


def safe_int(v):
    """Safely convert a value to int, returning None on failure."""
    if v is None:
        return None
    try:
        return int(v)
    except (ValueError, TypeError):
        try:
            return int(float(v))
        except (ValueError, TypeError):
            return None


def safe_float(v):
    """Safely convert a value to float, returning None on failure."""
    if v is None:
        return None
    try:
        return float(v)
    except (ValueError, TypeError):
        return None


def timestamp_of(value: str | None) -> float:
    """Epoch seconds for an ISO-ish timestamp string; 0 when missing or unparseable."""
    if not value:
        return 0.0
    try:
        dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return 0.0
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.timestamp()


def round_half_up(x: float) -> int:
    """Round .5 away from zero for positives (round() would give 12 for 12.5)."""
    return int(math.floor(x + 0.5))
