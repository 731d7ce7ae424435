"""
Core Data Timestamps

Bear stores dates the Core Data way: seconds (float) since
2001-01-01 00:00:00 UTC.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

CORE_DATA_EPOCH = datetime(2001, 1, 1, tzinfo=UTC)
CORE_DATA_EPOCH_UNIX = 978307200  # CORE_DATA_EPOCH as a Unix timestamp


def from_core_data(value: float | int | None) -> datetime | None:
    """
    Convert a Core Data timestamp to an aware UTC datetime.

    Uses timedelta arithmetic rather than ``fromtimestamp`` so the result
    is exact and independent of the local timezone: ``0`` maps to
    2001-01-01T00:00:00Z.

    Returns:
        ``None`` when the column is NULL.
    """
    if value is None:
        return None
    return CORE_DATA_EPOCH + timedelta(seconds=float(value))

