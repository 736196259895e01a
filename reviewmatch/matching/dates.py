from datetime import datetime, timezone

from ..config import DATE_WINDOW_DAYS

SECONDS_PER_DAY = 86400


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def in_range(
    submitted: datetime | None,
    posted: datetime | None,
    max_days_apart: int = DATE_WINDOW_DAYS,
) -> bool:
    """True if the two timestamps are at most max_days_apart days apart.

    The difference is measured exactly (fractional days), in either
    direction. A missing timestamp never counts as in range.
    """
    if submitted is None or posted is None:
        return False
    delta = _as_utc(posted) - _as_utc(submitted)
    days_apart = abs(delta.total_seconds()) / SECONDS_PER_DAY
    return days_apart <= max_days_apart
