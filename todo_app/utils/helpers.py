"""
Date and time helpers for due-date handling
"""
import time
from datetime import datetime, timedelta
from typing import Optional


def now_ms() -> int:
    """Current epoch time in milliseconds"""
    return time.time_ns() // 1_000_000


def parse_due_date(value: Optional[str], tz=None) -> Optional[datetime]:
    """Parse an ISO-8601 due date into a naive datetime.

    Date-only values mean local midnight. Aware values are converted to `tz`
    (the local zone when None) before the offset is dropped. Anything that
    doesn't parse is treated as "no due date".
    """
    if not value or not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        try:
            parsed = parsed.astimezone(tz).replace(tzinfo=None)
        except (ValueError, OverflowError):
            # Offset pushes the value outside the representable range
            return None
    return parsed


def start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def next_day_start(moment: datetime) -> datetime:
    """Exclusive upper bound of `moment`'s calendar day"""
    return start_of_day(moment) + timedelta(days=1)


def day_range(moment: datetime, days: int) -> list[tuple[datetime, datetime]]:
    """Half-open [start, next_start) windows for `days` calendar days from `moment`'s day"""
    first = start_of_day(moment)
    windows = []
    for offset in range(days):
        current = first + timedelta(days=offset)
        windows.append((current, next_day_start(current)))
    return windows
