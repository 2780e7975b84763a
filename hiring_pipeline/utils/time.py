from datetime import date, datetime, time, timedelta, timezone
from typing import Callable, Iterator

# Injected "now" provider; services default to utc_now
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Return a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def weekday_index(day: date) -> int:
    """Weekday with Sunday as 0 and Saturday as 6."""
    return (day.weekday() + 1) % 7


def iter_days(start_date: date, end_date: date) -> Iterator[date]:
    """Yield every calendar day from start_date to end_date inclusive."""
    current = start_date
    while current <= end_date:
        yield current
        current += timedelta(days=1)


def slot_start_datetime(day: date, start_time: str) -> datetime:
    """Combine a slot date and its "HH:MM" start into a UTC timestamp."""
    return datetime.combine(day, time.fromisoformat(start_time), tzinfo=timezone.utc)
