"""Departure time-of-day buckets and small statistics helpers."""

from collections.abc import Iterable
from datetime import datetime
from typing import TypeVar

T = TypeVar("T")

# (window, start hour inclusive, end hour exclusive), in day order
TIME_WINDOWS: tuple[tuple[str, int, int], ...] = (
    ("early_morning", 5, 8),
    ("morning", 8, 11),
    ("afternoon", 12, 16),
    ("evening", 16, 20),
    ("late_evening", 20, 23),
)

# Indexed by BookingData.day_of_week (0 = Sunday)
DAY_NAMES: tuple[str, ...] = (
    "sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday",
)

_WINDOW_ORDER = {name: i for i, (name, _, _) in enumerate(TIME_WINDOWS)}


def get_time_window(hour: int) -> str:
    for name, start, end in TIME_WINDOWS:
        if start <= hour < end:
            return name
    # 11:xx and 23:xx sit between buckets and land in early_morning
    return "late_evening" if hour < 5 else "early_morning"


def are_adjacent_windows(a: str, b: str) -> bool:
    """True when the windows are equal or neighbours in day order."""
    if a not in _WINDOW_ORDER or b not in _WINDOW_ORDER:
        return False
    return abs(_WINDOW_ORDER[a] - _WINDOW_ORDER[b]) <= 1


def mode(values: Iterable[T]) -> T | None:
    """Most frequent value; on a tie the first value seen wins."""
    counts: dict[T, int] = {}
    for v in values:
        counts[v] = counts.get(v, 0) + 1

    best, best_count = None, 0
    for v, count in counts.items():
        if count > best_count:
            best, best_count = v, count
    return best


def parse_local_datetime(value: str) -> datetime:
    """Parse an ISO timestamp keeping its wall-clock (airport local) time."""
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def sunday_based_weekday(dt: datetime) -> int:
    return (dt.weekday() + 1) % 7


def hour_of(time_str: str) -> int:
    """Hour from an ``HH:MM:SS`` string."""
    return int(time_str.split(":")[0])
