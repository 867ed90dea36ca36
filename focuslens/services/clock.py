"""Millisecond clock helpers shared by the analytics services"""
import time
from datetime import date, datetime, time as dt_time
from typing import Callable, Tuple

Clock = Callable[[], int]

MINUTE_MS = 60_000
HOUR_MS = 3_600_000
DAY_MS = 86_400_000


def system_clock() -> int:
    """Current wall-clock time in epoch milliseconds"""
    return int(time.time() * 1000)


def local_hour(timestamp_ms: int) -> int:
    """Local wall-clock hour of an epoch-millisecond timestamp"""
    return datetime.fromtimestamp(timestamp_ms / 1000).hour


def local_date(timestamp_ms: int) -> date:
    return datetime.fromtimestamp(timestamp_ms / 1000).date()


def day_bounds(day: date) -> Tuple[int, int]:
    """Inclusive (start, end) epoch-millisecond bounds of a local calendar day"""
    start = datetime.combine(day, dt_time.min)
    end = datetime.combine(day, dt_time.max)
    return int(start.timestamp() * 1000), int(end.timestamp() * 1000)


def local_weekday(timestamp_ms: int) -> int:
    """Local day of week, Monday is 0"""
    return datetime.fromtimestamp(timestamp_ms / 1000).weekday()
