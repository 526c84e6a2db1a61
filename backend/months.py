# Calendar utilities - month keys ("YYYY-MM") and the five-meeting cycle
from __future__ import annotations

import calendar
import re
from datetime import date
from typing import List, Optional, Tuple, Union

CYCLE_LENGTH = 5

MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]

MEETING_LABELS = [
    "First meeting",
    "Second meeting",
    "Third meeting",
    "Fourth meeting",
    "Fifth meeting",
]

_MONTH_KEY_RE = re.compile(r"([0-9]{4})-([0-9]{2})")


class InvalidMonthKey(ValueError):
    """Raised for anything that is not a zero-padded YYYY-MM key with month 1-12."""


def parse_month_key(key: str) -> Tuple[int, int]:
    """Split a month key into (year, month). Never normalizes bad input."""
    if not isinstance(key, str):
        raise InvalidMonthKey(f"month key must be a string, got {type(key).__name__}")
    match = _MONTH_KEY_RE.fullmatch(key)
    if not match:
        raise InvalidMonthKey(f"malformed month key: {key!r}")
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        raise InvalidMonthKey(f"month out of range in {key!r}")
    return year, month


def is_month_key(key: str) -> bool:
    try:
        parse_month_key(key)
    except InvalidMonthKey:
        return False
    return True


def month_key(d: date) -> str:
    """Canonical key for the calendar month containing d."""
    return f"{d.year:04d}-{d.month:02d}"


def _shift(year: int, month: int, delta: int) -> Tuple[int, int]:
    total = year * 12 + (month - 1) + delta
    return total // 12, total % 12 + 1


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def add_months(value: Union[str, date], delta: int) -> Union[str, date]:
    """
    Shift by whole calendar months.
    Month keys stay month keys. Dates keep their day, clamped to the
    target month's length (Jan 31 + 1 month => Feb 28/29).
    """
    if isinstance(value, str):
        year, month = _shift(*parse_month_key(value), delta)
        return f"{year:04d}-{month:02d}"
    year, month = _shift(value.year, value.month, delta)
    return value.replace(year=year, month=month, day=min(value.day, days_in_month(year, month)))


def month_start(key: str) -> date:
    year, month = parse_month_key(key)
    return date(year, month, 1)


def date_of(key: str, day: int) -> date:
    """Calendar date for a day inside a month key; day is clamped to 1..month length."""
    year, month = parse_month_key(key)
    return date(year, month, max(1, min(day, days_in_month(year, month))))


def month_window(start: str, count: int) -> List[str]:
    """Contiguous run of `count` month keys starting at `start`."""
    parse_month_key(start)
    return [add_months(start, i) for i in range(max(0, count))]


def month_label(key: str) -> str:
    year, month = parse_month_key(key)
    return f"{MONTH_NAMES[month - 1]} {year}"


def cycle(enrollment_month: str) -> List[str]:
    """The five consecutive months of a client's meeting cycle."""
    return month_window(enrollment_month, CYCLE_LENGTH)


def cycle_index(months: List[str], key: str) -> Optional[int]:
    """0-based meeting index of `key` inside a cycle, or None when out of scope."""
    try:
        return months.index(key)
    except ValueError:
        return None
