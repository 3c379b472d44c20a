"""
Month granularity helpers.

All subscription period arithmetic works on whole calendar months. A month
is represented as a date fixed to day 1; the wire format is MM-YYYY
(e.g. "07-2025").
"""
import re
from datetime import date


MONTH_FORMAT = "MM-YYYY"
_MONTH_RE = re.compile(r"(\d{2})-(\d{4})", re.ASCII)


class InvalidMonthFormat(ValueError):
    pass


def parse_month(value: str) -> date:
    """
    Parse "MM-YYYY" into the first day of that month.

    Raises:
        InvalidMonthFormat: wrong shape, month outside 01..12 or year 0000

    Example:
        >>> parse_month("07-2025")
        datetime.date(2025, 7, 1)
    """
    if not isinstance(value, str):
        raise InvalidMonthFormat(f"expected {MONTH_FORMAT} string")
    m = _MONTH_RE.fullmatch(value)
    if not m:
        raise InvalidMonthFormat(f"invalid month {value!r}, expected {MONTH_FORMAT}")
    month, year = int(m.group(1)), int(m.group(2))
    if not 1 <= month <= 12 or year < 1:
        raise InvalidMonthFormat(f"invalid month {value!r}, expected {MONTH_FORMAT}")
    return date(year, month, 1)


def format_month(d: date) -> str:
    return f"{d.month:02d}-{d.year:04d}"


def normalize_to_month(d: date) -> date:
    """Truncate a date (or datetime) to day 1 of its month."""
    return date(d.year, d.month, 1)


def month_index(d: date) -> int:
    """Absolute month number: consecutive months differ by exactly 1."""
    return d.year * 12 + (d.month - 1)


def months_inclusive(start: date, end: date) -> int:
    """Number of calendar months in [start, end], both ends included. 0 if end < start."""
    count = month_index(end) - month_index(start) + 1
    return max(count, 0)
