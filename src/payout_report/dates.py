"""Month window math and date formatting helpers.

All instants are naive local-time datetimes, matching how the report
operator thinks about "a month".  Epoch bounds are derived from them for
use as ``created[gte]`` / ``created[lte]`` API filters.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from payout_report.errors import InvalidMonthError, MissingInputError

_MONTH_RE = re.compile(r"^(\d{1,2})-(\d{4})$")


@dataclass(frozen=True)
class DateWindow:
    """A closed time range covering one calendar month."""

    start: datetime
    end: datetime

    @property
    def start_timestamp(self) -> int:
        return int(self.start.timestamp())

    @property
    def end_timestamp(self) -> int:
        return int(self.end.timestamp())

    @property
    def start_date_formatted(self) -> str:
        return self.start.date().isoformat()

    @property
    def end_date_formatted(self) -> str:
        return self.end.date().isoformat()

    @property
    def month_label(self) -> str:
        """Human label such as ``"February 2024"``."""
        return format_month_year(self.start)

    def contains_period(self, period_start: int, period_end: int) -> bool:
        """Return True when an epoch-second period lies fully inside the window."""
        return period_start >= self.start_timestamp and period_end <= self.end_timestamp

    def created_filter(self) -> dict[str, int]:
        """Return the ``created`` range filter for list calls."""
        return {"gte": self.start_timestamp, "lte": self.end_timestamp}


def month_window(month_year: str | None) -> DateWindow:
    """Build the :class:`DateWindow` for a ``MM-YYYY`` selector.

    The end instant is 23:59:59 on the last day of the month, found by
    stepping to the first day of the following month and subtracting one
    day, so leap-year February comes out right.

    Raises:
        MissingInputError: If *month_year* is empty or blank.
        InvalidMonthError: If *month_year* is not a valid ``MM-YYYY`` value.
    """
    if month_year is None or not month_year.strip():
        raise MissingInputError("Invalid input for month and year: value is required")

    text = month_year.strip()
    match = _MONTH_RE.match(text)
    if not match:
        raise InvalidMonthError(f"Invalid month {text!r}: expected MM-YYYY")

    month, year = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12 or year < 1:
        raise InvalidMonthError(f"Invalid month {text!r}: month must be 01-12")

    try:
        start = datetime(year, month, 1, 0, 0, 0)
        if month == 12:
            following = datetime(year + 1, 1, 1, 23, 59, 59)
        else:
            following = datetime(year, month + 1, 1, 23, 59, 59)
    except ValueError as exc:
        raise InvalidMonthError(f"Invalid month {text!r}: year out of range") from exc
    end = following - timedelta(days=1)

    return DateWindow(start=start, end=end)


def date_from_timestamp(timestamp: object) -> date:
    """Convert an epoch-second value to a local :class:`date`.

    Raises:
        ValueError: If *timestamp* is missing or cannot be converted.
    """
    if timestamp is None or isinstance(timestamp, bool):
        raise ValueError(f"invalid timestamp: {timestamp!r}")
    try:
        return datetime.fromtimestamp(int(timestamp)).date()  # type: ignore[call-overload]
    except (TypeError, OverflowError, OSError) as exc:
        raise ValueError(f"invalid timestamp: {timestamp!r}") from exc


def format_long_date(value: date) -> str:
    """Format a date like ``"March 3, 2024"``."""
    return f"{value:%B} {value.day}, {value.year}"


def format_month_year(value: date) -> str:
    """Format a date like ``"March 2024"``."""
    return f"{value:%B} {value.year}"
