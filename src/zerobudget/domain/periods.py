"""Calendar periods, time ranges and period-key helpers.

Every range produced here is half-open: ``start <= day < end``. Transactions
dated on the last day of a month therefore fall inside that month's range.
"""

from __future__ import annotations

import calendar
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Iterator

_PERIOD_KEY_RE = re.compile(r"^(\d{4})-(\d{2})$")


class TimeRange(str, Enum):
    """Granularity used to expand a reference date into a concrete interval."""

    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"
    YTD = "ytd"

    @classmethod
    def parse(cls, value: "str | TimeRange | None", default: "TimeRange | None" = None) -> "TimeRange":
        """Resolve user supplied range names, accepting ``year-to-date`` as ytd."""

        if isinstance(value, TimeRange):
            return value
        if value is None or not str(value).strip():
            if default is not None:
                return default
            raise ValueError("Time range is required")
        normalized = str(value).strip().lower().replace("_", "-")
        if normalized in {"year-to-date", "ytd"}:
            return cls.YTD
        try:
            return cls(normalized)
        except ValueError:
            raise ValueError(f"Unknown time range: {value!r}") from None


@dataclass(frozen=True, slots=True)
class PeriodRange:
    """A half-open ``[start, end)`` interval of calendar days."""

    start: date
    end: date

    def __contains__(self, day: object) -> bool:
        if not isinstance(day, date):
            return False
        return self.start <= as_date(day) < self.end

    @property
    def last_day(self) -> date:
        return self.end - timedelta(days=1)


def as_date(value: date) -> date:
    """Drop the time component of datetimes; plain dates pass through."""

    if isinstance(value, datetime):
        return value.date()
    return value


def period_key(value: date) -> str:
    """Return the ``YYYY-MM`` key of the month containing ``value``."""

    return f"{value.year:04d}-{value.month:02d}"


def parse_period_key(key: str) -> date:
    """Return the first day of the month named by ``key``."""

    match = _PERIOD_KEY_RE.match(key.strip()) if isinstance(key, str) else None
    if not match:
        raise ValueError(f"Invalid period key: {key!r} (expected YYYY-MM)")
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid period key: {key!r} (month out of range)")
    return date(year, month, 1)


def is_period_key(key: object) -> bool:
    try:
        parse_period_key(key)  # type: ignore[arg-type]
    except ValueError:
        return False
    return True


def month_start(value: date) -> date:
    return date(value.year, value.month, 1)


def add_months(value: date, months: int) -> date:
    """Shift ``value`` by whole months, clamping the day to the target month."""

    index = value.year * 12 + (value.month - 1) + months
    year, month = divmod(index, 12)
    last_day = calendar.monthrange(year, month + 1)[1]
    return date(year, month + 1, min(value.day, last_day))


def _week_start(value: date) -> date:
    # Sunday-first weeks: Monday is weekday 0, Sunday is 6.
    return value - timedelta(days=(value.weekday() + 1) % 7)


def get_period_range(reference_date: date, time_range: TimeRange | str) -> PeriodRange:
    """Expand ``reference_date`` into the calendar interval for ``time_range``."""

    day = as_date(reference_date)
    time_range = TimeRange.parse(time_range)

    if time_range is TimeRange.WEEK:
        start = _week_start(day)
        return PeriodRange(start, start + timedelta(days=7))
    if time_range is TimeRange.MONTH:
        start = month_start(day)
        return PeriodRange(start, add_months(start, 1))
    if time_range is TimeRange.QUARTER:
        start = date(day.year, 3 * ((day.month - 1) // 3) + 1, 1)
        return PeriodRange(start, add_months(start, 3))
    if time_range is TimeRange.YEAR:
        return PeriodRange(date(day.year, 1, 1), date(day.year + 1, 1, 1))
    # Year to date includes the reference day itself.
    return PeriodRange(date(day.year, 1, 1), day + timedelta(days=1))


def iter_month_keys(period: PeriodRange) -> Iterator[str]:
    """Yield the key of every month overlapping ``period``."""

    if period.end <= period.start:
        return
    cursor = month_start(period.start)
    while cursor < period.end:
        yield period_key(cursor)
        cursor = add_months(cursor, 1)


def step_reference_date(reference_date: date, time_range: TimeRange | str, steps: int = 1) -> date:
    """Move the reference date forward (or backward) by whole periods."""

    day = as_date(reference_date)
    time_range = TimeRange.parse(time_range)
    if time_range is TimeRange.WEEK:
        return day + timedelta(weeks=steps)
    if time_range is TimeRange.MONTH:
        return add_months(day, steps)
    if time_range is TimeRange.QUARTER:
        return add_months(day, 3 * steps)
    return add_months(day, 12 * steps)


def format_period_label(reference_date: date, time_range: TimeRange | str) -> str:
    """Human readable label for the period containing ``reference_date``."""

    period = get_period_range(reference_date, time_range)
    time_range = TimeRange.parse(time_range)
    if time_range is TimeRange.WEEK:
        return f"Week of {period.start.strftime('%b')} {period.start.day}, {period.start.year}"
    if time_range is TimeRange.MONTH:
        return period.start.strftime("%B %Y")
    if time_range is TimeRange.QUARTER:
        return f"Q{(period.start.month - 1) // 3 + 1} {period.start.year}"
    if time_range is TimeRange.YEAR:
        return str(period.start.year)
    return f"YTD {period.start.year}"


def visible_month_window(center: date, before: int = 6, after: int = 6) -> list[str]:
    """Return consecutive month keys around ``center`` (13 by default)."""

    anchor = month_start(as_date(center))
    return [period_key(add_months(anchor, offset)) for offset in range(-before, after + 1)]
