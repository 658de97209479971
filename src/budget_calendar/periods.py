"""Period boundary calculation.

Pure functions that turn an instant plus a
:class:`~budget_calendar.calendars.Calendar` into a
:class:`~budget_calendar.models.PeriodRange`. They raise whatever the
calendar raises; fallback handling lives in
:mod:`budget_calendar.engine`.

Month arithmetic is always done on ``(year, month)`` indices in the
calendar's own numbering, never by subtracting a fixed number of days, so
variable Bikram Sambat month lengths cannot cause drift.
"""

from __future__ import annotations

import calendar as _stdlib_calendar
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from functools import partial

from budget_calendar.calendars import Calendar, end_of_day, shift_month
from budget_calendar.errors import InvalidRangeToken
from budget_calendar.models import CalendarDate, PeriodRange

ONE_MILLISECOND = timedelta(milliseconds=1)


def month_bounds(cal: Calendar, year: int, month: int) -> PeriodRange:
    """Return the range covering *month* of *year* in *cal*.

    The end is taken from the month's own length as reported by the
    calendar, which is the "day 0 of the next month" rule without relying
    on day-0 normalization.
    """
    start = cal.to_instant(CalendarDate(year, month, 1))
    last = cal.to_instant(CalendarDate(year, month, cal.days_in_month(year, month)))
    return PeriodRange(start=start, end=end_of_day(last.date()), system=cal.system)


def month_range(cal: Calendar, instant: datetime) -> PeriodRange:
    """Return the calendar month containing *instant*."""
    current = cal.to_calendar_date(instant)
    return month_bounds(cal, current.year, current.month)


def trailing_range(cal: Calendar, instant: datetime, months: int) -> PeriodRange:
    """Return *months* whole calendar months ending with the one containing *instant*.

    ``months=1`` is the same as :func:`month_range`.
    """
    if months < 1:
        raise ValueError(f"months must be at least 1, got {months}")
    current = cal.to_calendar_date(instant)
    first_year, first_month = shift_month(current.year, current.month, -(months - 1))
    return PeriodRange(
        start=month_bounds(cal, first_year, first_month).start,
        end=month_bounds(cal, current.year, current.month).end,
        system=cal.system,
    )


def year_range(cal: Calendar, instant: datetime) -> PeriodRange:
    """Return the calendar year containing *instant* (Baisakh..Chaitra for BS)."""
    current = cal.to_calendar_date(instant)
    return PeriodRange(
        start=month_bounds(cal, current.year, 1).start,
        end=month_bounds(cal, current.year, 12).end,
        system=cal.system,
    )


def calendar_page_range(
    cal: Calendar,
    instant: datetime,
    first_weekday: int = _stdlib_calendar.SUNDAY,
) -> PeriodRange:
    """Return the month containing *instant* padded out to whole weeks.

    Leading days come from the previous month so the page starts on
    *first_weekday*; trailing days from the next month complete the last
    week. Weekdays are Gregorian weekdays in every calendar system.

    Args:
        cal: Calendar the month is taken from.
        instant: Any instant inside the month to show.
        first_weekday: ``calendar.MONDAY`` (0) .. ``calendar.SUNDAY`` (6).
    """
    month = month_range(cal, instant)
    leading = (month.start.weekday() - first_weekday) % 7
    last_weekday = (first_weekday + 6) % 7
    trailing = (last_weekday - month.end.weekday()) % 7
    return PeriodRange(
        start=month.start - timedelta(days=leading),
        end=month.end + timedelta(days=trailing),
        system=cal.system,
    )


def page_days(page: PeriodRange) -> list[datetime]:
    """Return the midnight instant of every day in *page*, in order."""
    return [page.start + timedelta(days=offset) for offset in range(page.days)]


# ---------------------------------------------------------------------------
# Named ranges
# ---------------------------------------------------------------------------

RangeRule = Callable[[Calendar, datetime], PeriodRange]

RANGE_RULES: dict[str, RangeRule] = {
    "this-month": month_range,
    "3m": partial(trailing_range, months=3),
    "6m": partial(trailing_range, months=6),
    "1y": partial(trailing_range, months=12),
    "this-year": year_range,
}

RANGE_TOKENS: tuple[str, ...] = tuple(RANGE_RULES)


def get_range_rule(token: str) -> RangeRule:
    """Look up the rule for a named-range token.

    Raises:
        InvalidRangeToken: If *token* is not recognized.
    """
    try:
        return RANGE_RULES[token]
    except KeyError:
        raise InvalidRangeToken(token, RANGE_TOKENS) from None


@dataclass(frozen=True)
class RangeLookup:
    """Result of resolving a named-range token without raising.

    Exactly one of ``range`` and ``error`` is set. Callers pick their own
    default when ``ok`` is false.
    """

    token: str
    range: PeriodRange | None = None
    error: InvalidRangeToken | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
