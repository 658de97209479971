"""Calendar systems and their registry.

Each calendar converts between UTC instants and
:class:`~budget_calendar.models.CalendarDate` triples, reports month lengths,
and names its months. The ``CALENDARS`` dict maps each
:class:`~budget_calendar.models.CalendarSystem` to a factory, and
:func:`build_calendar` provides the lookup; adding a calendar system means
registering one more factory here and nothing else.

Calendar methods raise on failure. Graceful degradation (falling back to
Gregorian, clamping days) is layered on top by the engine.
"""

from __future__ import annotations

import calendar as _stdlib_calendar
from collections.abc import Callable
from datetime import date, datetime, time, timezone
from typing import Protocol

from budget_calendar.errors import OutOfRangeDay
from budget_calendar.models import CalendarDate, CalendarSystem, ensure_utc
from budget_calendar.oracle import NepaliOracle

NEPALI_MONTH_NAMES = (
    "Baisakh",
    "Jestha",
    "Asar",
    "Shrawan",
    "Bhadra",
    "Aswin",
    "Kartik",
    "Mangsir",
    "Poush",
    "Magh",
    "Falgun",
    "Chaitra",
)


class Calendar(Protocol):
    """Interface shared by every calendar system."""

    system: CalendarSystem

    def to_calendar_date(self, instant: datetime) -> CalendarDate: ...

    def to_instant(self, cal_date: CalendarDate) -> datetime: ...

    def days_in_month(self, year: int, month: int) -> int: ...

    def month_name(self, month: int) -> str: ...

    def month_abbr(self, month: int) -> str: ...


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    """Move ``(year, month)`` by *delta* calendar months.

    Works on month indices only, so it is correct for any calendar with
    twelve months per year regardless of month lengths. Negative deltas
    borrow from the year.

    >>> shift_month(2081, 1, -1)
    (2080, 12)
    """
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def midnight(day: date) -> datetime:
    """Return 00:00:00.000 UTC of *day*."""
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def end_of_day(day: date) -> datetime:
    """Return 23:59:59.999 UTC of *day*."""
    return datetime.combine(day, time(23, 59, 59, 999000), tzinfo=timezone.utc)


def _check_month(month: int) -> None:
    if not 1 <= month <= 12:
        raise ValueError(f"Month must be between 1 and 12, got {month}")


def _check_day(cal_date: CalendarDate, length: int) -> None:
    if cal_date.day < 1:
        raise OutOfRangeDay(cal_date.year, cal_date.month, cal_date.day, 1)
    if cal_date.day > length:
        raise OutOfRangeDay(cal_date.year, cal_date.month, cal_date.day, length)


class GregorianCalendar:
    """Proleptic Gregorian calendar computed from the UTC date."""

    system = CalendarSystem.GREGORIAN

    def to_calendar_date(self, instant: datetime) -> CalendarDate:
        day = ensure_utc(instant).date()
        return CalendarDate(day.year, day.month, day.day)

    def to_instant(self, cal_date: CalendarDate) -> datetime:
        _check_month(cal_date.month)
        _check_day(cal_date, self.days_in_month(cal_date.year, cal_date.month))
        return midnight(date(cal_date.year, cal_date.month, cal_date.day))

    def days_in_month(self, year: int, month: int) -> int:
        _check_month(month)
        return _stdlib_calendar.monthrange(year, month)[1]

    def month_name(self, month: int) -> str:
        _check_month(month)
        return _stdlib_calendar.month_name[month]

    def month_abbr(self, month: int) -> str:
        _check_month(month)
        return _stdlib_calendar.month_abbr[month]


class NepaliCalendar:
    """Bikram Sambat calendar delegating all day arithmetic to an oracle.

    Month lengths vary from year to year (29 to 32 days) and are always
    read from the oracle.
    """

    system = CalendarSystem.NEPALI

    def __init__(self, oracle: NepaliOracle) -> None:
        self.oracle = oracle

    def to_calendar_date(self, instant: datetime) -> CalendarDate:
        year, month, day = self.oracle.to_bs(ensure_utc(instant).date())
        return CalendarDate(year, month, day)

    def to_instant(self, cal_date: CalendarDate) -> datetime:
        _check_month(cal_date.month)
        _check_day(cal_date, self.days_in_month(cal_date.year, cal_date.month))
        return midnight(self.oracle.to_ad(cal_date.year, cal_date.month, cal_date.day))

    def days_in_month(self, year: int, month: int) -> int:
        _check_month(month)
        return self.oracle.days_in_month(year, month)

    def month_name(self, month: int) -> str:
        _check_month(month)
        return NEPALI_MONTH_NAMES[month - 1]

    def month_abbr(self, month: int) -> str:
        # Bikram Sambat month names are conventionally never abbreviated.
        return self.month_name(month)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

CalendarFactory = Callable[[NepaliOracle], Calendar]

CALENDARS: dict[CalendarSystem, CalendarFactory] = {
    CalendarSystem.GREGORIAN: lambda oracle: GregorianCalendar(),
    CalendarSystem.NEPALI: NepaliCalendar,
}


def register_calendar(system: CalendarSystem, factory: CalendarFactory) -> None:
    """Register (or replace) the factory for *system*."""
    CALENDARS[system] = factory


def build_calendar(system: CalendarSystem | str, oracle: NepaliOracle) -> Calendar:
    """Build the calendar for *system*.

    Args:
        system: A :class:`CalendarSystem` or its string value, e.g.
            ``"nepali"``.
        oracle: Nepali oracle handed to factories that need one.

    Returns:
        A calendar object for the requested system.

    Raises:
        ValueError: If *system* is not a known calendar system.
        KeyError: If no factory is registered for *system*.
    """
    return CALENDARS[CalendarSystem(system)](oracle)
