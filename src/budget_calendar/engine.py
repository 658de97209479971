"""Public API of the calendar-period engine.

:class:`PeriodEngine` binds a Nepali oracle and a clock and exposes every
operation page renderers, filters and record-store query builders need:
date formatting, period labels, month and calendar-page ranges, named
relative ranges, and month-picker sequences.

Fallback policy:

- Formatting and range operations never fail because the Nepali oracle
  cannot handle a date. They recompute under the Gregorian calendar, log a
  warning, and mark the result (``Resolved.outcome`` or
  ``PeriodRange.fallback``).
- Converting an explicit Bikram Sambat date to an instant has no sensible
  Gregorian reading, so :class:`CalendarConversionError` propagates there.
- Unknown range tokens raise :class:`InvalidRangeToken`; the engine never
  substitutes a default range.
"""

from __future__ import annotations

import calendar as _stdlib_calendar
import dataclasses
import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import TypeVar

from budget_calendar import formatting, periods
from budget_calendar.calendars import Calendar, build_calendar
from budget_calendar.errors import CalendarConversionError, InvalidRangeToken, OutOfRangeDay
from budget_calendar.models import (
    CalendarDate,
    CalendarSystem,
    Outcome,
    PeriodRange,
    Resolved,
    Verbosity,
    ensure_utc,
)
from budget_calendar.oracle import NepaliDatetimeOracle, NepaliOracle
from budget_calendar.sequence import PeriodSequence

logger = logging.getLogger(__name__)

T = TypeVar("T")

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class PeriodEngine:
    """Calendar-aware period computations.

    Args:
        oracle: Nepali calendar oracle. Defaults to
            :class:`~budget_calendar.oracle.NepaliDatetimeOracle`.
        clock: Zero-argument callable returning "now". Defaults to
            :func:`utc_now`.
        first_weekday: First column of a calendar page,
            ``calendar.MONDAY`` .. ``calendar.SUNDAY``.

    The engine holds no mutable state after construction, so one instance
    can be shared across threads.
    """

    def __init__(
        self,
        oracle: NepaliOracle | None = None,
        clock: Clock | None = None,
        first_weekday: int = _stdlib_calendar.SUNDAY,
    ) -> None:
        if not 0 <= first_weekday <= 6:
            raise ValueError(f"first_weekday must be between 0 and 6, got {first_weekday}")
        self.oracle = oracle if oracle is not None else NepaliDatetimeOracle()
        self.clock = clock if clock is not None else utc_now
        self.first_weekday = first_weekday

    def calendar(self, system: CalendarSystem | str) -> Calendar:
        """Return the calendar object for *system*."""
        return build_calendar(system, self.oracle)

    def now(self) -> datetime:
        return ensure_utc(self.clock())

    # -- Conversion ---------------------------------------------------------

    def to_calendar_date(
        self, instant: datetime, system: CalendarSystem | str
    ) -> Resolved[CalendarDate]:
        """Return the calendar date of *instant* in *system*.

        Falls back to the Gregorian date when the oracle cannot convert.
        """
        return self._attempt(
            system,
            lambda cal: cal.to_calendar_date(instant),
            "to_calendar_date",
        )

    def from_calendar_date(
        self, cal_date: CalendarDate, system: CalendarSystem | str
    ) -> Resolved[datetime]:
        """Return midnight UTC of *cal_date* interpreted in *system*.

        A day outside the month is clamped to the nearest valid day and the
        result is marked :attr:`Outcome.CLAMPED`.

        Raises:
            CalendarConversionError: If the oracle cannot convert the date.
            ValueError: If the month is not between 1 and 12.
        """
        cal = self.calendar(system)
        try:
            return Resolved(cal.to_instant(cal_date), cal.system)
        except OutOfRangeDay as exc:
            logger.warning("Clamping %s date %s: %s", cal.system.value, cal_date, exc)
            clamped = dataclasses.replace(cal_date, day=exc.clamped_day)
            return Resolved(cal.to_instant(clamped), cal.system, Outcome.CLAMPED, str(exc))

    def days_in_month(self, system: CalendarSystem | str, year: int, month: int) -> int:
        """Return the length of *month* of *year* in *system*.

        Raises:
            CalendarConversionError: If the oracle has no data for the month.
        """
        return self.calendar(system).days_in_month(year, month)

    # -- Formatting ---------------------------------------------------------

    def render_date(
        self,
        instant: datetime,
        system: CalendarSystem | str = CalendarSystem.GREGORIAN,
        verbosity: Verbosity | str = Verbosity.SHORT,
    ) -> Resolved[str]:
        """Render *instant* and report which calendar was actually used."""
        verbosity = Verbosity(verbosity)
        return self._attempt(
            system,
            lambda cal: formatting.format_instant(cal, instant, verbosity),
            "format_date",
        )

    def format_date(
        self,
        instant: datetime,
        system: CalendarSystem | str = CalendarSystem.GREGORIAN,
        verbosity: Verbosity | str = Verbosity.SHORT,
    ) -> str:
        """Render *instant* as a string; see :meth:`render_date`."""
        return self.render_date(instant, system, verbosity).value

    def render_period_label(
        self, instant: datetime, system: CalendarSystem | str = CalendarSystem.GREGORIAN
    ) -> Resolved[str]:
        return self._attempt(
            system,
            lambda cal: formatting.format_label(cal, instant),
            "format_period_label",
        )

    def format_period_label(
        self, instant: datetime, system: CalendarSystem | str = CalendarSystem.GREGORIAN
    ) -> str:
        """Render the period containing *instant*, e.g. ``"Poush, 2081"``."""
        return self.render_period_label(instant, system).value

    def current_date(self, system: CalendarSystem | str = CalendarSystem.GREGORIAN) -> str:
        """Today's date in short form in *system*."""
        return self.format_date(self.now(), system, Verbosity.SHORT)

    # -- Ranges -------------------------------------------------------------

    def month_range(
        self, instant: datetime, system: CalendarSystem | str = CalendarSystem.GREGORIAN
    ) -> PeriodRange:
        """Return the calendar month containing *instant*."""
        return self._attempt_range(
            system, lambda cal: periods.month_range(cal, instant), "month_range"
        )

    def year_range(
        self, instant: datetime, system: CalendarSystem | str = CalendarSystem.GREGORIAN
    ) -> PeriodRange:
        """Return the calendar year containing *instant*."""
        return self._attempt_range(
            system, lambda cal: periods.year_range(cal, instant), "year_range"
        )

    def calendar_page_range(
        self, instant: datetime, system: CalendarSystem | str = CalendarSystem.GREGORIAN
    ) -> PeriodRange:
        """Return the month containing *instant* padded to whole weeks."""
        return self._attempt_range(
            system,
            lambda cal: periods.calendar_page_range(cal, instant, self.first_weekday),
            "calendar_page_range",
        )

    def calendar_page_days(
        self, instant: datetime, system: CalendarSystem | str = CalendarSystem.GREGORIAN
    ) -> list[datetime]:
        """Return every day shown on the calendar page for *instant*."""
        return periods.page_days(self.calendar_page_range(instant, system))

    def named_range(
        self,
        token: str,
        system: CalendarSystem | str = CalendarSystem.GREGORIAN,
        now: datetime | None = None,
    ) -> PeriodRange:
        """Return the range a token such as ``"3m"`` selects relative to *now*.

        Raises:
            InvalidRangeToken: If *token* is not one of
                :data:`~budget_calendar.periods.RANGE_TOKENS`.
        """
        rule = periods.get_range_rule(token)
        reference = self.now() if now is None else ensure_utc(now)
        return self._attempt_range(
            system, lambda cal: rule(cal, reference), f"named_range({token})"
        )

    def lookup_named_range(
        self,
        token: str,
        system: CalendarSystem | str = CalendarSystem.GREGORIAN,
        now: datetime | None = None,
    ) -> periods.RangeLookup:
        """Like :meth:`named_range` but returns the failure instead of raising."""
        try:
            return periods.RangeLookup(token, range=self.named_range(token, system, now))
        except InvalidRangeToken as exc:
            return periods.RangeLookup(token, error=exc)

    # -- Sequences and grid helpers -----------------------------------------

    def last_n_periods(
        self,
        system: CalendarSystem | str = CalendarSystem.GREGORIAN,
        n: int = 12,
        now: datetime | None = None,
    ) -> PeriodSequence:
        """Return the starts of the last *n* calendar months, newest first."""
        reference = self.now() if now is None else ensure_utc(now)
        return PeriodSequence(
            self.calendar(system),
            self.calendar(CalendarSystem.GREGORIAN),
            reference,
            n,
        )

    def is_same_month(
        self, a: datetime, b: datetime, system: CalendarSystem | str = CalendarSystem.GREGORIAN
    ) -> bool:
        """True if *a* and *b* fall in the same calendar month of *system*."""

        def same(cal: Calendar) -> bool:
            first, second = cal.to_calendar_date(a), cal.to_calendar_date(b)
            return (first.year, first.month) == (second.year, second.month)

        return self._attempt(system, same, "is_same_month").value

    def day_label(
        self, instant: datetime, system: CalendarSystem | str = CalendarSystem.GREGORIAN
    ) -> int:
        """Day-of-month number shown in a calendar grid cell."""
        return self.to_calendar_date(instant, system).value.day

    # -- Internal helpers ---------------------------------------------------

    def _attempt(
        self,
        system: CalendarSystem | str,
        operation: Callable[[Calendar], T],
        context: str,
    ) -> Resolved[T]:
        cal = self.calendar(system)
        try:
            return Resolved(operation(cal), cal.system)
        except CalendarConversionError as exc:
            if cal.system is CalendarSystem.GREGORIAN:
                raise
            logger.warning(
                "%s: %s calendar conversion failed (%s); falling back to Gregorian",
                context,
                cal.system.value,
                exc,
            )
            gregorian = self.calendar(CalendarSystem.GREGORIAN)
            return Resolved(operation(gregorian), gregorian.system, Outcome.FALLBACK, str(exc))

    def _attempt_range(
        self,
        system: CalendarSystem | str,
        operation: Callable[[Calendar], PeriodRange],
        context: str,
    ) -> PeriodRange:
        result = self._attempt(system, operation, context)
        if result.is_fallback:
            return dataclasses.replace(result.value, fallback=True)
        return result.value
