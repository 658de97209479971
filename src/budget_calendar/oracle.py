"""Nepali calendar oracle interface and ``nepali_datetime`` implementation.

Defines the :class:`NepaliOracle` protocol the Nepali calendar delegates to,
plus the default :class:`NepaliDatetimeOracle` backed by the
``nepali-datetime`` distribution. The oracle is authoritative for Bikram
Sambat month lengths and for the mapping to and from Gregorian dates; this
package never re-derives either.

Oracles are passed in explicitly (see
:class:`~budget_calendar.engine.PeriodEngine`) so tests can substitute a
table-driven fake.
"""

from __future__ import annotations

from datetime import date
from typing import Protocol, runtime_checkable

import nepali_datetime

from budget_calendar.errors import CalendarConversionError


# Every exception type nepali_datetime is known to raise for unsupported
# years, invalid fields or dates outside its lookup table.
_LIBRARY_ERRORS = (ValueError, OverflowError, KeyError, IndexError, TypeError)

# Longest to shortest possible Bikram Sambat month.
_CANDIDATE_MONTH_LENGTHS = (32, 31, 30, 29)


@runtime_checkable
class NepaliOracle(Protocol):
    """Protocol for Bikram Sambat conversion.

    Months are 1-based (1 = Baisakh, 12 = Chaitra). Implementations must
    raise :class:`~budget_calendar.errors.CalendarConversionError` for any
    date they cannot convert, never a library-specific exception.
    """

    def to_bs(self, day: date) -> tuple[int, int, int]:
        """Convert a Gregorian date to a ``(year, month, day)`` BS triple."""
        ...

    def to_ad(self, year: int, month: int, day: int) -> date:
        """Convert a BS ``(year, month, day)`` triple to a Gregorian date."""
        ...

    def days_in_month(self, year: int, month: int) -> int:
        """Return the number of days in BS *month* of *year*."""
        ...


class NepaliDatetimeOracle:
    """Oracle backed by the ``nepali_datetime`` package."""

    def to_bs(self, day: date) -> tuple[int, int, int]:
        try:
            nd = nepali_datetime.date.from_datetime_date(day)
        except _LIBRARY_ERRORS as exc:
            raise CalendarConversionError(
                f"Cannot convert {day.isoformat()} to Bikram Sambat: {exc}"
            ) from exc
        return nd.year, nd.month, nd.day

    def to_ad(self, year: int, month: int, day: int) -> date:
        try:
            return nepali_datetime.date(year, month, day).to_datetime_date()
        except _LIBRARY_ERRORS as exc:
            raise CalendarConversionError(
                f"Cannot convert BS {year}-{month:02d}-{day:02d} to Gregorian: {exc}"
            ) from exc

    def days_in_month(self, year: int, month: int) -> int:
        # The library validates day against its month table on construction,
        # so the longest constructible day is the month length.
        last_error: Exception | None = None
        for length in _CANDIDATE_MONTH_LENGTHS:
            try:
                nepali_datetime.date(year, month, length)
            except _LIBRARY_ERRORS as exc:
                last_error = exc
                continue
            return length
        raise CalendarConversionError(
            f"No month length available for BS {year}-{month:02d}: {last_error}"
        )
