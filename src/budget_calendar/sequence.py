"""Month-picker period sequences.

A :class:`PeriodSequence` lists the first instant of each of the last *n*
calendar months, most recent first. It is a plain iterable: every iteration
recomputes the same values from the fixed ``now``, so it can be walked any
number of times and always stops after ``count`` items.

A slot whose month cannot be converted falls back to the Gregorian month
at the same offset instead of aborting the whole sequence.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from datetime import datetime

from budget_calendar.calendars import Calendar, shift_month
from budget_calendar.errors import CalendarConversionError
from budget_calendar.models import CalendarDate, Outcome, Resolved, ensure_utc

logger = logging.getLogger(__name__)


class PeriodSequence:
    """The last *count* period starts in *calendar*, newest first.

    Args:
        calendar: Calendar the periods are taken from.
        fallback: Calendar used for slots *calendar* cannot convert.
        now: Reference instant; its month is the first slot.
        count: Number of slots to produce.
    """

    def __init__(self, calendar: Calendar, fallback: Calendar, now: datetime, count: int = 12) -> None:
        if count < 0:
            raise ValueError(f"count must not be negative, got {count}")
        self.calendar = calendar
        self.fallback = fallback
        self.now = ensure_utc(now)
        self.count = count

    def __len__(self) -> int:
        return self.count

    def __iter__(self) -> Iterator[datetime]:
        for entry in self.entries():
            yield entry.value

    def __repr__(self) -> str:
        return (
            f"PeriodSequence(system={self.calendar.system.value!r}, "
            f"now={self.now.isoformat()!r}, count={self.count})"
        )

    def entries(self) -> Iterator[Resolved[datetime]]:
        """Yield each slot with the calendar system it was computed in."""
        try:
            anchor = self.calendar.to_calendar_date(self.now)
        except CalendarConversionError as exc:
            for offset in range(self.count):
                yield self._fallback_slot(offset, exc)
            return

        year, month = anchor.year, anchor.month
        for offset in range(self.count):
            try:
                start = self.calendar.to_instant(CalendarDate(year, month, 1))
            except CalendarConversionError as exc:
                yield self._fallback_slot(offset, exc)
            else:
                yield Resolved(start, self.calendar.system)

            month -= 1
            if month < 1:
                month = 12
                year -= 1

    def _fallback_slot(self, offset: int, error: Exception) -> Resolved[datetime]:
        current = self.fallback.to_calendar_date(self.now)
        year, month = shift_month(current.year, current.month, -offset)
        logger.warning(
            "Period slot %d in %s calendar failed (%s); using Gregorian %04d-%02d",
            offset,
            self.calendar.system.value,
            error,
            year,
            month,
        )
        return Resolved(
            self.fallback.to_instant(CalendarDate(year, month, 1)),
            self.fallback.system,
            Outcome.FALLBACK,
            str(error),
        )
