"""Exception taxonomy for the period engine.

Each exception names an error kind. Conversion failures and day clamping
are recovered inside the engine and surfaced through
:class:`~budget_calendar.models.Resolved` outcomes; only
:class:`InvalidRangeToken` and malformed input propagate to callers.
"""

from __future__ import annotations


class PeriodError(Exception):
    """Base class for all period engine errors."""


class CalendarConversionError(PeriodError):
    """The calendar oracle could not interpret or produce a date."""


class InvalidRangeToken(PeriodError, ValueError):
    """A named-range token is not recognized."""

    def __init__(self, token: str, known: tuple[str, ...] = ()) -> None:
        self.token = token
        self.known = known
        msg = f"Unknown range token: {token!r}"
        if known:
            msg += f" (expected one of: {', '.join(known)})"
        super().__init__(msg)


class OutOfRangeDay(PeriodError):
    """A day value falls outside the month it was requested for.

    Attributes:
        year: Calendar year of the request.
        month: 1-based month of the request.
        day: The requested (invalid) day.
        clamped_day: The nearest valid day in that month.
    """

    def __init__(self, year: int, month: int, day: int, clamped_day: int) -> None:
        self.year = year
        self.month = month
        self.day = day
        self.clamped_day = clamped_day
        super().__init__(
            f"Day {day} is out of range for {year}-{month:02d} "
            f"(clamped to {clamped_day})"
        )
