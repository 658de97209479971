"""Core data models for the period engine.

This module defines the value types and instant helpers used throughout the
package. It has zero internal imports -- everything depends on it, but it
depends on nothing within the package.

All instants are timezone-aware ``datetime`` objects in UTC. Day boundaries
are computed in UTC; no caller-local timezone is ever consulted.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class CalendarSystem(str, Enum):
    """Calendar used to interpret years, months and days."""

    GREGORIAN = "gregorian"
    NEPALI = "nepali"


class Verbosity(str, Enum):
    """How much of a date :func:`format_date` renders."""

    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"


class Outcome(str, Enum):
    """How faithfully a :class:`Resolved` value honours the request.

    - ``EXACT``: computed in the requested calendar system.
    - ``FALLBACK``: the requested system failed; the value was computed
      under the Gregorian calendar instead.
    - ``CLAMPED``: the requested day did not exist in its month and was
      moved to the nearest valid day.
    """

    EXACT = "exact"
    FALLBACK = "fallback"
    CLAMPED = "clamped"


@dataclass(frozen=True)
class CalendarDate:
    """A (year, month, day) triple in some calendar system.

    Months are 1-based in every system: 1 is January or Baisakh, 12 is
    December or Chaitra.
    """

    year: int
    month: int
    day: int

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}-{self.day:02d}"


@dataclass(frozen=True)
class PeriodRange:
    """An inclusive ``[start, end]`` pair of UTC instants.

    ``start`` sits at 00:00:00.000 of the first day and ``end`` at
    23:59:59.999 of the last day of the period.

    Attributes:
        start: First instant of the period.
        end: Last instant of the period (inclusive).
        system: The calendar system the boundaries were computed in.
            Differs from the requested system when ``fallback`` is set.
        fallback: True when the requested calendar could not be used and
            the range was computed under the Gregorian calendar.
    """

    start: datetime
    end: datetime
    system: CalendarSystem = CalendarSystem.GREGORIAN
    fallback: bool = False

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(f"Period start {self.start} is after end {self.end}")

    def __contains__(self, instant: datetime) -> bool:
        return self.start <= ensure_utc(instant) <= self.end

    @property
    def days(self) -> int:
        """Number of calendar days covered by the range."""
        return (self.end.date() - self.start.date()).days + 1


@dataclass(frozen=True)
class Resolved(Generic[T]):
    """Typed result of an operation that may degrade instead of failing.

    Attributes:
        value: The computed value.
        system: The calendar system actually used to compute ``value``.
        outcome: Whether the value is exact, a Gregorian fallback, or
            clamped.
        detail: Human-readable reason for a non-exact outcome.
    """

    value: T
    system: CalendarSystem
    outcome: Outcome = Outcome.EXACT
    detail: str = ""

    @property
    def is_fallback(self) -> bool:
        return self.outcome is Outcome.FALLBACK

    @property
    def is_exact(self) -> bool:
        return self.outcome is Outcome.EXACT


@dataclass
class AppConfig:
    """Top-level configuration loaded from ``config.toml``.

    Attributes:
        calendar_system: Calendar preference applied when a command does
            not name one.
        week_start: First day of a calendar page week, ``"sunday"`` or
            ``"monday"``.
        verbosity: Default date rendering verbosity.
        default_range: Named range used when a caller supplies no token.
            This is the caller-side default; the engine never substitutes
            one on its own.
        picker_months: Number of periods listed in a month picker.
    """

    calendar_system: CalendarSystem = CalendarSystem.GREGORIAN
    week_start: str = "sunday"
    verbosity: Verbosity = Verbosity.SHORT
    default_range: str = "this-month"
    picker_months: int = 12


# ---------------------------------------------------------------------------
# Instant helpers
# ---------------------------------------------------------------------------


def ensure_utc(instant: datetime) -> datetime:
    """Return *instant* as a timezone-aware UTC datetime.

    Naive datetimes are taken to already be UTC wall-clock time; aware
    datetimes are converted.

    Raises:
        TypeError: If *instant* is not a ``datetime``.
    """
    if not isinstance(instant, datetime):
        raise TypeError(f"Expected a datetime instant, got {type(instant).__name__}")
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def parse_instant(text: str) -> datetime:
    """Parse an ISO-8601 string into a UTC instant.

    Accepts a trailing ``Z`` as well as explicit offsets. A bare date
    (``2024-01-15``) is midnight UTC of that day.

    Raises:
        ValueError: If *text* is not a valid ISO-8601 date or datetime.
    """
    value = text.strip()
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    return ensure_utc(datetime.fromisoformat(value))


def to_utc_string(instant: datetime) -> str:
    """Format *instant* as ISO-8601 UTC with millisecond precision.

    >>> to_utc_string(datetime(2024, 1, 31, 23, 59, 59, 999000))
    '2024-01-31T23:59:59.999Z'
    """
    utc = ensure_utc(instant)
    return utc.replace(tzinfo=None).isoformat(timespec="milliseconds") + "Z"
