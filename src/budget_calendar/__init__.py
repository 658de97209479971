"""Calendar-period engine for budgeting and reporting.

Converts instants into period boundaries, labels and month-picker
sequences under the Gregorian or Nepali (Bikram Sambat) calendar.
"""

from __future__ import annotations

from budget_calendar.engine import PeriodEngine
from budget_calendar.errors import (
    CalendarConversionError,
    InvalidRangeToken,
    OutOfRangeDay,
    PeriodError,
)
from budget_calendar.models import (
    CalendarDate,
    CalendarSystem,
    Outcome,
    PeriodRange,
    Resolved,
    Verbosity,
)

__version__ = "0.3.0"

__all__ = [
    "CalendarConversionError",
    "CalendarDate",
    "CalendarSystem",
    "InvalidRangeToken",
    "Outcome",
    "OutOfRangeDay",
    "PeriodEngine",
    "PeriodError",
    "PeriodRange",
    "Resolved",
    "Verbosity",
    "__version__",
]
