"""Date and period label rendering."""

from __future__ import annotations

from datetime import datetime

from budget_calendar.calendars import Calendar
from budget_calendar.models import CalendarDate, Verbosity


def format_calendar_date(cal: Calendar, cal_date: CalendarDate, verbosity: Verbosity) -> str:
    """Render *cal_date* using *cal*'s month names.

    - ``short``: ``YYYY-MM-DD`` in the calendar's own numbering.
    - ``medium``: abbreviated month and day, e.g. ``Jan 5`` or ``Poush 5``.
    - ``long``: full month, day and year, e.g. ``January 5, 2024``.
    """
    verbosity = Verbosity(verbosity)
    if verbosity is Verbosity.LONG:
        return f"{cal.month_name(cal_date.month)} {cal_date.day}, {cal_date.year}"
    if verbosity is Verbosity.MEDIUM:
        return f"{cal.month_abbr(cal_date.month)} {cal_date.day}"
    return str(cal_date)


def format_instant(cal: Calendar, instant: datetime, verbosity: Verbosity) -> str:
    return format_calendar_date(cal, cal.to_calendar_date(instant), verbosity)


def format_label(cal: Calendar, instant: datetime) -> str:
    """Render the period containing *instant* as ``"Month, Year"``."""
    cal_date = cal.to_calendar_date(instant)
    return f"{cal.month_name(cal_date.month)}, {cal_date.year}"
