"""Shared pytest fixtures for budget calendar tests.

Provides reusable fixtures for:
- table_oracle: A deterministic, table-driven Bikram Sambat oracle covering
  BS 2080-2082, so period tests do not depend on a library's lookup data.
- broken_oracle: An oracle that fails every conversion, for fallback tests.
- engine / broken_engine: PeriodEngines wired to those oracles and a fixed
  clock.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from budget_calendar.engine import PeriodEngine
from budget_calendar.errors import CalendarConversionError

# ---------------------------------------------------------------------------
# Oracle fakes
# ---------------------------------------------------------------------------

# Month lengths per BS year. Not the official table: the values are chosen
# so that every month length from 29 to 32 appears and each year starts on
# a plausible Gregorian date.
TABLE_MONTH_LENGTHS: dict[int, list[int]] = {
    2080: [31, 32, 31, 32, 31, 30, 30, 30, 29, 29, 30, 30],
    2081: [31, 31, 32, 31, 31, 31, 30, 29, 30, 29, 30, 31],
    2082: [31, 31, 32, 31, 31, 30, 30, 30, 29, 30, 30, 30],
}

# Gregorian date of Baisakh 1 of the first table year.
TABLE_ANCHOR = date(2023, 4, 14)

FIXED_NOW = datetime(2024, 3, 15, 10, 30, tzinfo=timezone.utc)


class TableOracle:
    """Bikram Sambat oracle driven by ``TABLE_MONTH_LENGTHS``."""

    def __init__(self, lengths: dict[int, list[int]] | None = None, anchor: date = TABLE_ANCHOR):
        self.lengths = lengths or TABLE_MONTH_LENGTHS
        self.anchor = anchor

    def to_bs(self, day: date) -> tuple[int, int, int]:
        offset = (day - self.anchor).days
        if offset >= 0:
            for year in sorted(self.lengths):
                for month, length in enumerate(self.lengths[year], start=1):
                    if offset < length:
                        return year, month, offset + 1
                    offset -= length
        raise CalendarConversionError(f"{day.isoformat()} is outside the table")

    def to_ad(self, year: int, month: int, day: int) -> date:
        length = self.days_in_month(year, month)
        if not 1 <= day <= length:
            raise CalendarConversionError(f"BS {year}-{month:02d}-{day:02d} does not exist")
        offset = 0
        for y in sorted(self.lengths):
            if y == year:
                break
            offset += sum(self.lengths[y])
        offset += sum(self.lengths[year][: month - 1]) + day - 1
        return self.anchor + timedelta(days=offset)

    def days_in_month(self, year: int, month: int) -> int:
        if year not in self.lengths:
            raise CalendarConversionError(f"BS year {year} is outside the table")
        return self.lengths[year][month - 1]


class BrokenOracle:
    """Oracle whose every call fails."""

    def to_bs(self, day: date) -> tuple[int, int, int]:
        raise CalendarConversionError(f"oracle unavailable for {day.isoformat()}")

    def to_ad(self, year: int, month: int, day: int) -> date:
        raise CalendarConversionError(f"oracle unavailable for BS {year}-{month}-{day}")

    def days_in_month(self, year: int, month: int) -> int:
        raise CalendarConversionError(f"oracle unavailable for BS {year}-{month}")


def utc(*args: int) -> datetime:
    """Shorthand for an aware UTC datetime."""
    return datetime(*args, tzinfo=timezone.utc)


def bs_midnight(oracle: TableOracle, year: int, month: int, day: int) -> datetime:
    """Midnight UTC of a BS date according to *oracle*."""
    ad = oracle.to_ad(year, month, day)
    return utc(ad.year, ad.month, ad.day)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def table_oracle() -> TableOracle:
    return TableOracle()


@pytest.fixture
def broken_oracle() -> BrokenOracle:
    return BrokenOracle()


@pytest.fixture
def fixed_now() -> datetime:
    """The instant every engine fixture treats as "now" (2024-03-15 10:30 UTC)."""
    return FIXED_NOW


@pytest.fixture
def engine(table_oracle: TableOracle) -> PeriodEngine:
    """PeriodEngine with the table oracle and a fixed clock."""
    return PeriodEngine(oracle=table_oracle, clock=lambda: FIXED_NOW)


@pytest.fixture
def broken_engine(broken_oracle: BrokenOracle) -> PeriodEngine:
    """PeriodEngine whose Nepali oracle always fails."""
    return PeriodEngine(oracle=broken_oracle, clock=lambda: FIXED_NOW)
