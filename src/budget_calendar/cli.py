"""Click CLI entry point for the ``periods`` command.

Handles argument parsing, config loading, and error display. All calendar
logic is delegated to :class:`~budget_calendar.engine.PeriodEngine`; the
configured ``default_range`` is applied here, at the caller boundary.
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime
from pathlib import Path

import click

from budget_calendar import __version__
from budget_calendar.config import first_weekday, initialize, load_config, save_config
from budget_calendar.engine import PeriodEngine
from budget_calendar.errors import CalendarConversionError, InvalidRangeToken
from budget_calendar.models import (
    AppConfig,
    CalendarSystem,
    PeriodRange,
    Verbosity,
    parse_instant,
    to_utc_string,
)

logger = logging.getLogger(__name__)

_CALENDAR_CHOICE = click.Choice([s.value for s in CalendarSystem])
_VERBOSITY_CHOICE = click.Choice([v.value for v in Verbosity])


def _configure_logging(verbose: bool, debug: bool) -> None:
    """Set up logging based on verbosity flags."""
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
        force=True,
    )


def _load_settings(root: Path) -> AppConfig:
    """Load ``config.toml`` from *root*, or built-in defaults if it is absent."""
    try:
        return load_config(root)
    except FileNotFoundError:
        logger.debug("No config.toml in %s; using defaults", root)
        return AppConfig()
    except Exception as exc:
        click.echo(f"Error loading configuration: {exc}", err=True)
        sys.exit(1)


def _build_engine(config: AppConfig) -> PeriodEngine:
    return PeriodEngine(first_weekday=first_weekday(config))


def _parse_instant_option(value: str | None) -> datetime | None:
    """Parse an ISO-8601 option value, exiting with an error if malformed."""
    if value is None:
        return None
    try:
        return parse_instant(value)
    except ValueError:
        click.echo(
            f"Error: Invalid date: {value!r}. Expected ISO-8601 (e.g. 2024-01-15).",
            err=True,
        )
        sys.exit(1)


def _setup(calendar: str | None, verbose: bool, debug: bool) -> tuple[AppConfig, PeriodEngine, CalendarSystem]:
    _configure_logging(verbose, debug)
    config = _load_settings(Path.cwd())
    system = CalendarSystem(calendar) if calendar else config.calendar_system
    return config, _build_engine(config), system


def _echo_range(period: PeriodRange) -> None:
    click.echo(f"Start: {to_utc_string(period.start)}")
    click.echo(f"End:   {to_utc_string(period.end)}")
    click.echo(f"Days:  {period.days}")
    if period.fallback:
        click.echo("Note: Nepali conversion failed; showing Gregorian dates.", err=True)


_calendar_option = click.option(
    "--calendar", type=_CALENDAR_CHOICE, default=None, help="Calendar system (default: from config)."
)
_verbose_option = click.option("--verbose", is_flag=True, default=False, help="Detailed progress output.")
_debug_option = click.option("--debug", is_flag=True, default=False, help="Developer-level diagnostics.")


@click.group()
@click.version_option(version=__version__, prog_name="budget-calendar")
def cli() -> None:
    """Calendar periods for budgets and reports (Gregorian and Nepali)."""


@cli.command()
@click.option("--date", "date_text", default=None, help="Any ISO-8601 instant in the month (default: now).")
@_calendar_option
@_verbose_option
@_debug_option
def month(date_text: str | None, calendar: str | None, verbose: bool, debug: bool) -> None:
    """Show the calendar month containing a date."""
    _, engine, system = _setup(calendar, verbose, debug)
    instant = _parse_instant_option(date_text) or engine.now()

    period = engine.month_range(instant, system)
    click.echo(engine.format_period_label(instant, system))
    _echo_range(period)


@cli.command()
@click.option("--date", "date_text", default=None, help="Any ISO-8601 instant in the month (default: now).")
@_calendar_option
@_verbose_option
@_debug_option
def page(date_text: str | None, calendar: str | None, verbose: bool, debug: bool) -> None:
    """Show the week-aligned calendar page for a month."""
    _, engine, system = _setup(calendar, verbose, debug)
    instant = _parse_instant_option(date_text) or engine.now()

    period = engine.calendar_page_range(instant, system)
    _echo_range(period)

    days = engine.calendar_page_days(instant, system)
    for week_start in range(0, len(days), 7):
        week = days[week_start:week_start + 7]
        cells = []
        for day in week:
            number = engine.day_label(day, system)
            # Days from the neighbouring months are shown in parentheses.
            cell = str(number) if engine.is_same_month(day, instant, system) else f"({number})"
            cells.append(cell.rjust(4))
        click.echo(" ".join(cells))


@cli.command(name="range")
@click.argument("token", required=False)
@click.option("--now", "now_text", default=None, help="Reference ISO-8601 instant (default: now).")
@_calendar_option
@_verbose_option
@_debug_option
def range_(token: str | None, now_text: str | None, calendar: str | None, verbose: bool, debug: bool) -> None:
    """Show the range a named token selects (this-month, 3m, 6m, 1y, this-year)."""
    config, engine, system = _setup(calendar, verbose, debug)
    now = _parse_instant_option(now_text)

    if token is None:
        token = config.default_range
        logger.info("No range token given; using configured default %r", token)

    try:
        period = engine.named_range(token, system, now=now)
    except InvalidRangeToken as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    click.echo(f"Range: {token}")
    _echo_range(period)


@cli.command()
@click.option("-n", "count", type=int, default=None, help="Number of months (default: from config).")
@click.option("--now", "now_text", default=None, help="Reference ISO-8601 instant (default: now).")
@_calendar_option
@_verbose_option
@_debug_option
def months(count: int | None, now_text: str | None, calendar: str | None, verbose: bool, debug: bool) -> None:
    """List the most recent period starts for a month picker."""
    config, engine, system = _setup(calendar, verbose, debug)
    now = _parse_instant_option(now_text)
    if count is None:
        count = config.picker_months
    if count < 1:
        click.echo(f"Error: -n must be a positive integer, got {count}.", err=True)
        sys.exit(1)

    for entry in engine.last_n_periods(system, count, now=now).entries():
        label = engine.format_period_label(entry.value, entry.system)
        suffix = "  (Gregorian fallback)" if entry.is_fallback else ""
        click.echo(f"{to_utc_string(entry.value)}  {label}{suffix}")


@cli.command(name="format")
@click.argument("instant_text", metavar="INSTANT")
@_calendar_option
@click.option("--verbosity", type=_VERBOSITY_CHOICE, default=None, help="short, medium or long (default: from config).")
@_verbose_option
@_debug_option
def format_(instant_text: str, calendar: str | None, verbosity: str | None, verbose: bool, debug: bool) -> None:
    """Format a date in the chosen calendar."""
    config, engine, system = _setup(calendar, verbose, debug)
    instant = _parse_instant_option(instant_text)

    rendered = engine.render_date(instant, system, verbosity or config.verbosity)
    click.echo(rendered.value)
    if rendered.is_fallback:
        click.echo("Note: Nepali conversion failed; showing a Gregorian date.", err=True)


@cli.command()
@click.argument("instant_text", metavar="INSTANT")
@_calendar_option
@_verbose_option
@_debug_option
def convert(instant_text: str, calendar: str | None, verbose: bool, debug: bool) -> None:
    """Show the calendar date of an instant and the length of its month."""
    _, engine, system = _setup(calendar, verbose, debug)
    instant = _parse_instant_option(instant_text)

    resolved = engine.to_calendar_date(instant, system)
    cal_date = resolved.value
    try:
        length = engine.days_in_month(resolved.system, cal_date.year, cal_date.month)
    except CalendarConversionError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    click.echo(f"{resolved.system.value}: {cal_date}")
    click.echo(f"Days in month: {length}")
    if resolved.is_fallback:
        click.echo("Note: Nepali conversion failed; showing the Gregorian date.", err=True)


@cli.command()
@click.option(
    "--dir", "target_dir", default=".", type=click.Path(), help="Directory to initialize."
)
def init(target_dir: str) -> None:
    """Create a default config.toml."""
    target = Path(target_dir).resolve()

    try:
        initialize(target)
    except Exception as exc:
        click.echo(f"Error initializing project: {exc}", err=True)
        sys.exit(1)

    click.echo(f"Initialized budget calendar config in {target}")


@cli.command(name="set-calendar")
@click.argument("system", type=_CALENDAR_CHOICE)
def set_calendar(system: str) -> None:
    """Set the default calendar system in config.toml."""
    root = Path.cwd()
    config = _load_settings(root)
    config.calendar_system = CalendarSystem(system)

    try:
        save_config(root, config)
    except Exception as exc:
        click.echo(f"Error saving configuration: {exc}", err=True)
        sys.exit(1)

    click.echo(f"Calendar set to {system}")
