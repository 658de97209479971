"""Configuration loading, writing, and project initialization.

Reads TOML config files using stdlib ``tomllib`` and writes them using
``tomli_w``.  Depends only on ``models.py`` and ``periods.py``.
"""

from __future__ import annotations

import calendar
import sys
from pathlib import Path

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

import tomli_w

from budget_calendar.models import AppConfig, CalendarSystem, Verbosity
from budget_calendar.periods import RANGE_TOKENS

# ---------------------------------------------------------------------------
# Default file content
# ---------------------------------------------------------------------------

_DEFAULT_CONFIG_TOML = """\
# Budget calendar configuration

[calendar]
system = "gregorian"            # "gregorian" or "nepali"
week_start = "sunday"           # "sunday" or "monday"

[display]
verbosity = "short"             # "short", "medium" or "long"

[periods]
default_range = "this-month"    # "this-month", "3m", "6m", "1y" or "this-year"
picker_months = 12
"""

WEEK_STARTS: dict[str, int] = {
    "monday": calendar.MONDAY,
    "sunday": calendar.SUNDAY,
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(root: Path) -> AppConfig:
    """Load ``config.toml`` from *root* and return an :class:`AppConfig`.

    Args:
        root: Project root directory containing ``config.toml``.

    Returns:
        A fully-populated :class:`AppConfig` instance.

    Raises:
        FileNotFoundError: If ``config.toml`` does not exist.
        ValueError: If a setting has an unsupported value.
    """
    data = _read_toml(root / "config.toml")

    cal = data.get("calendar", {})
    display = data.get("display", {})
    period_settings = data.get("periods", {})

    config = AppConfig(
        calendar_system=_parse_enum(CalendarSystem, cal.get("system", "gregorian"), "calendar.system"),
        week_start=cal.get("week_start", "sunday"),
        verbosity=_parse_enum(Verbosity, display.get("verbosity", "short"), "display.verbosity"),
        default_range=period_settings.get("default_range", "this-month"),
        picker_months=period_settings.get("picker_months", 12),
    )
    _validate(config)
    return config


def save_config(root: Path, config: AppConfig) -> None:
    """Write *config* to ``config.toml`` in *root*, replacing the file.

    Args:
        root: Project root directory.
        config: The configuration to persist.

    Raises:
        ValueError: If *config* holds an unsupported value.
    """
    _validate(config)
    data = {
        "calendar": {
            "system": config.calendar_system.value,
            "week_start": config.week_start,
        },
        "display": {"verbosity": config.verbosity.value},
        "periods": {
            "default_range": config.default_range,
            "picker_months": config.picker_months,
        },
    }
    header = "# Budget calendar configuration\n\n"
    (root / "config.toml").write_text(header + tomli_w.dumps(data), encoding="utf-8")


def first_weekday(config: AppConfig) -> int:
    """Return the ``calendar`` weekday constant for ``config.week_start``."""
    return WEEK_STARTS[config.week_start]


def initialize(target_dir: Path) -> None:
    """Create *target_dir* and a default ``config.toml`` inside it.

    Idempotent: an existing ``config.toml`` is **not** overwritten.

    Args:
        target_dir: The directory in which to create the project structure.
    """
    target_dir = Path(target_dir)
    target_dir.mkdir(parents=True, exist_ok=True)
    _write_if_missing(target_dir / "config.toml", _DEFAULT_CONFIG_TOML)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _read_toml(path: Path) -> dict:
    """Read and parse a TOML file."""
    with open(path, "rb") as f:
        return tomllib.load(f)


def _parse_enum(enum_cls, value: str, key: str):
    """Convert *value* to a member of *enum_cls* with a readable error."""
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValueError(f"Invalid {key}: {value!r} (expected one of: {allowed})") from None


def _validate(config: AppConfig) -> None:
    if config.week_start not in WEEK_STARTS:
        raise ValueError(
            f"Invalid calendar.week_start: {config.week_start!r} "
            f"(expected one of: {', '.join(WEEK_STARTS)})"
        )
    if config.default_range not in RANGE_TOKENS:
        raise ValueError(
            f"Invalid periods.default_range: {config.default_range!r} "
            f"(expected one of: {', '.join(RANGE_TOKENS)})"
        )
    if not isinstance(config.picker_months, int) or config.picker_months < 1:
        raise ValueError(
            f"Invalid periods.picker_months: {config.picker_months!r} (must be a positive integer)"
        )


def _write_if_missing(path: Path, content: str) -> None:
    """Write *content* to *path* only if the file does not already exist."""
    if not path.exists():
        path.write_text(content, encoding="utf-8")
