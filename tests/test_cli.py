"""Tests for the Click CLI layer.

Uses Click's CliRunner to invoke commands without spawning subprocesses.
The engine factory is patched to use the table oracle and a fixed clock so
output does not depend on the current date or on library lookup data.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from click.testing import CliRunner

from budget_calendar import __version__
from budget_calendar.cli import cli
from budget_calendar.config import first_weekday, load_config
from budget_calendar.engine import PeriodEngine
from budget_calendar.models import CalendarSystem
from conftest import FIXED_NOW, BrokenOracle, TableOracle, bs_midnight

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def runner() -> CliRunner:
    """Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def project_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Empty working directory (no config.toml) for CLI tests."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture(autouse=True)
def table_engine(monkeypatch: pytest.MonkeyPatch) -> None:
    """Build every CLI engine from the table oracle and the fixed clock."""
    monkeypatch.setattr(
        "budget_calendar.cli._build_engine",
        lambda config: PeriodEngine(
            oracle=TableOracle(),
            clock=lambda: FIXED_NOW,
            first_weekday=first_weekday(config),
        ),
    )


# ===========================================================================
# periods --help
# ===========================================================================


class TestCLIHelp:
    """Verify top-level and subcommand help output."""

    def test_main_help(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        for command in ("month", "page", "range", "months", "format", "convert", "init", "set-calendar"):
            assert command in result.output

    def test_range_help(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["range", "--help"])
        assert result.exit_code == 0
        assert "--now" in result.output
        assert "--calendar" in result.output

    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output


# ===========================================================================
# periods month / page
# ===========================================================================


class TestMonthCommand:
    def test_gregorian_month(self, runner: CliRunner, project_dir: Path) -> None:
        result = runner.invoke(cli, ["month", "--date", "2024-01-15", "--calendar", "gregorian"])
        assert result.exit_code == 0, result.output
        assert "January, 2024" in result.output
        assert "Start: 2024-01-01T00:00:00.000Z" in result.output
        assert "End:   2024-01-31T23:59:59.999Z" in result.output
        assert "Days:  31" in result.output

    def test_defaults_to_clock(self, runner: CliRunner, project_dir: Path) -> None:
        result = runner.invoke(cli, ["month"])
        assert result.exit_code == 0, result.output
        assert "March, 2024" in result.output

    def test_nepali_month(self, runner: CliRunner, project_dir: Path) -> None:
        inside = bs_midnight(TableOracle(), 2081, 9, 10).date().isoformat()
        result = runner.invoke(cli, ["month", "--date", inside, "--calendar", "nepali"])
        assert result.exit_code == 0, result.output
        assert "Poush, 2081" in result.output
        assert "Days:  30" in result.output

    def test_calendar_from_config(self, runner: CliRunner, project_dir: Path) -> None:
        (project_dir / "config.toml").write_text('[calendar]\nsystem = "nepali"\n', encoding="utf-8")
        result = runner.invoke(cli, ["month", "--date", "2024-04-20"])
        assert result.exit_code == 0, result.output
        assert "Baisakh, 2081" in result.output

    def test_invalid_date(self, runner: CliRunner, project_dir: Path) -> None:
        result = runner.invoke(cli, ["month", "--date", "15/01/2024"])
        assert result.exit_code == 1
        assert "Invalid date" in result.output

    def test_invalid_config(self, runner: CliRunner, project_dir: Path) -> None:
        (project_dir / "config.toml").write_text('[calendar]\nsystem = "julian"\n', encoding="utf-8")
        result = runner.invoke(cli, ["month"])
        assert result.exit_code == 1
        assert "Error loading configuration" in result.output

    def test_fallback_note(self, runner: CliRunner, project_dir: Path, monkeypatch) -> None:
        monkeypatch.setattr(
            "budget_calendar.cli._build_engine",
            lambda config: PeriodEngine(oracle=BrokenOracle(), clock=lambda: FIXED_NOW),
        )
        result = runner.invoke(cli, ["month", "--date", "2024-01-15", "--calendar", "nepali"])
        assert result.exit_code == 0, result.output
        assert "Start: 2024-01-01T00:00:00.000Z" in result.output
        assert "Gregorian" in result.output


class TestPageCommand:
    def test_january_2024(self, runner: CliRunner, project_dir: Path) -> None:
        result = runner.invoke(cli, ["page", "--date", "2024-01-15", "--calendar", "gregorian"])
        assert result.exit_code == 0, result.output
        assert "Start: 2023-12-31T00:00:00.000Z" in result.output
        assert "End:   2024-02-03T23:59:59.999Z" in result.output
        lines = result.output.strip().splitlines()
        # Three range lines followed by five week rows.
        assert len(lines) == 8
        assert lines[3].split()[0] == "(31)"
        assert lines[3].split()[1] == "1"
        assert lines[-1].split()[-1] == "(3)"

    def test_monday_week_start_from_config(self, runner: CliRunner, project_dir: Path) -> None:
        (project_dir / "config.toml").write_text('[calendar]\nweek_start = "monday"\n', encoding="utf-8")
        result = runner.invoke(cli, ["page", "--date", "2024-01-15", "--calendar", "gregorian"])
        assert result.exit_code == 0, result.output
        assert "Start: 2024-01-01T00:00:00.000Z" in result.output


# ===========================================================================
# periods range / months
# ===========================================================================


class TestRangeCommand:
    def test_three_months(self, runner: CliRunner, project_dir: Path) -> None:
        result = runner.invoke(cli, ["range", "3m", "--now", "2024-03-15", "--calendar", "gregorian"])
        assert result.exit_code == 0, result.output
        assert "Range: 3m" in result.output
        assert "Start: 2024-01-01T00:00:00.000Z" in result.output
        assert "End:   2024-03-31T23:59:59.999Z" in result.output

    def test_default_token_comes_from_config(self, runner: CliRunner, project_dir: Path) -> None:
        (project_dir / "config.toml").write_text('[periods]\ndefault_range = "6m"\n', encoding="utf-8")
        result = runner.invoke(cli, ["range", "--now", "2024-03-15"])
        assert result.exit_code == 0, result.output
        assert "Range: 6m" in result.output
        assert "Start: 2023-10-01T00:00:00.000Z" in result.output

    def test_default_token_without_config(self, runner: CliRunner, project_dir: Path) -> None:
        result = runner.invoke(cli, ["range"])
        assert result.exit_code == 0, result.output
        assert "Range: this-month" in result.output
        assert "Start: 2024-03-01T00:00:00.000Z" in result.output

    def test_unknown_token(self, runner: CliRunner, project_dir: Path) -> None:
        result = runner.invoke(cli, ["range", "2w"])
        assert result.exit_code == 1
        assert "Unknown range token" in result.output
        assert "this-month" in result.output


class TestMonthsCommand:
    def test_lists_twelve_by_default(self, runner: CliRunner, project_dir: Path) -> None:
        result = runner.invoke(cli, ["months", "--calendar", "gregorian"])
        assert result.exit_code == 0, result.output
        lines = result.output.strip().splitlines()
        assert len(lines) == 12
        assert lines[0] == "2024-03-01T00:00:00.000Z  March, 2024"
        assert lines[-1] == "2023-04-01T00:00:00.000Z  April, 2023"

    def test_count_option(self, runner: CliRunner, project_dir: Path) -> None:
        result = runner.invoke(cli, ["months", "-n", "3", "--now", "2024-01-10", "--calendar", "gregorian"])
        assert result.exit_code == 0, result.output
        assert result.output.strip().splitlines() == [
            "2024-01-01T00:00:00.000Z  January, 2024",
            "2023-12-01T00:00:00.000Z  December, 2023",
            "2023-11-01T00:00:00.000Z  November, 2023",
        ]

    def test_nepali_labels(self, runner: CliRunner, project_dir: Path) -> None:
        result = runner.invoke(cli, ["months", "-n", "2", "--now", "2024-04-20", "--calendar", "nepali"])
        assert result.exit_code == 0, result.output
        lines = result.output.strip().splitlines()
        assert lines[0].endswith("Baisakh, 2081")
        assert lines[1].endswith("Chaitra, 2080")

    def test_count_from_config(self, runner: CliRunner, project_dir: Path) -> None:
        (project_dir / "config.toml").write_text("[periods]\npicker_months = 4\n", encoding="utf-8")
        result = runner.invoke(cli, ["months"])
        assert result.exit_code == 0, result.output
        assert len(result.output.strip().splitlines()) == 4

    def test_rejects_zero(self, runner: CliRunner, project_dir: Path) -> None:
        result = runner.invoke(cli, ["months", "-n", "0"])
        assert result.exit_code == 1
        assert "positive" in result.output


# ===========================================================================
# periods format / convert
# ===========================================================================


class TestFormatCommand:
    def test_long_gregorian(self, runner: CliRunner, project_dir: Path) -> None:
        result = runner.invoke(cli, ["format", "2024-01-05T10:00:00Z", "--verbosity", "long", "--calendar", "gregorian"])
        assert result.exit_code == 0, result.output
        assert result.output.strip() == "January 5, 2024"

    def test_verbosity_from_config(self, runner: CliRunner, project_dir: Path) -> None:
        (project_dir / "config.toml").write_text('[display]\nverbosity = "medium"\n', encoding="utf-8")
        result = runner.invoke(cli, ["format", "2024-01-05"])
        assert result.exit_code == 0, result.output
        assert result.output.strip() == "Jan 5"

    def test_nepali(self, runner: CliRunner, project_dir: Path) -> None:
        result = runner.invoke(cli, ["format", "2024-04-13", "--calendar", "nepali", "--verbosity", "long"])
        assert result.exit_code == 0, result.output
        assert result.output.strip() == "Baisakh 1, 2081"

    def test_invalid_instant(self, runner: CliRunner, project_dir: Path) -> None:
        result = runner.invoke(cli, ["format", "yesterday"])
        assert result.exit_code == 1
        assert "Invalid date" in result.output


class TestConvertCommand:
    def test_nepali(self, runner: CliRunner, project_dir: Path) -> None:
        result = runner.invoke(cli, ["convert", "2024-04-13", "--calendar", "nepali"])
        assert result.exit_code == 0, result.output
        assert "nepali: 2081-01-01" in result.output
        assert "Days in month: 31" in result.output

    def test_gregorian(self, runner: CliRunner, project_dir: Path) -> None:
        result = runner.invoke(cli, ["convert", "2024-02-10", "--calendar", "gregorian"])
        assert result.exit_code == 0, result.output
        assert "gregorian: 2024-02-10" in result.output
        assert "Days in month: 29" in result.output

    def test_outside_table_falls_back(self, runner: CliRunner, project_dir: Path) -> None:
        result = runner.invoke(cli, ["convert", "2010-06-15", "--calendar", "nepali"])
        assert result.exit_code == 0, result.output
        assert "gregorian: 2010-06-15" in result.output
        assert "Days in month: 30" in result.output


# ===========================================================================
# periods init / set-calendar
# ===========================================================================


class TestInitCommand:
    def test_init_creates_config(self, runner: CliRunner, tmp_path: Path) -> None:
        target = tmp_path / "new-project"
        result = runner.invoke(cli, ["init", "--dir", str(target)], catch_exceptions=False)

        assert result.exit_code == 0, result.output
        assert "Initialized" in result.output
        assert str(target.resolve()) in result.output
        assert (target / "config.toml").is_file()

    def test_init_idempotent(self, runner: CliRunner, tmp_path: Path) -> None:
        target = tmp_path / "idempotent-project"
        runner.invoke(cli, ["init", "--dir", str(target)], catch_exceptions=False)

        config_path = target / "config.toml"
        custom_content = config_path.read_text() + "\n# custom comment\n"
        config_path.write_text(custom_content)

        result = runner.invoke(cli, ["init", "--dir", str(target)], catch_exceptions=False)
        assert result.exit_code == 0
        assert config_path.read_text() == custom_content


class TestSetCalendarCommand:
    def test_creates_config_when_missing(self, runner: CliRunner, project_dir: Path) -> None:
        result = runner.invoke(cli, ["set-calendar", "nepali"], catch_exceptions=False)
        assert result.exit_code == 0, result.output
        assert load_config(project_dir).calendar_system is CalendarSystem.NEPALI

    def test_preserves_other_settings(self, runner: CliRunner, project_dir: Path) -> None:
        (project_dir / "config.toml").write_text('[periods]\ndefault_range = "1y"\n', encoding="utf-8")
        result = runner.invoke(cli, ["set-calendar", "nepali"], catch_exceptions=False)
        assert result.exit_code == 0, result.output

        config = load_config(project_dir)
        assert config.calendar_system is CalendarSystem.NEPALI
        assert config.default_range == "1y"

    def test_rejects_unknown_system(self, runner: CliRunner, project_dir: Path) -> None:
        result = runner.invoke(cli, ["set-calendar", "julian"])
        assert result.exit_code != 0
        assert not (project_dir / "config.toml").exists()
