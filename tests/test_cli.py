"""Tests for CLI interface"""

from __future__ import annotations

import logging
from unittest.mock import patch

import click
import pytest
import yaml
from click.testing import CliRunner

from expobackoff.cli import _die, cli, main, setup_logging


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for name in (
        "EXPOBACKOFF_FACTOR",
        "EXPOBACKOFF_INTERVAL",
        "EXPOBACKOFF_JITTER",
        "EXPOBACKOFF_MAX",
        "EXPOBACKOFF_JITTER_WITHIN_MAX",
    ):
        monkeypatch.delenv(name, raising=False)


def _lines(output: str) -> list:
    return [line for line in output.splitlines() if line.startswith("attempt ")]


class TestSetupLogging:
    """Tests for setup_logging function"""

    def test_setup_logging_info_level(self):
        """Test that logging is set to INFO level by default"""
        setup_logging(verbose=False)
        assert logging.getLogger().level == logging.INFO

    def test_setup_logging_debug_level(self):
        """Test that logging is set to DEBUG level when verbose"""
        setup_logging(verbose=True)
        assert logging.getLogger().level == logging.DEBUG


class TestDie:
    """Tests for _die function"""

    def test_die_without_exception(self):
        """Test _die without exception"""
        with pytest.raises(click.ClickException, match="Test error"):
            _die("Test error", verbose=False)

    def test_die_with_exception_verbose(self):
        """Test _die with exception in verbose mode"""
        exc = ValueError("Test exception")
        with pytest.raises(click.ClickException, match="Test error"):
            _die("Test error", verbose=True, exc=exc)


class TestScheduleCommand:
    """Tests for schedule command"""

    def test_schedule_without_jitter(self):
        """Test deterministic schedule"""
        runner = CliRunner()
        result = runner.invoke(
            cli, ["schedule", "--jitter", "0", "--max", "5"], catch_exceptions=False
        )
        assert result.exit_code == 0
        lines = _lines(result.output)
        assert len(lines) == 6
        assert lines[0] == "attempt 0: 0.500000s"
        assert lines[1] == "attempt 1: 0.875000s"
        assert lines[2] == "attempt 2: 1.531250s"
        assert lines[5] == "attempt 5: 5.000000s"

    def test_schedule_attempts_and_overrides(self):
        """Test factor, interval and attempts options"""
        runner = CliRunner()
        result = runner.invoke(
            cli,
            ["schedule", "--attempts", "4", "--factor", "2", "--interval", "1", "--jitter", "0"],
            catch_exceptions=False,
        )
        assert result.exit_code == 0
        assert _lines(result.output) == [
            "attempt 0: 1.000000s",
            "attempt 1: 2.000000s",
            "attempt 2: 4.000000s",
            "attempt 3: 8.000000s",
        ]

    def test_schedule_no_max(self):
        """Test --no-max removes the ceiling"""
        runner = CliRunner()
        result = runner.invoke(
            cli,
            ["schedule", "--attempts", "9", "--factor", "2", "--interval", "1", "--jitter", "0", "--no-max"],
            catch_exceptions=False,
        )
        assert result.exit_code == 0
        assert _lines(result.output)[-1] == "attempt 8: 256.000000s"

    def test_schedule_nominal_ignores_jitter(self):
        """Test --nominal prints delays without jitter"""
        runner = CliRunner()
        result = runner.invoke(cli, ["schedule", "--nominal", "--attempts", "1"], catch_exceptions=False)
        assert result.exit_code == 0
        assert _lines(result.output) == ["attempt 0: 0.500000s"]

    def test_schedule_seed_is_reproducible(self):
        """Test --seed makes jittered output repeatable"""
        runner = CliRunner()
        args = ["schedule", "--seed", "42", "--max", "5"]
        first = runner.invoke(cli, args, catch_exceptions=False)
        second = runner.invoke(cli, args, catch_exceptions=False)
        assert _lines(first.output) == _lines(second.output)

    def test_schedule_jitter_within_max(self):
        """Test --jitter-within-max keeps delays at or below max"""
        runner = CliRunner()
        result = runner.invoke(
            cli,
            ["schedule", "--attempts", "10", "--max", "2", "--jitter", "1", "--jitter-within-max"],
            catch_exceptions=False,
        )
        assert result.exit_code == 0
        for line in _lines(result.output):
            seconds = float(line.split(": ")[1].rstrip("s"))
            assert seconds <= 2.0

    def test_schedule_uses_config_file(self, tmp_path):
        """Test schedule reads settings from --config"""
        config_file = tmp_path / "backoff.yml"
        config_file.write_text(
            yaml.dump({"backoff": {"factor": 3, "interval": 1, "jitter": 0, "max": 100}}),
            encoding="utf-8",
        )
        runner = CliRunner()
        result = runner.invoke(
            cli, ["--config", str(config_file), "schedule", "--attempts", "3"], catch_exceptions=False
        )
        assert result.exit_code == 0
        assert _lines(result.output) == [
            "attempt 0: 1.000000s",
            "attempt 1: 3.000000s",
            "attempt 2: 9.000000s",
        ]

    def test_schedule_invalid_config(self, tmp_path):
        """Test invalid configuration exits with an error"""
        config_file = tmp_path / "backoff.yml"
        config_file.write_text(yaml.dump({"backoff": {"interval": -1}}), encoding="utf-8")
        runner = CliRunner()
        result = runner.invoke(cli, ["--config", str(config_file), "schedule"])
        assert result.exit_code != 0
        assert "Configuration validation failed" in result.output


class TestConfigCommand:
    """Tests for config command"""

    def test_config_prints_effective_settings(self, monkeypatch):
        """Test config command shows env overrides"""
        monkeypatch.setenv("EXPOBACKOFF_FACTOR", "2.5")
        runner = CliRunner()
        result = runner.invoke(cli, ["config"], catch_exceptions=False)
        assert result.exit_code == 0
        data = yaml.safe_load(result.output)
        assert data["backoff"]["factor"] == 2.5
        assert data["backoff"]["jitter_within_max"] is False


class TestMain:
    """Tests for main function"""

    @patch("expobackoff.cli.cli")
    def test_main_calls_cli(self, mock_cli):
        """Test that main function calls cli"""
        main()
        mock_cli.assert_called_once_with(obj={})
