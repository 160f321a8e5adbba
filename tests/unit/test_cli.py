"""Unit tests for the command-line interface."""

import json

import pytest
from click.testing import CliRunner

from rlqueue.cli import cli


class TestConfigCommand:
    """Test the config command."""

    def test_shows_configuration(self):
        """Test options are reflected in the output."""
        runner = CliRunner()
        result = runner.invoke(cli, ["config", "--max-slots", "4", "--window-ms", "250"])
        assert result.exit_code == 0
        assert "Max Slots: 4" in result.output
        assert "Window: 250ms" in result.output

    def test_invalid_env_is_usage_error(self, monkeypatch):
        """Test a malformed environment value is reported as a bad parameter."""
        monkeypatch.setenv("RLQUEUE_WINDOW_MS", "soon")
        runner = CliRunner()
        result = runner.invoke(cli, ["config"])
        assert result.exit_code == 2
        assert "Invalid value for RLQUEUE_WINDOW_MS" in result.output


@pytest.mark.usefixtures("restore_root_logger")
class TestDemoCommand:
    """Test the demo command."""

    def test_demo_runs_all_tasks(self):
        """Test every task runs and stats are printed."""
        runner = CliRunner()
        result = runner.invoke(
            cli,
            ["demo", "--max-slots", "2", "--window-ms", "10", "--tasks", "5",
             "--log-level", "ERROR"],
        )
        assert result.exit_code == 0, result.output
        assert result.output.count("ok:") == 5

        stats = json.loads(result.output[result.output.index("{"):])
        assert stats["tasks_submitted_total"] == 5
        assert stats["tasks_executed_total"] == 5
        assert stats["closed"] is True

    def test_demo_reports_failures(self):
        """Test failing tasks are reported without stopping the rest."""
        runner = CliRunner()
        result = runner.invoke(
            cli,
            ["demo", "--max-slots", "3", "--window-ms", "10", "--tasks", "6",
             "--fail-every", "3", "--log-level", "CRITICAL"],
        )
        assert result.exit_code == 0, result.output
        assert result.output.count("failed:") == 2
        assert result.output.count("ok:") == 4

    def test_demo_rejects_invalid_limits(self):
        """Test invalid queue limits are reported as bad parameters."""
        runner = CliRunner()
        result = runner.invoke(cli, ["demo", "--max-slots", "0", "--log-level", "ERROR"])
        assert result.exit_code != 0

    def test_demo_rejects_invalid_env(self, monkeypatch):
        """Test a malformed environment value is a usage error, not a traceback."""
        monkeypatch.setenv("RLQUEUE_MAX_SLOTS", "abc")
        runner = CliRunner()
        result = runner.invoke(cli, ["demo", "--log-level", "ERROR"])
        assert result.exit_code == 2
        assert "RLQUEUE_MAX_SLOTS" in result.output
        assert not isinstance(result.exception, ValueError)
