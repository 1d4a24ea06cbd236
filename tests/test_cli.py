"""
Tests for the CLI interface.
"""
import os
import tempfile
from dataclasses import replace
from unittest.mock import patch

import pytest
import yaml
from typer.testing import CliRunner

from energyiq.cli.main import app, EXIT_CODE_PASS, EXIT_CODE_FAIL
from energyiq.core.calculator import calculate_all_devices
from energyiq.core.devices import DeviceType
from energyiq.core.tips import fallback_tips
from energyiq.sdk.assistant_client import AssistantReply
from energyiq.storage.models import Device
from energyiq.storage.repository import HistoryRepository

runner = CliRunner()


@pytest.fixture
def workspace():
    """Config file and history database in a temporary directory."""
    with tempfile.TemporaryDirectory() as temp_dir:
        db_path = os.path.join(temp_dir, "history.db")
        config_path = os.path.join(temp_dir, "config.yaml")
        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.dump({
                "history": {"db_path": db_path},
                "assistant": {"api_key_env": "ENERGYIQ_CLI_TEST_UNSET_KEY"},
            }, f)
        yield config_path, db_path


@pytest.fixture
def saved_result(workspace):
    """A calculation stored in the workspace history."""
    _, db_path = workspace
    device = Device(id="d1", type=DeviceType.AC, quantity=2, wattage=1500, hours_per_day=2.0)
    result = calculate_all_devices([device], 8.0, "₹", "India")
    HistoryRepository(db_path).append(result)
    return result


class TestCLI:
    """Test CLI commands."""

    def test_no_command_prints_hint(self, workspace):
        """Running without a command points at --help."""
        config_path, _ = workspace
        result = runner.invoke(app, ["--config", config_path])

        assert result.exit_code == EXIT_CODE_PASS
        assert "--help" in result.output

    def test_bad_config_fails(self):
        """A missing config file exits with a failure code."""
        result = runner.invoke(app, ["--config", "/nonexistent/energyiq.yaml", "history"])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "Error loading configuration" in result.output

    def test_init(self, workspace):
        """init creates the history database."""
        config_path, db_path = workspace
        result = runner.invoke(app, ["--config", config_path, "init"])

        assert result.exit_code == EXIT_CODE_PASS
        assert os.path.exists(db_path)

    def test_chat_end_to_end(self, workspace):
        """A full conversation shows the result and saves it."""
        config_path, db_path = workspace
        result = runner.invoke(
            app,
            ["--config", config_path, "chat", "--country", "India"],
            input="1\nAC\n2\nauto\n2h\nquit\n"
        )

        assert result.exit_code == EXIT_CODE_PASS
        assert "Calculation Complete" in result.output
        assert "1440" in result.output
        saved = HistoryRepository(db_path).list()
        assert len(saved) == 1
        assert saved[0].total_monthly_cost == 1440.0

    def test_chat_ends_on_eof(self, workspace):
        """Closing input ends the conversation cleanly."""
        config_path, _ = workspace
        result = runner.invoke(app, ["--config", config_path, "chat"], input="2\n")

        assert result.exit_code == EXIT_CODE_PASS
        assert "Goodbye" in result.output

    def test_rates(self, workspace):
        """rates lists tariffs, filtered by region."""
        config_path, _ = workspace
        result = runner.invoke(app, ["--config", config_path, "rates", "--region", "Europe"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Germany" in result.output
        assert "India" not in result.output

    def test_rate_unknown_country(self, workspace):
        """An unknown country fails."""
        config_path, _ = workspace
        result = runner.invoke(app, ["--config", config_path, "rate", "Atlantis"])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "Unsupported country" in result.output

    def test_rate_known_country(self, workspace):
        """A known country prints its tariff."""
        config_path, _ = workspace
        result = runner.invoke(app, ["--config", config_path, "rate", "uk"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "United Kingdom" in result.output
        assert "£0.34/kWh" in result.output

    def test_history_empty(self, workspace):
        """An empty history says so."""
        config_path, _ = workspace
        result = runner.invoke(app, ["--config", config_path, "history"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "No saved calculations yet" in result.output

    def test_show(self, workspace, saved_result):
        """show prints the device breakdown."""
        config_path, _ = workspace
        result = runner.invoke(app, ["--config", config_path, "show", saved_result.id])

        assert result.exit_code == EXIT_CODE_PASS
        assert "₹1,440.00" in result.output

    def test_show_unknown_id(self, workspace):
        """An unknown id fails."""
        config_path, _ = workspace
        result = runner.invoke(app, ["--config", config_path, "show", "missing"])

        assert result.exit_code == EXIT_CODE_FAIL

    def test_delete_and_clear(self, workspace, saved_result):
        """delete removes one result and clear-history removes the rest."""
        config_path, db_path = workspace

        result = runner.invoke(app, ["--config", config_path, "delete", saved_result.id])
        assert result.exit_code == EXIT_CODE_PASS
        result = runner.invoke(app, ["--config", config_path, "delete", saved_result.id])
        assert result.exit_code == EXIT_CODE_FAIL

        HistoryRepository(db_path).append(saved_result)
        result = runner.invoke(app, ["--config", config_path, "clear-history", "--yes"])
        assert result.exit_code == EXIT_CODE_PASS
        assert HistoryRepository(db_path).list() == []

    def test_export_csv(self, workspace, saved_result):
        """export writes the requested format."""
        config_path, db_path = workspace
        output = os.path.join(os.path.dirname(db_path), "out.csv")
        result = runner.invoke(app, [
            "--config", config_path, "export", saved_result.id, "--format", "csv", "--output", output
        ])

        assert result.exit_code == EXIT_CODE_PASS
        assert os.path.exists(output)

    def test_tips_rules(self, workspace, saved_result):
        """--rules prints device suggestions."""
        config_path, _ = workspace
        result = runner.invoke(app, ["--config", config_path, "tips", saved_result.id, "--rules"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "AC Optimization" in result.output

    def test_tips_ai_fallback(self, workspace, saved_result):
        """Without AI the built-in tips are shown."""
        config_path, _ = workspace
        with patch('energyiq.cli.main.EnergyAssistant') as mock_assistant:
            mock_assistant.from_config.return_value.generate_tips.return_value = fallback_tips(saved_result)
            result = runner.invoke(app, ["--config", config_path, "tips", saved_result.id])

        assert result.exit_code == EXIT_CODE_PASS
        assert "AI tips unavailable" in result.output
        assert "Optimize AC Usage" in result.output

    def test_ask(self, workspace):
        """ask prints the assistant's answer."""
        config_path, _ = workspace
        with patch('energyiq.cli.main.EnergyAssistant') as mock_assistant:
            mock_assistant.from_config.return_value.answer_question.return_value = AssistantReply(
                "LEDs use about 9W.", "ai"
            )
            result = runner.invoke(app, ["--config", config_path, "ask", "How much do LEDs use?"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "LEDs use about 9W." in result.output

    def test_summary_empty(self, workspace):
        """summary on an empty history shows zero totals and general tips."""
        config_path, _ = workspace
        result = runner.invoke(app, ["--config", config_path, "summary"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Energy Dashboard" in result.output
        assert "No saved calculations yet" in result.output
        assert "Quick Tips" in result.output

    def test_summary(self, workspace, saved_result):
        """summary totals the saved calculations."""
        config_path, db_path = workspace
        HistoryRepository(db_path).append(replace(saved_result, id="second"))
        result = runner.invoke(app, ["--config", config_path, "summary"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "₹1,440.00" in result.output
        assert "Latest" in result.output
        assert "1. " in result.output


class TestHistoryUnavailable:
    """Commands that read history fail cleanly when the database can't be opened."""

    @pytest.fixture
    def broken_config(self):
        """Config whose history path is a directory."""
        with tempfile.TemporaryDirectory() as temp_dir:
            config_path = os.path.join(temp_dir, "config.yaml")
            with open(config_path, 'w', encoding='utf-8') as f:
                yaml.dump({
                    "history": {"db_path": temp_dir},
                    "assistant": {"api_key_env": "ENERGYIQ_CLI_TEST_UNSET_KEY"},
                }, f)
            yield config_path

    @pytest.mark.parametrize("args", [
        ["history"],
        ["summary"],
        ["show", "abc"],
        ["delete", "abc"],
        ["export", "abc"],
        ["tips", "abc"],
    ])
    def test_history_commands_fail(self, broken_config, args):
        """A history database that can't be opened gives a message and exit code 1."""
        result = runner.invoke(app, ["--config", broken_config] + args)

        assert result.exit_code == EXIT_CODE_FAIL
        assert "History database unavailable" in result.output
