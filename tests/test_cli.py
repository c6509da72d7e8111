"""Tests for the mbr-tui CLI."""

import json

import pytest
import respx
from click.testing import CliRunner
from httpx import Response

from mbr_tui.cli import cli


@pytest.fixture
def runner() -> CliRunner:
    """Create a CLI test runner."""
    return CliRunner()


class TestCLI:
    """Tests for the main CLI."""

    def test_cli_version(self, runner: CliRunner) -> None:
        """Test CLI version option."""
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_cli_help(self, runner: CliRunner) -> None:
        """Test CLI help output."""
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "Metabase" in result.output
        assert "dashboard" in result.output
        assert "whoami" in result.output

    def test_dashboard_help_shows_shortcuts(self, runner: CliRunner) -> None:
        """Test that dashboard help lists keyboard shortcuts."""
        result = runner.invoke(cli, ["dashboard", "--help"])
        assert result.exit_code == 0
        assert "Keyboard shortcuts" in result.output
        assert "--page-size" in result.output

    def test_dashboard_rejects_bad_config(self, runner: CliRunner, config_path) -> None:
        """The dashboard refuses to start on an invalid saved config."""
        config_path.write_text(json.dumps({"url": "not-a-url"}))
        result = runner.invoke(cli, ["dashboard"])
        assert result.exit_code == 1
        assert "Invalid server URL" in result.output


class TestConfigCommand:
    """Tests for the config command group."""

    def test_set_url(self, runner: CliRunner, config_path) -> None:
        result = runner.invoke(cli, ["config", "set-url", "https://bi.example.com/"])
        assert result.exit_code == 0
        assert "url = https://bi.example.com" in result.output
        assert json.loads(config_path.read_text())["url"] == "https://bi.example.com"

    def test_set_value(self, runner: CliRunner, config_path) -> None:
        result = runner.invoke(cli, ["config", "set", "page_size", "25"])
        assert result.exit_code == 0
        assert json.loads(config_path.read_text())["page_size"] == 25

    def test_set_invalid_value(self, runner: CliRunner, config_path) -> None:
        result = runner.invoke(cli, ["config", "set", "page_size", "0"])
        assert result.exit_code == 1
        assert "Error:" in result.output
        assert not config_path.exists()

    def test_set_unknown_key(self, runner: CliRunner, config_path) -> None:
        result = runner.invoke(cli, ["config", "set", "colour", "blue"])
        assert result.exit_code == 1
        assert "Known settings" in result.output

    def test_show(self, runner: CliRunner, config_path, monkeypatch) -> None:
        monkeypatch.setenv("MBR_URL", "http://env-host:3000")
        result = runner.invoke(cli, ["config", "show"])
        assert result.exit_code == 0
        assert "page_size: 100" in result.output
        assert "effective url: http://env-host:3000" in result.output
        assert "api key: not set" in result.output

    def test_reset(self, runner: CliRunner, config_path) -> None:
        runner.invoke(cli, ["config", "set", "page_size", "25"])
        result = runner.invoke(cli, ["config", "reset", "--yes"])
        assert result.exit_code == 0
        assert json.loads(config_path.read_text())["page_size"] == 100

    def test_reset_aborted(self, runner: CliRunner, config_path) -> None:
        result = runner.invoke(cli, ["config", "reset"], input="n\n")
        assert result.exit_code == 1
        assert not config_path.exists()


class TestWhoamiCommand:
    """Tests for the whoami command."""

    @respx.mock
    def test_whoami(self, runner: CliRunner, config_path, monkeypatch) -> None:
        monkeypatch.setenv("MBR_API_KEY", "mb_key")
        respx.get("http://bi.test/api/user/current").mock(
            return_value=Response(
                200,
                json={"id": 1, "email": "ada@example.com", "first_name": "Ada", "is_superuser": True},
            )
        )
        result = runner.invoke(cli, ["whoami", "--url", "http://bi.test"])
        assert result.exit_code == 0
        assert "Connected to http://bi.test" in result.output
        assert "User: Ada" in result.output
        assert "Role: admin" in result.output

    @respx.mock
    def test_whoami_unauthorized(self, runner: CliRunner, config_path) -> None:
        respx.get("http://bi.test/api/user/current").mock(return_value=Response(401))
        result = runner.invoke(cli, ["whoami", "--url", "http://bi.test"])
        assert result.exit_code == 1
        assert "Authentication failed" in result.output
