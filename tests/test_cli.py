"""Tests for the typer CLI."""

from typer.testing import CliRunner

from whopbot import __version__
from whopbot.cli.commands import app, mask

runner = CliRunner()


def test_version():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_commands_table():
    result = runner.invoke(app, ["commands"])
    assert result.exit_code == 0
    assert "/help" in result.stdout
    assert "/ban" in result.stdout


def test_config_masks_secrets(tmp_path, monkeypatch):
    monkeypatch.delenv("WHOP_API_KEY", raising=False)
    env_file = tmp_path / ".env"
    env_file.write_text("WHOP_API_KEY=supersecretkey\n")

    result = runner.invoke(app, ["config", "--env-file", str(env_file)])

    assert result.exit_code == 0
    assert "supersecretkey" not in result.stdout
    assert "****tkey" in result.stdout


def test_run_requires_credentials(tmp_path, monkeypatch):
    monkeypatch.delenv("WHOP_API_KEY", raising=False)
    monkeypatch.delenv("WHOP_AGENT_USER_ID", raising=False)
    env_file = tmp_path / ".env"
    env_file.write_text("WHOP_LOG_LEVEL=ERROR\n")

    result = runner.invoke(app, ["run", "--env-file", str(env_file)])

    assert result.exit_code == 1
    assert "WHOP_API_KEY" in result.stdout


def test_mask():
    assert mask("") == ""
    assert mask("abc") == "****"
    assert mask("abcdefgh") == "****efgh"
