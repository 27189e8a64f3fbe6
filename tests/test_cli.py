"""CLI tests — argument handling and SSE line parsing (no server needed)."""

from click.testing import CliRunner

from creatorcompass.cli.main import main, parse_sse_line


def test_parse_sse_line():
    assert parse_sse_line('data: {"type":"heartbeat"}') == {"type": "heartbeat"}
    assert parse_sse_line("") is None
    assert parse_sse_line(": comment") is None
    assert parse_sse_line("data: not json") is None


def test_version():
    result = CliRunner().invoke(main, ["--version"])
    assert result.exit_code == 0
    assert "0.1.0" in result.output


def test_listen_requires_token(monkeypatch):
    monkeypatch.delenv("CREATORCOMPASS_TOKEN", raising=False)
    result = CliRunner().invoke(main, ["listen"])
    assert result.exit_code == 1
    assert "--token required" in result.output


def test_listen_rejects_unknown_channel():
    result = CliRunner().invoke(main, ["listen", "--channel", "everything", "--token", "t"])
    assert result.exit_code == 2


def test_run_cron_requires_secret(monkeypatch):
    monkeypatch.delenv("CREATORCOMPASS_CRON_SECRET", raising=False)
    result = CliRunner().invoke(main, ["run-cron"])
    assert result.exit_code == 1
    assert "--secret required" in result.output
