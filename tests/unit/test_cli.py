"""Tests for the command-line entry point and logging setup."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest
from click.testing import CliRunner
from fastmcp import Client

from gitlab_mcp_server import __version__, main
from gitlab_mcp_server.log import LOGGER_NAME, setup_logging
from gitlab_mcp_server.servers.gitlab import READ_ONLY_TOOLS, mcp, set_read_only

NO_TOKEN_ENV = {
    "GITLAB_TOKEN": None,
    "GITLAB_PAT": None,
    "GITLAB_PERSONAL_ACCESS_TOKEN": None,
    "GITLAB_API_TOKEN": None,
}

# Every key main() may write is listed so CliRunner restores it afterwards.
RUN_ENV = {
    **NO_TOKEN_ENV,
    "GITLAB_TOKEN": "test-token",
    "GITLAB_URL": "https://gitlab.example.com",
    "GITLAB_API_URL": None,
    "GITLAB_READ_ONLY": None,
    "GITLAB_LOG_LEVEL": None,
}


@pytest.fixture
def served(monkeypatch):
    """Replace the transport loop with one in-memory session that records the catalog."""
    seen: dict = {}

    async def fake_run_async(**kwargs):
        seen["run_kwargs"] = kwargs
        async with Client(mcp) as client:
            seen["tools"] = {t.name for t in await client.list_tools()}

    monkeypatch.setattr(mcp, "run_async", fake_run_async)
    logger = logging.getLogger(LOGGER_NAME)
    level = logger.level
    try:
        yield seen
    finally:
        set_read_only(False)
        logger.setLevel(level)


def test_version():
    result = CliRunner().invoke(main, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_missing_token_is_usage_error():
    runner = CliRunner()
    with runner.isolated_filesystem():
        result = runner.invoke(main, [], env=NO_TOKEN_ENV)
    assert result.exit_code == 2
    assert "token is required" in result.output


def test_all_tools_served_by_default(served):
    runner = CliRunner()
    with runner.isolated_filesystem():
        result = runner.invoke(main, [], env=RUN_ENV)
    assert result.exit_code == 0, result.output
    assert len(served["tools"]) == 10
    assert served["run_kwargs"] == {"show_banner": False, "transport": "stdio"}


@pytest.mark.parametrize(
    "args, env",
    [
        (["--read-only"], {}),
        (["--readonly"], {}),
        ([], {"GITLAB_READ_ONLY": "true"}),
    ],
    ids=["flag", "flag-alias", "env"],
)
def test_read_only_serves_read_tools(served, args, env):
    runner = CliRunner()
    with runner.isolated_filesystem():
        result = runner.invoke(main, args, env={**RUN_ENV, **env})
    assert result.exit_code == 0, result.output
    assert served["tools"] == set(READ_ONLY_TOOLS)


def test_http_transport_gets_host_and_port(served):
    runner = CliRunner()
    with runner.isolated_filesystem():
        result = runner.invoke(
            main, ["--transport", "streamable-http", "--port", "9000"], env=RUN_ENV
        )
    assert result.exit_code == 0, result.output
    assert served["run_kwargs"] == {
        "show_banner": False,
        "transport": "streamable-http",
        "host": "127.0.0.1",
        "port": 9000,
    }


def test_log_level_from_dotenv(served):
    runner = CliRunner()
    with runner.isolated_filesystem():
        Path(".env").write_text("GITLAB_LOG_LEVEL=DEBUG\n")
        result = runner.invoke(main, [], env=RUN_ENV)
    assert result.exit_code == 0, result.output
    assert logging.getLogger(LOGGER_NAME).level == logging.DEBUG


def test_log_level_flag_beats_environment(served):
    runner = CliRunner()
    with runner.isolated_filesystem():
        result = runner.invoke(
            main, ["--log-level", "error"], env={**RUN_ENV, "GITLAB_LOG_LEVEL": "DEBUG"}
        )
    assert result.exit_code == 0, result.output
    assert logging.getLogger(LOGGER_NAME).level == logging.ERROR


def test_invalid_log_level_is_usage_error(served):
    runner = CliRunner()
    with runner.isolated_filesystem():
        result = runner.invoke(main, [], env={**RUN_ENV, "GITLAB_LOG_LEVEL": "LOUD"})
    assert result.exit_code == 2
    assert "GITLAB_LOG_LEVEL" in result.output
    assert "tools" not in served


def test_setup_logging_is_idempotent():
    logger = setup_logging("debug")
    setup_logging("warning")
    assert logger.name == LOGGER_NAME
    assert logger.level == logging.WARNING
    tagged = [h for h in logger.handlers if getattr(h, "_gitlab_mcp", False)]
    assert len(tagged) == 1
