"""MCP server exposing GitLab project-management tools."""

import asyncio
import logging
import os

import click
from dotenv import find_dotenv, load_dotenv

__version__ = "0.0.3"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

logger = logging.getLogger(__name__)


@click.command()
@click.option(
    "--transport",
    type=click.Choice(["stdio", "sse", "streamable-http"]),
    default="stdio",
    help="MCP transport type",
)
@click.option("--port", default=8000, help="Port for HTTP transports")
@click.option("--host", default="127.0.0.1", help="Host for HTTP transports")
@click.option("--gitlab-url", envvar="GITLAB_URL", help="GitLab instance URL")
@click.option("--gitlab-token", envvar="GITLAB_TOKEN", help="GitLab personal access token")
@click.option("--read-only", "--readonly", "read_only", is_flag=True, help="Disable write tools")
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    help="Log level, logs go to stderr [env: GITLAB_LOG_LEVEL; default: INFO]",
)
@click.version_option(__version__, prog_name="gitlab-mcp-server")
def main(
    transport: str,
    port: int,
    host: str,
    gitlab_url: str | None,
    gitlab_token: str | None,
    read_only: bool,
    log_level: str | None,
) -> None:
    """Run the GitLab MCP server."""
    # .env must be loaded before GITLAB_LOG_LEVEL is resolved.
    load_dotenv(find_dotenv(usecwd=True))

    level = (log_level or os.getenv("GITLAB_LOG_LEVEL") or "INFO").upper()
    if level not in LOG_LEVELS:
        raise click.BadParameter(
            f"{level!r} is not one of {', '.join(LOG_LEVELS)}", param_hint="GITLAB_LOG_LEVEL"
        )

    from .log import setup_logging

    setup_logging(level)

    if gitlab_url:
        os.environ["GITLAB_URL"] = gitlab_url
    if gitlab_token:
        os.environ["GITLAB_TOKEN"] = gitlab_token
    if read_only:
        os.environ["GITLAB_READ_ONLY"] = "true"

    from .config import GitLabConfig
    from .servers.gitlab import mcp, set_read_only

    config = GitLabConfig.from_env()
    try:
        config.validate()
    except ValueError as e:
        raise click.UsageError(str(e)) from e
    if config.read_only:
        set_read_only(True)

    run_kwargs: dict = {"transport": transport}
    if transport != "stdio":
        run_kwargs["host"] = host
        run_kwargs["port"] = port

    logger.info(
        "GitLab MCP Server %s running on %s (%s%s)",
        __version__,
        transport,
        config.api_url,
        ", read-only" if config.read_only else "",
    )
    asyncio.run(mcp.run_async(show_banner=False, **run_kwargs))


if __name__ == "__main__":
    main()
