"""Logging setup for the GitLab MCP server."""

from __future__ import annotations

import logging
import sys

LOGGER_NAME = "gitlab_mcp_server"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Send package logs to stderr.

    stdout is reserved for the stdio transport, so nothing may be logged there.
    Calling this twice does not stack handlers.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level.upper())
    if not any(getattr(h, "_gitlab_mcp", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._gitlab_mcp = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
    return logger
