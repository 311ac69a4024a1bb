"""Errors raised while talking to GitLab on behalf of a tool call."""

from __future__ import annotations


class GitLabError(Exception):
    """Root of every error this server raises for a GitLab operation."""


class GitLabApiError(GitLabError):
    """GitLab answered, but not with a usable success response."""

    def __init__(self, status_code: int, status_text: str, body: str = "") -> None:
        self.status_code = status_code
        self.status_text = status_text
        self.body = body
        super().__init__(f"GitLab API Error {status_code} {status_text}: {body}")


class GitLabAuthError(GitLabApiError):
    """The token was rejected (401) or lacks access to the resource (403)."""

    def __init__(self, status_code: int, body: str = "") -> None:
        status_text = "Unauthorized" if status_code == 401 else "Forbidden"
        super().__init__(status_code, status_text, body)


class GitLabNotFoundError(GitLabApiError):
    """The project, file, or ref does not exist (404)."""

    def __init__(self, body: str = "") -> None:
        super().__init__(404, "Not Found", body)


class GitLabWriteDisabledError(GitLabError):
    """A write tool was called while the server runs in read-only mode."""

    def __init__(self, tool: str = "") -> None:
        target = f" ({tool})" if tool else ""
        super().__init__(f"Write operations are disabled in read-only mode{target}")
