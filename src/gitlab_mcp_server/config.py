"""GitLab MCP server configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_GITLAB_URL = "https://gitlab.com"
API_PATH = "/api/v4"


@dataclass
class GitLabConfig:
    """Configuration for the GitLab MCP server, loaded from environment variables."""

    url: str = DEFAULT_GITLAB_URL
    token: str = ""
    read_only: bool = False
    timeout: int = 30
    ssl_verify: bool = True
    api_base: str = ""

    @classmethod
    def from_env(cls) -> GitLabConfig:
        api_base = os.getenv("GITLAB_API_URL", "").rstrip("/")
        url = (
            os.getenv("GITLAB_URL", "").rstrip("/")
            or api_base.removesuffix(API_PATH)
            or DEFAULT_GITLAB_URL
        )
        token = (
            os.getenv("GITLAB_TOKEN")
            or os.getenv("GITLAB_PAT")
            or os.getenv("GITLAB_PERSONAL_ACCESS_TOKEN")
            or os.getenv("GITLAB_API_TOKEN", "")
        )
        read_only = os.getenv("GITLAB_READ_ONLY", "false").lower() in (
            "true",
            "1",
            "yes",
        )
        timeout = int(os.getenv("GITLAB_TIMEOUT", "30"))
        ssl_verify = os.getenv("GITLAB_SSL_VERIFY", "true").lower() not in (
            "false",
            "0",
            "no",
        )

        return cls(
            url=url,
            token=token,
            read_only=read_only,
            timeout=timeout,
            ssl_verify=ssl_verify,
            api_base=api_base,
        )

    @property
    def api_url(self) -> str:
        """Explicit GITLAB_API_URL wins; otherwise the v4 API under the instance URL."""
        return self.api_base or f"{self.url}{API_PATH}"

    def validate(self) -> None:
        if not self.url and not self.api_base:
            msg = "GITLAB_URL or GITLAB_API_URL environment variable is required"
            raise ValueError(msg)
        if not self.token:
            msg = (
                "GitLab token is required. Set one of: GITLAB_TOKEN, GITLAB_PAT, "
                "GITLAB_PERSONAL_ACCESS_TOKEN, or GITLAB_API_TOKEN"
            )
            raise ValueError(msg)
