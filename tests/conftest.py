"""Shared test fixtures for gitlab-mcp-server."""

from __future__ import annotations

import pytest
import respx

from gitlab_mcp_server.client import GitLabClient
from gitlab_mcp_server.config import GitLabConfig

TEST_URL = "https://gitlab.example.com"
TEST_TOKEN = "test-token"
TEST_API_URL = f"{TEST_URL}/api/v4"


@pytest.fixture
def config() -> GitLabConfig:
    return GitLabConfig(url=TEST_URL, token=TEST_TOKEN)


@pytest.fixture
async def client(config: GitLabConfig):
    gl = GitLabClient(config)
    yield gl
    await gl.close()


@pytest.fixture
def mock_api() -> respx.MockRouter:
    with respx.mock(base_url=TEST_API_URL) as router:
        yield router
