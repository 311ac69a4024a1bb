"""Base model for GitLab API payloads."""

from __future__ import annotations

from pydantic import BaseModel


class GitLabModel(BaseModel):
    """Lenient view over a GitLab response: unknown keys are ignored, never rejected."""

    model_config = {"extra": "ignore", "populate_by_name": True}
