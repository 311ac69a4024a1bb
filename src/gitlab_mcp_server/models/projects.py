"""Project model."""

from __future__ import annotations

from .base import GitLabModel


class Project(GitLabModel):
    id: int
    path_with_namespace: str = ""
    default_branch: str | None = None
