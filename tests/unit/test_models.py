"""Tests for repository models and tree rendering."""

from __future__ import annotations

import base64

from gitlab_mcp_server.models.projects import Project
from gitlab_mcp_server.models.repositories import RepositoryFile, format_tree


def test_format_tree_empty():
    assert format_tree([]) == "Repository directory structure:\n\n"


def test_format_tree_ignores_unknown_keys():
    entries = [{"type": "blob", "path": "a.txt", "unexpected": {"x": 1}}]
    assert format_tree(entries).endswith("File: a.txt\n")


def test_repository_file_decodes_base64():
    raw = base64.b64encode(b"line1\nline2\n").decode()
    f = RepositoryFile.model_validate({"encoding": "base64", "content": raw})
    assert f.decoded_content() == "line1\nline2\n"


def test_repository_file_plain_text_untouched():
    f = RepositoryFile.model_validate({"encoding": "text", "content": "hello"})
    assert f.decoded_content() == "hello"


def test_project_empty_repository_has_no_default_branch():
    project = Project.model_validate(
        {"id": 1, "path_with_namespace": "team/empty", "default_branch": None, "topics": []}
    )
    assert project.default_branch is None
    assert project.path_with_namespace == "team/empty"
    assert not hasattr(project, "topics")
