"""Repository models: tree entries, file blobs, and files to push."""

from __future__ import annotations

import base64
from typing import Annotated

from pydantic import BaseModel, Field

from .base import GitLabModel


class TreeEntry(GitLabModel):
    type: str = ""
    path: str = ""


class RepositoryFile(GitLabModel):
    encoding: str = ""
    content: str = ""

    def decoded_content(self) -> str:
        if self.encoding != "base64":
            return self.content
        return base64.b64decode(self.content).decode("utf-8", errors="replace")


class FileEntry(BaseModel):
    """One file in a multi-file push."""

    file_path: Annotated[str, Field(description="Path of the file in the repository", min_length=1)]
    content: Annotated[str, Field(description="Full file content")]


def format_tree(entries: list[dict]) -> str:
    """Render a tree listing, folders first, then files, each in API order."""
    items = [TreeEntry.model_validate(e) for e in entries]
    lines = ["Repository directory structure:", ""]
    lines += [f"Folder: {item.path}/" for item in items if item.type == "tree"]
    lines += [f"File: {item.path}" for item in items if item.type == "blob"]
    return "\n".join(lines) + "\n"
