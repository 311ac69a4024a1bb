"""GitLab MCP server — all tool registrations."""

import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Annotated, Any, Literal, NoReturn

from fastmcp import Context, FastMCP
from fastmcp.exceptions import ToolError
from pydantic import Field

from .. import __version__
from ..client import GitLabClient
from ..config import GitLabConfig
from ..exceptions import (
    GitLabApiError,
    GitLabAuthError,
    GitLabNotFoundError,
    GitLabWriteDisabledError,
)
from ..models.repositories import FileEntry, RepositoryFile, format_tree
from ._helpers import _parse_gitlab_project_url

logger = logging.getLogger(__name__)

READ_ONLY_TOOLS = ("search_repositories", "get_repository_tree", "get_file_contents")

RepoFilePath = Annotated[
    str, Field(description="Path of the file in the repository", min_length=1)
]

ProjectId = Annotated[
    str,
    Field(
        description=(
            "Project ID, URL-encoded path (e.g. 'my-group/my-project'), or project URL"
        ),
        min_length=1,
    ),
]


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncIterator[dict[str, Any]]:
    config = GitLabConfig.from_env()
    config.validate()
    client = GitLabClient(config)
    try:
        yield {"client": client, "config": config}
    finally:
        await client.close()


mcp = FastMCP(
    name="gitlab-mcp-server",
    version=__version__,
    instructions=(
        "Provides tools for managing GitLab projects: read and write files, search and"
        " create repositories, and create branches, forks, issues, and merge requests."
    ),
    lifespan=lifespan,
)


def _get_client(ctx: Context) -> GitLabClient:
    return ctx.request_context.lifespan_context["client"]


def _get_config(ctx: Context) -> GitLabConfig:
    return ctx.request_context.lifespan_context["config"]


def _check_write(ctx: Context, tool: str) -> None:
    if _get_config(ctx).read_only:
        raise GitLabWriteDisabledError(tool)


def _project(project_id: str) -> str:
    return _parse_gitlab_project_url(project_id.strip())


def _ok(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)


def _paginated(
    items: list,
    total: int | None = None,
    *,
    offset: int = 0,
    has_next: bool | None = None,
) -> str:
    """Wrap a list response with pagination metadata.

    ``has_next`` (from X-Next-Page) wins when known; otherwise *offset* (items on
    earlier pages) plus this page is compared against *total*.
    """
    if has_next is None:
        has_next = total is not None and offset + len(items) < total
    return json.dumps(
        {
            "items": items,
            "count": len(items),
            "total": total,
            "has_more": has_next,
        },
        indent=2,
        ensure_ascii=False,
    )


def _err(error: Exception) -> str:
    detail: dict[str, Any] = {"error": str(error)}

    if isinstance(error, GitLabNotFoundError):
        detail["status_code"] = error.status_code
        detail["body"] = error.body
        detail["hint"] = (
            "Verify the project ID/path, file path, and ref. Use search_repositories"
            " to find the project."
        )
    elif isinstance(error, GitLabAuthError):
        detail["status_code"] = error.status_code
        detail["body"] = error.body
        detail["hint"] = "Check GITLAB_TOKEN permissions. Token needs 'api' scope."
    elif isinstance(error, GitLabWriteDisabledError):
        detail["hint"] = (
            "Server is in read-only mode. Restart without --read-only to enable writes."
        )
    elif isinstance(error, GitLabApiError):
        detail["status_code"] = error.status_code
        detail["body"] = error.body
        if error.status_code == 409:
            detail["hint"] = "Conflict — resource may already exist or be locked."
        elif error.status_code == 422:
            detail["hint"] = "Validation failed — check required fields and formats."
        elif error.status_code == 429:
            detail["hint"] = "Rate limited. Wait before retrying."
    return json.dumps(detail, indent=2, ensure_ascii=False)


def _fail(tool: str, error: Exception) -> NoReturn:
    """Report *error* to the caller as a failed tool result."""
    logger.warning("%s failed: %s", tool, error)
    raise ToolError(_err(error)) from error


def set_read_only(enabled: bool) -> None:
    """Advertise only the read tools (or all tools again when *enabled* is False)."""
    for tool in WRITE_TOOLS:
        if enabled:
            tool.disable()
        else:
            tool.enable()


# ════════════════════════════════════════════════════════════════════
# Files
# ════════════════════════════════════════════════════════════════════


@mcp.tool(
    tags={"gitlab", "files", "write"},
    annotations={"readOnlyHint": False, "idempotentHint": True, "openWorldHint": True},
)
async def create_or_update_file(
    ctx: Context,
    project_id: ProjectId,
    file_path: RepoFilePath,
    content: Annotated[str, Field(description="Full content of the file")],
    commit_message: Annotated[str, Field(description="Commit message", min_length=1)],
    branch: Annotated[str, Field(description="Branch to commit to", min_length=1)],
    previous_path: Annotated[
        str | None, Field(description="Old path of the file when it is being moved")
    ] = None,
) -> str:
    """Create or update a single file in a GitLab project."""
    try:
        _check_write(ctx, "create_or_update_file")
        client = _get_client(ctx)
        project = _project(project_id)
        params: dict[str, Any] = {
            "branch": branch,
            "content": content,
            "commit_message": commit_message,
            "encoding": "text",
        }
        if previous_path is not None:
            params["previous_path"] = previous_path
        if await client.file_exists(project, file_path, branch):
            data = await client.update_file(project, file_path, params)
        else:
            data = await client.create_file(project, file_path, params)
        return _ok(data)
    except Exception as e:
        _fail("create_or_update_file", e)


@mcp.tool(
    tags={"gitlab", "files", "read"},
    annotations={"readOnlyHint": True, "idempotentHint": True, "openWorldHint": True},
)
async def get_file_contents(
    ctx: Context,
    project_id: ProjectId,
    file_path: RepoFilePath,
    ref: Annotated[
        str | None, Field(description="Branch, tag, or commit SHA (defaults to HEAD)")
    ] = None,
) -> str:
    """Get the contents of a file from a GitLab project.

    Base64 content is decoded to text, and ``encoding`` is reported as ``text``.
    """
    try:
        data = await _get_client(ctx).get_file(_project(project_id), file_path, ref or "HEAD")
        if isinstance(data, dict) and data.get("encoding") == "base64":
            data["content"] = RepositoryFile.model_validate(data).decoded_content()
            data["encoding"] = "text"
        return _ok(data)
    except Exception as e:
        _fail("get_file_contents", e)


@mcp.tool(
    tags={"gitlab", "files", "write"},
    annotations={"readOnlyHint": False, "openWorldHint": True},
)
async def push_files(
    ctx: Context,
    project_id: ProjectId,
    branch: Annotated[str, Field(description="Branch to push to", min_length=1)],
    files: Annotated[
        list[FileEntry], Field(description="Files to create in the commit", min_length=1)
    ],
    commit_message: Annotated[str, Field(description="Commit message", min_length=1)],
) -> str:
    """Push multiple files to a GitLab project in a single commit."""
    try:
        _check_write(ctx, "push_files")
        params: dict[str, Any] = {
            "branch": branch,
            "commit_message": commit_message,
            "actions": [
                {"action": "create", "file_path": f.file_path, "content": f.content}
                for f in files
            ],
        }
        data = await _get_client(ctx).create_commit(_project(project_id), params)
        return _ok(data)
    except Exception as e:
        _fail("push_files", e)


# ════════════════════════════════════════════════════════════════════
# Repositories
# ════════════════════════════════════════════════════════════════════


@mcp.tool(
    tags={"gitlab", "projects", "read"},
    annotations={"readOnlyHint": True, "idempotentHint": True, "openWorldHint": True},
)
async def search_repositories(
    ctx: Context,
    search: Annotated[str, Field(description="Search query", min_length=1)],
    page: Annotated[int, Field(description="Page number for pagination", ge=1)] = 1,
    per_page: Annotated[int, Field(description="Results per page (1-100)", ge=1, le=100)] = 20,
) -> str:
    """Search for GitLab projects."""
    try:
        client = _get_client(ctx)
        items, total, has_next = await client.search_projects(search, page, per_page)
        return _paginated(items, total, offset=(page - 1) * per_page, has_next=has_next)
    except Exception as e:
        _fail("search_repositories", e)


@mcp.tool(
    tags={"gitlab", "projects", "write"},
    annotations={"readOnlyHint": False, "openWorldHint": True},
)
async def create_repository(
    ctx: Context,
    name: Annotated[str, Field(description="Repository name", min_length=1)],
    description: Annotated[str | None, Field(description="Repository description")] = None,
    visibility: Annotated[
        Literal["private", "internal", "public"] | None,
        Field(description="Repository visibility level"),
    ] = None,
    initialize_with_readme: Annotated[
        bool | None, Field(description="Initialize with a README.md")
    ] = None,
) -> str:
    """Create a new GitLab project."""
    try:
        _check_write(ctx, "create_repository")
        params: dict[str, Any] = {"name": name}
        if description is not None:
            params["description"] = description
        if visibility is not None:
            params["visibility"] = visibility
        if initialize_with_readme is not None:
            params["initialize_with_readme"] = initialize_with_readme
        data = await _get_client(ctx).create_project(params)
        return _ok(data)
    except Exception as e:
        _fail("create_repository", e)


@mcp.tool(
    tags={"gitlab", "projects", "write"},
    annotations={"readOnlyHint": False, "openWorldHint": True},
)
async def fork_repository(
    ctx: Context,
    project_id: ProjectId,
    namespace: Annotated[
        str | None, Field(description="Namespace to fork into (defaults to your own)")
    ] = None,
) -> str:
    """Fork a GitLab project to your account or specified namespace."""
    try:
        _check_write(ctx, "fork_repository")
        data = await _get_client(ctx).fork_project(_project(project_id), namespace)
        return _ok(data)
    except Exception as e:
        _fail("fork_repository", e)


@mcp.tool(
    tags={"gitlab", "repository", "read"},
    annotations={"readOnlyHint": True, "idempotentHint": True, "openWorldHint": True},
)
async def get_repository_tree(
    ctx: Context,
    project_id: ProjectId,
    path: Annotated[str | None, Field(description="Directory to list (defaults to root)")] = None,
    ref: Annotated[
        str | None, Field(description="Branch, tag, or commit SHA (defaults to default branch)")
    ] = None,
    recursive: Annotated[bool | None, Field(description="List subdirectories too")] = None,
    per_page: Annotated[
        int | None, Field(description="Results per page (1-100)", ge=1, le=100)
    ] = None,
) -> str:
    """Get the directory tree of a GitLab project.

    Folders are listed before files, each keeping GitLab's order.
    """
    try:
        params: dict[str, Any] = {}
        if path:
            params["path"] = path
        if ref:
            params["ref"] = ref
        if recursive is not None:
            params["recursive"] = recursive
        if per_page:
            params["per_page"] = per_page
        data = await _get_client(ctx).list_repository_tree(_project(project_id), params or None)
        return format_tree(data or [])
    except Exception as e:
        _fail("get_repository_tree", e)


# ════════════════════════════════════════════════════════════════════
# Branches
# ════════════════════════════════════════════════════════════════════


@mcp.tool(
    tags={"gitlab", "branches", "write"},
    annotations={"readOnlyHint": False, "openWorldHint": True},
)
async def create_branch(
    ctx: Context,
    project_id: ProjectId,
    branch: Annotated[str, Field(description="Name of the new branch", min_length=1)],
    ref: Annotated[
        str | None,
        Field(description="Source branch or commit SHA (defaults to the default branch)"),
    ] = None,
) -> str:
    """Create a new branch in a GitLab project."""
    try:
        _check_write(ctx, "create_branch")
        client = _get_client(ctx)
        project = _project(project_id)
        if not ref:
            ref = await client.get_default_branch(project)
        data = await client.create_branch(project, branch, ref)
        return _ok(data)
    except Exception as e:
        _fail("create_branch", e)


# ════════════════════════════════════════════════════════════════════
# Issues & Merge Requests
# ════════════════════════════════════════════════════════════════════


@mcp.tool(
    tags={"gitlab", "issues", "write"},
    annotations={"readOnlyHint": False, "openWorldHint": True},
)
async def create_issue(
    ctx: Context,
    project_id: ProjectId,
    title: Annotated[str, Field(description="Issue title", min_length=1)],
    description: Annotated[str | None, Field(description="Issue description (markdown)")] = None,
    assignee_ids: Annotated[list[int] | None, Field(description="Assignee user IDs")] = None,
    labels: Annotated[list[str] | None, Field(description="Labels to apply")] = None,
    milestone_id: Annotated[int | None, Field(description="Milestone ID")] = None,
) -> str:
    """Create a new issue in a GitLab project."""
    try:
        _check_write(ctx, "create_issue")
        params: dict[str, Any] = {"title": title}
        if description is not None:
            params["description"] = description
        if assignee_ids is not None:
            params["assignee_ids"] = assignee_ids
        if labels is not None:
            params["labels"] = ",".join(labels)
        if milestone_id is not None:
            params["milestone_id"] = milestone_id
        data = await _get_client(ctx).create_issue(_project(project_id), params)
        return _ok(data)
    except Exception as e:
        _fail("create_issue", e)


@mcp.tool(
    tags={"gitlab", "merge_requests", "write"},
    annotations={"readOnlyHint": False, "openWorldHint": True},
)
async def create_merge_request(
    ctx: Context,
    project_id: ProjectId,
    title: Annotated[str, Field(description="Merge request title", min_length=1)],
    source_branch: Annotated[str, Field(description="Branch containing changes", min_length=1)],
    target_branch: Annotated[str, Field(description="Branch to merge into", min_length=1)],
    description: Annotated[str | None, Field(description="Merge request description")] = None,
    draft: Annotated[bool | None, Field(description="Create as draft merge request")] = None,
    allow_collaboration: Annotated[
        bool | None, Field(description="Allow commits from upstream members")
    ] = None,
) -> str:
    """Create a new merge request in a GitLab project."""
    try:
        _check_write(ctx, "create_merge_request")
        params: dict[str, Any] = {
            "title": title,
            "source_branch": source_branch,
            "target_branch": target_branch,
        }
        if description is not None:
            params["description"] = description
        if draft is not None:
            params["draft"] = draft
        if allow_collaboration is not None:
            params["allow_collaboration"] = allow_collaboration
        data = await _get_client(ctx).create_merge_request(_project(project_id), params)
        return _ok(data)
    except Exception as e:
        _fail("create_merge_request", e)


WRITE_TOOLS = (
    create_or_update_file,
    push_files,
    create_repository,
    fork_repository,
    create_branch,
    create_issue,
    create_merge_request,
)
