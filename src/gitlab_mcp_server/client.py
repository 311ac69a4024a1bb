"""GitLab API client using httpx."""

from __future__ import annotations

import json
import logging
from typing import Any
from urllib.parse import quote

import httpx

from .config import GitLabConfig
from .exceptions import GitLabApiError, GitLabAuthError, GitLabNotFoundError
from .models.projects import Project

logger = logging.getLogger(__name__)


class GitLabClient:
    """Async HTTP client for the slice of GitLab REST API v4 the tools need."""

    def __init__(self, config: GitLabConfig | None = None) -> None:
        self.config = config or GitLabConfig.from_env()
        self.config.validate()
        self._client = httpx.AsyncClient(
            base_url=self.config.api_url,
            headers={
                "PRIVATE-TOKEN": self.config.token,
                "Content-Type": "application/json",
            },
            timeout=self.config.timeout,
            verify=self.config.ssl_verify,
        )

    async def close(self) -> None:
        await self._client.aclose()

    # ── HTTP helpers ──────────────────────────────────────────────

    @staticmethod
    def _encode_id(project_id: str | int) -> str:
        """Encode a project ID. Numeric IDs pass through; paths are URL-encoded."""
        if isinstance(project_id, int):
            return str(project_id)
        try:
            return str(int(project_id))
        except ValueError:
            return quote(project_id, safe="")

    @staticmethod
    def _encode_path(file_path: str) -> str:
        return quote(file_path, safe="")

    async def _send(
        self,
        method: str,
        path: str,
        *,
        json_data: Any = None,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Issue a request and map error statuses onto the exception hierarchy."""
        kwargs: dict[str, Any] = {"params": params}
        if json_data is not None:
            kwargs["json"] = json_data

        resp = await self._client.request(method, path, **kwargs)
        logger.debug("%s %s -> %s", method, path, resp.status_code)

        if resp.status_code in (401, 403):
            raise GitLabAuthError(resp.status_code, resp.text)
        if resp.status_code == 404:
            raise GitLabNotFoundError(resp.text)
        if not resp.is_success:
            raise GitLabApiError(resp.status_code, resp.reason_phrase or "", resp.text)
        return resp

    @staticmethod
    def _parse(resp: httpx.Response) -> Any:
        if resp.status_code == 204 or not resp.content:
            return None

        content_type = resp.headers.get("content-type", "")
        if "text/html" in content_type:
            msg = "Unexpected HTML response — check URL and authentication"
            raise GitLabApiError(resp.status_code, msg, resp.text[:500])

        try:
            return resp.json()
        except json.JSONDecodeError as e:
            raise GitLabApiError(
                resp.status_code,
                f"JSON parse error: {e}",
                resp.text[:500],
            ) from e

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json_data: Any = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Make an API request and return the parsed JSON body."""
        resp = await self._send(method, path, json_data=json_data, params=params)
        return self._parse(resp)

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return await self._request("GET", path, params=params)

    async def get_page(
        self, path: str, params: dict[str, Any] | None = None
    ) -> tuple[list[dict], int | None, bool | None]:
        """GET one page of a list endpoint.

        Returns the items, GitLab's ``X-Total`` count, and whether ``X-Next-Page``
        names another page. Either header may be missing (GitLab drops ``X-Total``
        for very large result sets), in which case that slot is None.
        """
        resp = await self._send("GET", path, params=params)
        header = resp.headers.get("x-total", "")
        total = int(header) if header.isdigit() else None
        next_page = resp.headers.get("x-next-page")
        has_next = None if next_page is None else bool(next_page.strip())
        return self._parse(resp) or [], total, has_next

    async def post(self, path: str, json_data: Any = None, **kwargs: Any) -> Any:
        return await self._request("POST", path, json_data=json_data, **kwargs)

    async def put(self, path: str, json_data: Any = None, **kwargs: Any) -> Any:
        return await self._request("PUT", path, json_data=json_data, **kwargs)

    # ── Projects ──────────────────────────────────────────────────

    async def get_project(self, project_id: str | int) -> dict:
        enc = self._encode_id(project_id)
        return await self.get(f"/projects/{enc}")

    async def get_default_branch(self, project_id: str | int) -> str:
        project = Project.model_validate(await self.get_project(project_id))
        if not project.default_branch:
            msg = "Project has no default branch (empty repository?)"
            raise GitLabApiError(422, msg, project.path_with_namespace)
        return project.default_branch

    async def search_projects(
        self, search: str, page: int = 1, per_page: int = 20
    ) -> tuple[list[dict], int | None, bool | None]:
        return await self.get_page(
            "/projects",
            params={"search": search, "page": page, "per_page": per_page},
        )

    async def create_project(self, params: dict[str, Any]) -> dict:
        return await self.post("/projects", params)

    async def fork_project(self, project_id: str | int, namespace: str | None = None) -> dict:
        enc = self._encode_id(project_id)
        data = {"namespace": namespace} if namespace else None
        return await self.post(f"/projects/{enc}/fork", data)

    # ── Branches ──────────────────────────────────────────────────

    async def create_branch(self, project_id: str | int, branch: str, ref: str) -> dict:
        enc = self._encode_id(project_id)
        return await self.post(
            f"/projects/{enc}/repository/branches",
            {"branch": branch, "ref": ref},
        )

    # ── Files ─────────────────────────────────────────────────────

    async def get_file(self, project_id: str | int, file_path: str, ref: str) -> dict:
        enc = self._encode_id(project_id)
        return await self.get(
            f"/projects/{enc}/repository/files/{self._encode_path(file_path)}",
            params={"ref": ref},
        )

    async def file_exists(self, project_id: str | int, file_path: str, ref: str) -> bool:
        try:
            await self.get_file(project_id, file_path, ref)
        except GitLabNotFoundError:
            return False
        return True

    async def create_file(
        self, project_id: str | int, file_path: str, params: dict[str, Any]
    ) -> dict:
        enc = self._encode_id(project_id)
        return await self.post(
            f"/projects/{enc}/repository/files/{self._encode_path(file_path)}", params
        )

    async def update_file(
        self, project_id: str | int, file_path: str, params: dict[str, Any]
    ) -> dict:
        enc = self._encode_id(project_id)
        return await self.put(
            f"/projects/{enc}/repository/files/{self._encode_path(file_path)}", params
        )

    # ── Commits & tree ────────────────────────────────────────────

    async def create_commit(self, project_id: str | int, params: dict[str, Any]) -> dict:
        enc = self._encode_id(project_id)
        return await self.post(f"/projects/{enc}/repository/commits", params)

    async def list_repository_tree(
        self, project_id: str | int, params: dict[str, Any] | None = None
    ) -> list[dict]:
        enc = self._encode_id(project_id)
        p = {"per_page": 100, **(params or {})}
        return await self.get(f"/projects/{enc}/repository/tree", params=p)

    # ── Issues & merge requests ───────────────────────────────────

    async def create_issue(self, project_id: str | int, params: dict[str, Any]) -> dict:
        enc = self._encode_id(project_id)
        return await self.post(f"/projects/{enc}/issues", params)

    async def create_merge_request(self, project_id: str | int, params: dict[str, Any]) -> dict:
        enc = self._encode_id(project_id)
        return await self.post(f"/projects/{enc}/merge_requests", params)
