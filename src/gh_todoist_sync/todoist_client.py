"""
Todoist REST API client.

Wraps the handful of Todoist endpoints the sync needs: projects,
sections and tasks. Like the GitHub client, it reports failures as
ApiResult values instead of raising.
"""

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from .models import ApiResult, TaskDraft, TodoProject, TodoSection, TodoTask

logger = logging.getLogger(__name__)


class TodoistClient:
    """Client for the Todoist REST API (v2)."""

    DEFAULT_BASE_URL = "https://api.todoist.com/rest/v2"
    DEFAULT_TIMEOUT = 60  # seconds

    def __init__(
        self,
        token: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: int = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the Todoist client.

        Args:
            token: Todoist API token
            base_url: API root
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={"Authorization": f"Bearer {self.token}"},
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        payload: dict[str, Any] | None = None,
    ) -> ApiResult[Any]:
        """
        Make an API request and decode the JSON body.

        Args:
            method: HTTP method
            path: API path (without base URL)
            params: Query parameters
            payload: JSON request body

        Returns:
            ApiResult with the decoded JSON, or the failure description
        """
        client = await self._get_client()
        logger.debug(f"{method} {path} {params or ''}")

        try:
            response = await client.request(method, path, params=params, json=payload)
        except httpx.HTTPError as e:
            logger.error(f"Todoist request failed for {method} {path}: {e}")
            return ApiResult.failure(f"Request failed: {e}")

        if response.is_error:
            logger.debug(f"Response body:\n{response.text}")
            return ApiResult.failure(
                f"HTTP {response.status_code}: {response.reason_phrase}",
                response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"Failed to parse JSON response from Todoist for {method} {path}")
            logger.error(response.text)
            return ApiResult.failure(f"Invalid JSON response: {e}", response.status_code)

        return ApiResult.success(data, response.status_code)

    async def get_projects(self) -> ApiResult[list[TodoProject]]:
        """List all projects of the account."""
        result = await self._request("GET", "/projects")
        if not result.ok:
            logger.error(f"Failed to list Todoist projects: {result.error}")
            return ApiResult.failure(result.error or "", result.status_code)

        try:
            projects = [TodoProject.model_validate(p) for p in result.value or []]
        except (ValidationError, TypeError) as e:
            logger.error(f"Unexpected project list from Todoist: {e}")
            return ApiResult.failure(f"Unexpected response: {e}", result.status_code)

        return ApiResult.success(projects, result.status_code)

    async def find_project(self, name: str) -> ApiResult[TodoProject | None]:
        """
        Find a project by name, ignoring case.

        Returns a successful result with value None when the listing
        worked but no project matched.
        """
        result = await self.get_projects()
        if not result.ok:
            return ApiResult.failure(result.error or "", result.status_code)

        for project in result.value or []:
            if project.name.lower() == name.lower():
                return ApiResult.success(project, result.status_code)
        return ApiResult.success(None, result.status_code)

    async def get_sections(self, project_id: str) -> ApiResult[list[TodoSection]]:
        """List the sections of a project."""
        result = await self._request("GET", "/sections", params={"project_id": project_id})
        if not result.ok:
            logger.error(f"Failed to list Todoist sections: {result.error}")
            return ApiResult.failure(result.error or "", result.status_code)

        try:
            sections = [TodoSection.model_validate(s) for s in result.value or []]
        except (ValidationError, TypeError) as e:
            logger.error(f"Unexpected section list from Todoist: {e}")
            return ApiResult.failure(f"Unexpected response: {e}", result.status_code)

        return ApiResult.success(sections, result.status_code)

    async def create_section(self, project_id: str, name: str) -> ApiResult[TodoSection]:
        """Create a section in a project."""
        result = await self._request(
            "POST",
            "/sections",
            payload={"name": name, "project_id": project_id},
        )
        if not result.ok:
            return ApiResult.failure(result.error or "", result.status_code)

        try:
            section = TodoSection.model_validate(result.value)
        except ValidationError as e:
            logger.error(f"Unexpected section from Todoist: {e}")
            return ApiResult.failure(f"Unexpected response: {e}", result.status_code)

        return ApiResult.success(section, result.status_code)

    async def create_task(self, draft: TaskDraft) -> ApiResult[TodoTask]:
        """Create a task from a draft."""
        result = await self._request("POST", "/tasks", payload=draft.to_payload())
        if not result.ok:
            return ApiResult.failure(result.error or "", result.status_code)

        try:
            task = TodoTask.model_validate(result.value)
        except ValidationError as e:
            # The task exists remotely even if its echo is unreadable
            logger.warning(f"Unexpected task from Todoist: {e}")
            task = TodoTask(
                id="",
                content=draft.content,
                description=draft.description,
                project_id=draft.project_id,
                section_id=draft.section_id,
            )

        return ApiResult.success(task, result.status_code)
