"""
GitHub REST API client.

This module lists an account's repositories, issues and pull requests.
Failures are returned as ApiResult values so that one broken repository
does not stop the others from syncing.
"""

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any, TypeVar

import httpx
from pydantic import ValidationError

from .models import ApiResult, RepositoryRef, WorkItem, WorkItemKind
from .provider import WorkItemSource

logger = logging.getLogger(__name__)

T = TypeVar("T")


def format_since(value: datetime) -> str:
    """Format a datetime as the ISO 8601 string GitHub expects."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="seconds").replace("+00:00", "Z")


def parse_datetime(value: str | None) -> datetime | None:
    """Parse ISO datetime string."""
    if not value:
        return None
    try:
        # Handle both Z suffix and +00:00 format
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        return datetime.fromisoformat(value)
    except (ValueError, TypeError):
        logger.warning(f"Failed to parse datetime: {value}")
        return None


class GitHubClient(WorkItemSource):
    """
    Client for the GitHub REST API.

    Every request is attempted exactly once. Non-2xx responses, transport
    errors and malformed JSON all come back as failed results.
    """

    DEFAULT_BASE_URL = "https://api.github.com"
    DEFAULT_TIMEOUT = 60  # seconds
    PAGE_SIZE = 100

    def __init__(
        self,
        account: str,
        token: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: int = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the GitHub client.

        Args:
            account: Login of the account whose repositories are synced
            token: Personal access token
            base_url: API root, overridable for GitHub Enterprise
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.account = account
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
                headers={
                    "Authorization": f"token {self.token}",
                    "Accept": "application/vnd.github+json",
                    "User-Agent": "gh-todoist-sync",
                },
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> ApiResult[Any]:
        """
        Make a GET request and decode the JSON body.

        Args:
            path: API path (without base URL)
            params: Query parameters

        Returns:
            ApiResult with the decoded JSON, or the failure description
        """
        client = await self._get_client()
        logger.debug(f"GET {path} {params or ''}")

        try:
            response = await client.get(path, params=params)
        except httpx.HTTPError as e:
            logger.error(f"GitHub request failed for {path}: {e}")
            return ApiResult.failure(f"Request failed: {e}")

        if response.is_error:
            logger.error(f"GitHub API error {response.status_code} for {path}")
            logger.debug(f"Response body:\n{response.text}")
            return ApiResult.failure(
                f"HTTP {response.status_code}: {response.reason_phrase}",
                response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"Failed to parse JSON response from GitHub for {path}")
            logger.error(response.text)
            return ApiResult.failure(f"Invalid JSON response: {e}", response.status_code)

        return ApiResult.success(data, response.status_code)

    def _expect_list(self, result: ApiResult[Any], path: str) -> ApiResult[Any]:
        if result.ok and not isinstance(result.value, list):
            logger.error(f"Expected a JSON list from {path}, got {type(result.value).__name__}")
            return ApiResult.failure("Expected list in response", result.status_code)
        return result

    def _parse_repo(self, data: dict[str, Any]) -> RepositoryRef:
        """Parse repository JSON into RepositoryRef."""
        owner = data.get("owner") or {}
        return RepositoryRef(
            name=data.get("name", ""),
            owner=owner.get("login", "") if isinstance(owner, dict) else str(owner),
            is_private=bool(data.get("private", False)),
        )

    def _parse_item(
        self,
        data: dict[str, Any],
        repo: RepositoryRef,
        kind: WorkItemKind,
    ) -> WorkItem:
        """Parse issue or pull request JSON into WorkItem."""
        return WorkItem(
            number=data.get("number", 0),
            title=data.get("title") or "Untitled",
            url=data.get("html_url", ""),
            created_at=parse_datetime(data.get("created_at")) or datetime.now(UTC),
            kind=kind,
            repo=repo,
        )

    def _parse_records(
        self,
        records: list[Any],
        parse: Callable[[dict[str, Any]], T],
        path: str,
    ) -> list[T]:
        """Parse JSON records, skipping the ones that don't fit the model."""
        parsed: list[T] = []
        for data in records:
            if not isinstance(data, dict):
                continue
            try:
                parsed.append(parse(data))
            except ValidationError as e:
                logger.warning(f"Skipping malformed record from {path}: {e.error_count()} error(s)")
                logger.debug(f"Record: {data!r}")
        return parsed

    async def check_connection(self) -> bool:
        """Check that the token is accepted by fetching the current user."""
        result = await self._get("/user")
        return result.ok

    async def list_owned_public_repos(self) -> ApiResult[list[RepositoryRef]]:
        """
        List public repositories owned by the configured account.

        The token's repository list also holds private repositories and
        repositories the account merely collaborates on; both are dropped.
        """
        path = "/user/repos"
        result = self._expect_list(
            await self._get(path, params={"per_page": self.PAGE_SIZE}),
            path,
        )
        if not result.ok:
            return ApiResult.failure(result.error or "", result.status_code)

        repos = self._parse_records(result.value, self._parse_repo, path)
        owned = [
            r
            for r in repos
            if not r.is_private and r.owner.lower() == self.account.lower()
        ]

        logger.info(f"{len(owned)} public owned repositories found")
        if owned:
            logger.info(f"Repositories: {', '.join(r.name for r in owned)}")
        return ApiResult.success(owned, result.status_code)

    async def list_issues(
        self,
        repo: RepositoryRef,
        since: datetime | None = None,
    ) -> ApiResult[list[WorkItem]]:
        """
        List issues of a repository.

        GitHub's issues endpoint also returns pull requests; records
        carrying a ``pull_request`` key are dropped here.

        Args:
            repo: Repository to list
            since: Forwarded as the ``since`` query parameter

        Returns:
            ApiResult wrapping the issues
        """
        path = f"/repos/{self.account}/{repo.name}/issues"
        params: dict[str, Any] = {"per_page": self.PAGE_SIZE}
        if since is not None:
            params["since"] = format_since(since)

        result = self._expect_list(await self._get(path, params=params), path)
        if not result.ok:
            return ApiResult.failure(result.error or "", result.status_code)

        records = [
            data
            for data in result.value
            if not (isinstance(data, dict) and data.get("pull_request"))
        ]
        issues = self._parse_records(
            records,
            lambda data: self._parse_item(data, repo, WorkItemKind.ISSUE),
            path,
        )
        return ApiResult.success(issues, result.status_code)

    async def list_open_pull_requests(
        self,
        repo: RepositoryRef,
    ) -> ApiResult[list[WorkItem]]:
        """List open pull requests of a repository."""
        path = f"/repos/{self.account}/{repo.name}/pulls"
        params = {"state": "open", "per_page": self.PAGE_SIZE}

        result = self._expect_list(await self._get(path, params=params), path)
        if not result.ok:
            return ApiResult.failure(result.error or "", result.status_code)

        pulls = self._parse_records(
            result.value,
            lambda data: self._parse_item(data, repo, WorkItemKind.PULL_REQUEST),
            path,
        )
        return ApiResult.success(pulls, result.status_code)
