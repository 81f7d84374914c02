"""
Abstract protocol for upstream work-item sources.

The sync driver depends on this interface only, so tests and alternative
forges can supply their own implementation.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from .models import ApiResult, RepositoryRef, WorkItem


class WorkItemSource(ABC):
    """
    Abstract base class for work-item sources.

    Every listing returns an ApiResult; a failed result stands for one
    repository (or the repository listing) and never aborts the caller.
    """

    @abstractmethod
    async def close(self) -> None:
        """Close any resources held by the source."""
        ...

    @abstractmethod
    async def check_connection(self) -> bool:
        """Check if the source is accessible and authenticated."""
        ...

    @abstractmethod
    async def list_owned_public_repos(self) -> ApiResult[list[RepositoryRef]]:
        """List public repositories owned by the configured account."""
        ...

    @abstractmethod
    async def list_issues(
        self,
        repo: RepositoryRef,
        since: datetime | None = None,
    ) -> ApiResult[list[WorkItem]]:
        """
        List issues of a repository, excluding pull requests.

        Args:
            repo: Repository to list
            since: Only issues updated at or after this time

        Returns:
            ApiResult wrapping the issues
        """
        ...

    @abstractmethod
    async def list_open_pull_requests(
        self,
        repo: RepositoryRef,
    ) -> ApiResult[list[WorkItem]]:
        """List open pull requests of a repository."""
        ...
