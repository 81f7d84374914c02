"""
Pydantic models for GitHub work items, Todoist entities and sync results.

This module defines the data models used throughout the application,
providing strong typing, validation, and serialization capabilities.
"""

from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class RepositoryRef(BaseModel):
    """A GitHub repository as returned by the repository listing."""

    model_config = ConfigDict(frozen=True)

    name: str
    owner: str
    is_private: bool = False


class WorkItemKind(str, Enum):
    """Kind of upstream work item."""

    ISSUE = "issue"
    PULL_REQUEST = "pull_request"


class WorkItem(BaseModel):
    """
    An open issue or pull request on GitHub.

    Issues and pull requests share this model; ``kind`` tells them apart.
    """

    model_config = ConfigDict(frozen=True)

    number: int = 0
    title: str
    url: str
    created_at: datetime
    kind: WorkItemKind
    repo: RepositoryRef

    @property
    def is_pull_request(self) -> bool:
        return self.kind == WorkItemKind.PULL_REQUEST

    @property
    def task_content(self) -> str:
        """Title used for the Todoist task."""
        if self.is_pull_request:
            return f"[PR] {self.title}"
        return self.title

    @property
    def task_description(self) -> str:
        """Description linking the task back to GitHub."""
        return f"GitHub: {self.url}\nRepo: {self.repo.name}"


class TodoProject(BaseModel):
    """Todoist project."""

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    id: str
    name: str


class TodoSection(BaseModel):
    """Todoist section, matched by name rather than id."""

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    id: str
    name: str
    project_id: str

    def matches(self, name: str) -> bool:
        """Check if this section has the given name, ignoring case."""
        return self.name.lower() == name.lower()


class TaskDraft(BaseModel):
    """Payload for creating a Todoist task."""

    model_config = ConfigDict(frozen=True)

    content: str
    description: str
    project_id: str
    section_id: str | None = None

    def to_payload(self) -> dict[str, str]:
        """Request body for POST /tasks; section_id only when resolved."""
        return self.model_dump(exclude_none=True)


class TodoTask(BaseModel):
    """Todoist task as returned after creation."""

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    id: str
    content: str
    description: str = ""
    project_id: str
    section_id: str | None = None


class SyncState(BaseModel):
    """Record stored in the last-sync state file."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    last_sync: datetime | None = Field(default=None, alias="lastSync")


class ApiResult(BaseModel, Generic[T]):
    """
    Outcome of a single HTTP call.

    Exactly one of ``value`` and ``error`` is meaningful: a result with no
    error is a success, even when the value is empty.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    value: T | None = None
    error: str | None = None
    status_code: int | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T, status_code: int | None = None) -> "ApiResult[T]":
        return cls(value=value, status_code=status_code)

    @classmethod
    def failure(cls, error: str, status_code: int | None = None) -> "ApiResult[T]":
        return cls(error=error, status_code=status_code)

    def unwrap_or(self, default: T) -> T:
        """Return the value on success, otherwise ``default``."""
        if self.ok and self.value is not None:
            return self.value
        return default


class SyncPhase(str, Enum):
    """States of a sync run."""

    IDLE = "idle"
    LOAD_STATE = "load_state"
    RESOLVE_PROJECT = "resolve_project"
    LIST_REPOS = "list_repos"
    PROVISION_SECTIONS = "provision_sections"
    PER_REPO = "per_repo"
    COMMIT_STATE = "commit_state"
    DONE = "done"
    FAILED = "failed"


class PublishAction(str, Enum):
    """Outcome for a single work item."""

    CREATED = "created"
    FAILED = "failed"
    SKIPPED = "skipped"
    WOULD_CREATE = "would_create"


class PublishEntry(BaseModel):
    """Record of a single publish decision."""

    model_config = ConfigDict(frozen=True)

    repo: str
    title: str
    kind: WorkItemKind
    action: PublishAction
    section: str | None = None
    details: str | None = None


class SyncResult(BaseModel):
    """Result of a sync run."""

    model_config = ConfigDict(frozen=False)

    entries: list[PublishEntry] = Field(default_factory=list)
    phase: SyncPhase = SyncPhase.IDLE
    dry_run: bool = False
    last_sync: datetime | None = None
    committed_at: datetime | None = None
    repositories_processed: int = 0
    repositories_failed: int = 0
    issues_found: int = 0
    pull_requests_found: int = 0
    created: int = 0
    failed: int = 0
    skipped: int = 0
    would_create: int = 0
    sections_created: int = 0
    sections_reused: int = 0
    sections_unavailable: int = 0
    errors: list[str] = Field(default_factory=list)

    def add_entry(
        self,
        item: WorkItem,
        action: PublishAction,
        section: str | None = None,
        details: str | None = None,
    ) -> None:
        """Add a publish entry and update counters."""
        self.entries.append(
            PublishEntry(
                repo=item.repo.name,
                title=item.task_content,
                kind=item.kind,
                action=action,
                section=section,
                details=details,
            )
        )
        if action == PublishAction.CREATED:
            self.created += 1
        elif action == PublishAction.FAILED:
            self.failed += 1
            self.errors.append(f"{item.repo.name}: {item.task_content}")
        elif action == PublishAction.SKIPPED:
            self.skipped += 1
        elif action == PublishAction.WOULD_CREATE:
            self.would_create += 1

    @property
    def completed(self) -> bool:
        return self.phase == SyncPhase.DONE

    def summary(self) -> str:
        """Generate human-readable summary."""
        lines = [
            f"Sync complete: {self.repositories_processed} repositories, "
            f"{self.issues_found} issues, {self.pull_requests_found} pull requests",
            f"  Tasks created: {self.created}",
            f"  Failed: {self.failed}",
            f"  Skipped: {self.skipped}",
        ]
        if self.dry_run:
            lines.append(f"  Would create: {self.would_create}")
        if self.repositories_failed:
            lines.append(f"  Repositories with listing failures: {self.repositories_failed}")
        if self.errors:
            lines.append(f"  Errors: {len(self.errors)}")
            for error in self.errors[:5]:  # Show first 5 errors
                lines.append(f"    - {error}")
            if len(self.errors) > 5:
                lines.append(f"    ... and {len(self.errors) - 5} more")
        return "\n".join(lines)


class SyncConfig(BaseModel):
    """Configuration for sync operations."""

    model_config = ConfigDict(frozen=True)

    account: str
    github_token: str = Field(repr=False)
    todoist_token: str = Field(repr=False)
    project_name: str = "GitHub"
    section_map: dict[str, str] = Field(default_factory=dict)
    tracked_repos: list[str] = Field(default_factory=list)
    ignored_repos: list[str] = Field(default_factory=list)
    skip_titles: list[str] = Field(default_factory=list)
    default_section: str = "Default"
    pull_request_section: str | None = "Pull Requests"
    max_sections: int = Field(default=20, ge=1)
    state_file: Path = Path(".last-sync.json")
    github_api_url: str = "https://api.github.com"
    todoist_api_url: str = "https://api.todoist.com/rest/v2"
    timeout: int = Field(default=60, ge=1)
    dry_run: bool = False
