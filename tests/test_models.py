"""Tests for Pydantic models."""

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from gh_todoist_sync.models import (
    ApiResult,
    PublishAction,
    SyncConfig,
    SyncResult,
    SyncState,
    TaskDraft,
    TodoSection,
    WorkItem,
)


class TestWorkItem:
    """Tests for WorkItem model."""

    def test_issue_content_is_title(self, sample_issue: WorkItem) -> None:
        assert sample_issue.task_content == "Fix login redirect"
        assert sample_issue.is_pull_request is False

    def test_pull_request_content_is_prefixed(self, sample_pull: WorkItem) -> None:
        assert sample_pull.task_content == "[PR] Add dark mode"

    def test_description_embeds_url_and_repo(self, sample_issue: WorkItem) -> None:
        assert sample_issue.task_description == (
            "GitHub: https://github.com/octocat/alpha/issues/7\nRepo: alpha"
        )

    def test_frozen(self, sample_issue: WorkItem) -> None:
        with pytest.raises(ValidationError):
            sample_issue.title = "changed"  # type: ignore[misc]


class TestTodoSection:
    """Tests for TodoSection model."""

    def test_matches_ignores_case(self) -> None:
        section = TodoSection(id="1", name="Pull Requests", project_id="2")
        assert section.matches("pull requests") is True
        assert section.matches("PULL REQUESTS") is True
        assert section.matches("Pull Request") is False

    def test_numeric_ids_become_strings(self) -> None:
        section = TodoSection.model_validate({"id": 12, "name": "Meta", "project_id": 34})
        assert section.id == "12"
        assert section.project_id == "34"


class TestTaskDraft:
    """Tests for TaskDraft model."""

    def test_payload_omits_missing_section(self) -> None:
        draft = TaskDraft(content="Task", description="d", project_id="1")
        assert draft.to_payload() == {"content": "Task", "description": "d", "project_id": "1"}

    def test_payload_includes_section(self) -> None:
        draft = TaskDraft(content="Task", description="d", project_id="1", section_id="9")
        assert draft.to_payload()["section_id"] == "9"


class TestSyncState:
    """Tests for SyncState model."""

    def test_parses_camel_case_record(self) -> None:
        state = SyncState.model_validate_json('{"lastSync": "2024-05-01T10:00:00.000Z"}')
        assert state.last_sync == datetime(2024, 5, 1, 10, 0, tzinfo=UTC)

    def test_missing_field_is_none(self) -> None:
        assert SyncState.model_validate_json("{}").last_sync is None


class TestApiResult:
    """Tests for ApiResult model."""

    def test_success(self) -> None:
        result = ApiResult.success([1, 2], 200)
        assert result.ok is True
        assert result.unwrap_or([]) == [1, 2]

    def test_failure(self) -> None:
        result = ApiResult.failure("HTTP 500: Internal Server Error", 500)
        assert result.ok is False
        assert result.status_code == 500
        assert result.unwrap_or([]) == []

    def test_empty_success_is_ok(self) -> None:
        assert ApiResult.success([]).ok is True


class TestSyncResult:
    """Tests for SyncResult model."""

    def test_add_entry(self, sample_issue: WorkItem, sample_pull: WorkItem) -> None:
        result = SyncResult()

        result.add_entry(sample_issue, PublishAction.CREATED, "Default")
        assert result.created == 1

        result.add_entry(sample_pull, PublishAction.FAILED, "Pull Requests")
        assert result.failed == 1
        assert result.errors == ["alpha: [PR] Add dark mode"]

        result.add_entry(sample_issue, PublishAction.SKIPPED)
        assert result.skipped == 1

    def test_summary(self, sample_issue: WorkItem) -> None:
        result = SyncResult(repositories_processed=3, issues_found=2, pull_requests_found=1)
        result.add_entry(sample_issue, PublishAction.CREATED)

        summary = result.summary()
        assert "3 repositories" in summary
        assert "2 issues" in summary
        assert "Tasks created: 1" in summary


class TestSyncConfig:
    """Tests for SyncConfig model."""

    def test_defaults(self) -> None:
        config = SyncConfig(account="octocat", github_token="a", todoist_token="b")
        assert config.project_name == "GitHub"
        assert config.default_section == "Default"
        assert config.pull_request_section == "Pull Requests"
        assert config.max_sections == 20

    def test_tokens_hidden_from_repr(self) -> None:
        config = SyncConfig(account="octocat", github_token="secret-gh", todoist_token="secret-td")
        assert "secret-gh" not in repr(config)
        assert "secret-td" not in repr(config)
