"""Pytest configuration and fixtures."""

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import httpx
import pytest

from gh_todoist_sync.github_client import GitHubClient
from gh_todoist_sync.models import (
    RepositoryRef,
    SyncConfig,
    TodoSection,
    WorkItem,
    WorkItemKind,
)
from gh_todoist_sync.todoist_client import TodoistClient

GITHUB_URL = "https://github.test"
TODOIST_URL = "https://todoist.test/rest/v2"


def github_issue(
    number: int,
    title: str,
    created_at: str,
    repo: str = "alpha",
    updated_at: str | None = None,
    pull_request: bool = False,
) -> dict[str, Any]:
    """Issue record shaped like GitHub's REST response."""
    data: dict[str, Any] = {
        "number": number,
        "title": title,
        "html_url": f"https://github.com/octocat/{repo}/issues/{number}",
        "created_at": created_at,
        "updated_at": updated_at or created_at,
        "state": "open",
    }
    if pull_request:
        data["html_url"] = f"https://github.com/octocat/{repo}/pull/{number}"
        data["pull_request"] = {"url": f"https://api.github.com/repos/octocat/{repo}/pulls/{number}"}
    return data


def github_pull(number: int, title: str, created_at: str, repo: str = "alpha") -> dict[str, Any]:
    """Pull request record shaped like GitHub's REST response."""
    return {
        "number": number,
        "title": title,
        "html_url": f"https://github.com/octocat/{repo}/pull/{number}",
        "created_at": created_at,
        "state": "open",
    }


def github_repo(name: str, owner: str = "octocat", private: bool = False) -> dict[str, Any]:
    return {"name": name, "owner": {"login": owner}, "private": private}


class FakeGitHub:
    """In-memory GitHub REST API for httpx.MockTransport."""

    def __init__(self) -> None:
        self.repos: list[dict[str, Any]] = []
        self.issues: dict[str, list[dict[str, Any]]] = {}
        self.pulls: dict[str, list[dict[str, Any]]] = {}
        self.errors: dict[str, int] = {}  # path -> status code
        self.raw: dict[str, str | bytes] = {}  # path -> raw body
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path in self.errors:
            return httpx.Response(self.errors[path], json={"message": "boom"})
        if path in self.raw:
            return httpx.Response(200, content=self.raw[path])

        if path == "/user":
            return httpx.Response(200, json={"login": "octocat"})
        if path == "/user/repos":
            return httpx.Response(200, json=self.repos)

        parts = path.strip("/").split("/")
        if len(parts) == 4 and parts[0] == "repos":
            repo, endpoint = parts[2], parts[3]
            if endpoint == "issues":
                items = self.issues.get(repo, [])
                since = request.url.params.get("since")
                if since:
                    floor = datetime.fromisoformat(since.replace("Z", "+00:00"))
                    items = [
                        i
                        for i in items
                        if datetime.fromisoformat(i["updated_at"].replace("Z", "+00:00")) >= floor
                    ]
                return httpx.Response(200, json=items)
            if endpoint == "pulls":
                return httpx.Response(200, json=self.pulls.get(repo, []))

        return httpx.Response(404, json={"message": "Not Found"})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


class FakeTodoist:
    """In-memory Todoist REST API for httpx.MockTransport."""

    def __init__(self) -> None:
        self.projects: list[dict[str, Any]] = [
            {"id": "100", "name": "Inbox"},
            {"id": "200", "name": "GitHub"},
        ]
        self.sections: list[dict[str, Any]] = []
        self.tasks: list[dict[str, Any]] = []
        self.errors: dict[tuple[str, str], int] = {}  # (method, path) -> status code
        self.fail_titles: set[str] = set()
        self.requests: list[httpx.Request] = []
        self._next_id = 1000

    def _id(self) -> str:
        self._next_id += 1
        return str(self._next_id)

    def add_section(self, name: str, project_id: str = "200") -> str:
        section_id = self._id()
        self.sections.append({"id": section_id, "name": name, "project_id": project_id, "order": 1})
        return section_id

    def posts(self, endpoint: str) -> list[dict[str, Any]]:
        """JSON bodies of POST requests to an endpoint."""
        return [
            json.loads(r.content)
            for r in self.requests
            if r.method == "POST" and r.url.path.endswith(endpoint)
        ]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/rest/v2")
        key = (request.method, path)

        if key in self.errors:
            return httpx.Response(self.errors[key], text="error")

        if key == ("GET", "/projects"):
            return httpx.Response(200, json=self.projects)

        if key == ("GET", "/sections"):
            project_id = request.url.params.get("project_id")
            return httpx.Response(
                200, json=[s for s in self.sections if s["project_id"] == project_id]
            )

        if key == ("POST", "/sections"):
            body = json.loads(request.content)
            section = {"id": self._id(), "name": body["name"], "project_id": body["project_id"]}
            self.sections.append(section)
            return httpx.Response(200, json=section)

        if key == ("POST", "/tasks"):
            body = json.loads(request.content)
            if body["content"] in self.fail_titles:
                return httpx.Response(500, text="Internal Server Error")
            task = {"id": self._id(), "section_id": None, **body}
            self.tasks.append(task)
            return httpx.Response(200, json=task)

        return httpx.Response(404, text="Not Found")

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def fake_github() -> FakeGitHub:
    return FakeGitHub()


@pytest.fixture
def fake_todoist() -> FakeTodoist:
    return FakeTodoist()


@pytest.fixture
def github_client(fake_github: FakeGitHub) -> GitHubClient:
    return GitHubClient(
        account="octocat",
        token="gh-token",
        base_url=GITHUB_URL,
        transport=fake_github.transport(),
    )


@pytest.fixture
def todoist_client(fake_todoist: FakeTodoist) -> TodoistClient:
    return TodoistClient(
        token="td-token",
        base_url=TODOIST_URL,
        transport=fake_todoist.transport(),
    )


@pytest.fixture
def state_file(tmp_path: Path) -> Path:
    return tmp_path / ".last-sync.json"


@pytest.fixture
def sync_config(state_file: Path) -> SyncConfig:
    """Configuration mirroring a small personal account."""
    return SyncConfig(
        account="octocat",
        github_token="gh-token",
        todoist_token="td-token",
        project_name="GitHub",
        section_map={
            "shop-web": "Shop",
            "shop-api": "Shop",
            ".github": "Meta",
        },
        tracked_repos=["alpha", "shop-web", "shop-api", ".github"],
        ignored_repos=["archive"],
        skip_titles=["[Hygiene] Apply fixes #1"],
        state_file=state_file,
        github_api_url=GITHUB_URL,
        todoist_api_url=TODOIST_URL,
    )


@pytest.fixture
def sample_repo() -> RepositoryRef:
    return RepositoryRef(name="alpha", owner="octocat")


@pytest.fixture
def sample_issue(sample_repo: RepositoryRef) -> WorkItem:
    return WorkItem(
        number=7,
        title="Fix login redirect",
        url="https://github.com/octocat/alpha/issues/7",
        created_at=datetime(2024, 3, 1, 12, 0, tzinfo=UTC),
        kind=WorkItemKind.ISSUE,
        repo=sample_repo,
    )


@pytest.fixture
def sample_pull(sample_repo: RepositoryRef) -> WorkItem:
    return WorkItem(
        number=8,
        title="Add dark mode",
        url="https://github.com/octocat/alpha/pull/8",
        created_at=datetime(2024, 3, 2, 9, 30, tzinfo=UTC),
        kind=WorkItemKind.PULL_REQUEST,
        repo=sample_repo,
    )


@pytest.fixture
def twenty_sections() -> list[TodoSection]:
    return [TodoSection(id=str(i), name=f"Section {i}", project_id="200") for i in range(20)]
