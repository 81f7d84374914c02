"""
Main sync orchestrator.

This module coordinates one sync pass:
1. Load the last-sync watermark
2. Resolve the target Todoist project
3. List the account's public repositories
4. Provision the sections every repository can map to
5. For each repository, publish new issues, then new pull requests
6. Commit the new watermark

Only an unresolvable project (or an unwritable state file) ends the run
early. Everything scoped to a repository or a single item is logged,
counted and skipped.
"""

import logging
from collections.abc import Callable
from datetime import UTC, datetime

from .classifier import SectionClassifier
from .exceptions import ProjectNotFoundError, TodoistAPIError
from .github_client import GitHubClient
from .models import (
    PublishAction,
    RepositoryRef,
    SyncConfig,
    SyncPhase,
    SyncResult,
    TodoSection,
    WorkItem,
)
from .provider import WorkItemSource
from .publisher import TaskPublisher
from .sections import SectionProvisioner
from .state import SyncStateStore
from .todoist_client import TodoistClient

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(UTC)


def is_new(item: WorkItem, last_sync: datetime | None) -> bool:
    """
    Check if a work item was created after the last sync.

    GitHub's ``since`` parameter filters on update time, so an old issue
    with a fresh comment still comes back; creation time decides novelty.
    """
    if last_sync is None:
        return True
    created = item.created_at
    if created.tzinfo is None:
        created = created.replace(tzinfo=UTC)
    if last_sync.tzinfo is None:
        last_sync = last_sync.replace(tzinfo=UTC)
    return created > last_sync


class TodoistSync:
    """
    Orchestrates the sync between GitHub and a Todoist project.

    This is the main entry point for sync operations, coordinating the
    GitHub source, Todoist client, classifier, provisioner, publisher and
    state store.
    """

    def __init__(
        self,
        config: SyncConfig,
        source: WorkItemSource | None = None,
        todoist: TodoistClient | None = None,
        store: SyncStateStore | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """
        Initialize the sync orchestrator.

        Args:
            config: Sync configuration
            source: Work-item source. If None, defaults to GitHubClient.
            todoist: Todoist client. If None, one is built from config.
            store: Watermark store. If None, uses config.state_file.
            clock: Returns the current time; the run's start time becomes
                   the next watermark
        """
        self.config = config
        self.source = source or GitHubClient(
            account=config.account,
            token=config.github_token,
            base_url=config.github_api_url,
            timeout=config.timeout,
        )
        self.todoist = todoist or TodoistClient(
            token=config.todoist_token,
            base_url=config.todoist_api_url,
            timeout=config.timeout,
        )
        self.store = store or SyncStateStore(config.state_file)
        self.classifier = SectionClassifier.from_config(config)
        self.provisioner = SectionProvisioner(
            self.todoist,
            max_sections=config.max_sections,
            dry_run=config.dry_run,
        )
        self.publisher = TaskPublisher(self.todoist)
        self.skip_titles = frozenset(t.strip() for t in config.skip_titles)
        self.clock = clock
        self.phase = SyncPhase.IDLE

    def _enter(self, phase: SyncPhase, result: SyncResult) -> None:
        logger.debug(f"Sync phase: {self.phase.value} -> {phase.value}")
        self.phase = phase
        result.phase = phase

    async def close(self) -> None:
        """Close both API clients."""
        await self.source.close()
        await self.todoist.close()

    async def sync(self) -> SyncResult:
        """
        Run one sync pass.

        Returns:
            SyncResult with counts and per-item entries

        Raises:
            ProjectNotFoundError: If the target project does not exist
            TodoistAPIError: If the project list cannot be fetched
            StateFileError: If the new watermark cannot be written
        """
        result = SyncResult(dry_run=self.config.dry_run)
        started_at = self.clock()

        logger.info("Starting sync process...")
        if self.config.dry_run:
            logger.info("Dry run - no sections, tasks or state will be written")

        try:
            self._enter(SyncPhase.LOAD_STATE, result)
            last_sync = self.store.load()
            result.last_sync = last_sync

            self._enter(SyncPhase.RESOLVE_PROJECT, result)
            project_id = await self._resolve_project()

            self._enter(SyncPhase.LIST_REPOS, result)
            repos = await self._list_repos(result)

            self._enter(SyncPhase.PROVISION_SECTIONS, result)
            section_ids = await self._provision_sections(project_id, result)

            self._enter(SyncPhase.PER_REPO, result)
            for repo in repos:
                await self._sync_repo(repo, project_id, section_ids, last_sync, result)

            self._enter(SyncPhase.COMMIT_STATE, result)
            if not self.config.dry_run:
                self.store.save(started_at)
                result.committed_at = started_at
        except Exception:
            self._enter(SyncPhase.FAILED, result)
            raise

        self._enter(SyncPhase.DONE, result)
        logger.info(f"Sync complete. Total tasks created: {result.created}")
        return result

    async def run(self) -> SyncResult:
        """Run one sync pass and close the clients afterwards."""
        try:
            return await self.sync()
        finally:
            await self.close()

    async def _resolve_project(self) -> str:
        name = self.config.project_name
        found = await self.todoist.find_project(name)
        if not found.ok:
            raise TodoistAPIError(found.error or "Failed to list projects", found.status_code)
        if found.value is None:
            raise ProjectNotFoundError(name)

        logger.info(f"Using Todoist project '{found.value.name}' ({found.value.id})")
        return found.value.id

    async def _list_repos(self, result: SyncResult) -> list[RepositoryRef]:
        listed = await self.source.list_owned_public_repos()
        if not listed.ok:
            logger.error(f"Could not list repositories: {listed.error}")
            result.errors.append(f"repository listing: {listed.error}")
            return []

        repos: list[RepositoryRef] = []
        for repo in listed.value or []:
            if self.classifier.is_ignored(repo):
                logger.info(f"Ignoring repository {repo.name}")
                continue
            repos.append(repo)
        return repos

    async def _provision_sections(
        self,
        project_id: str,
        result: SyncResult,
    ) -> dict[str, str | None]:
        fetched = await self.todoist.get_sections(project_id)
        if not fetched.ok:
            # Without the current list we can't tell which sections exist
            logger.error(f"Could not list sections, publishing without sections: {fetched.error}")
            result.errors.append(f"section listing: {fetched.error}")
            return {}

        known: list[TodoSection] = list(fetched.value or [])
        section_ids = await self.provisioner.provision(
            project_id,
            self.classifier.required_sections(),
            known,
        )

        result.sections_created = self.provisioner.created
        result.sections_reused = self.provisioner.reused
        result.sections_unavailable = self.provisioner.unavailable
        # Keyed by lower-cased name; section names match case-insensitively
        return {name.lower(): sid for name, sid in section_ids.items()}

    async def _sync_repo(
        self,
        repo: RepositoryRef,
        project_id: str,
        section_ids: dict[str, str | None],
        last_sync: datetime | None,
        result: SyncResult,
    ) -> None:
        section = self.classifier.section_for(repo.name)
        logger.info(f'Processing "{repo.name}" under section "{section}"')

        failed = False
        listed = await self.source.list_issues(repo, since=last_sync)
        if not listed.ok:
            logger.warning(f"Skipping issues of {repo.name}: {listed.error}")
            failed = True
            result.errors.append(f"{repo.name} issues: {listed.error}")
        issues = [i for i in listed.unwrap_or([]) if is_new(i, last_sync)]
        logger.info(f"Found {len(issues)} issue(s)")
        result.issues_found += len(issues)

        for issue in issues:
            if issue.title.strip() in self.skip_titles:
                logger.info(f'Skipping "{issue.title}" in {repo.name}')
                result.add_entry(issue, PublishAction.SKIPPED, section, "title on skip list")
                continue
            await self._publish(issue, project_id, section, section_ids, result)

        pr_section = self.classifier.pull_request_section_for(repo.name)
        listed = await self.source.list_open_pull_requests(repo)
        if not listed.ok:
            logger.warning(f"Skipping pull requests of {repo.name}: {listed.error}")
            failed = True
            result.errors.append(f"{repo.name} pull requests: {listed.error}")
        pulls = [p for p in listed.unwrap_or([]) if is_new(p, last_sync)]
        logger.info(f"Found {len(pulls)} pull request(s)")
        result.pull_requests_found += len(pulls)

        for pull in pulls:
            await self._publish(pull, project_id, pr_section, section_ids, result)

        if failed:
            result.repositories_failed += 1
        result.repositories_processed += 1

    async def _publish(
        self,
        item: WorkItem,
        project_id: str,
        section: str,
        section_ids: dict[str, str | None],
        result: SyncResult,
    ) -> None:
        section_id = section_ids.get(section.lower())

        if self.config.dry_run:
            logger.info(f'Would create task "{item.task_content}" in "{section}"')
            result.add_entry(item, PublishAction.WOULD_CREATE, section)
            return

        if await self.publisher.publish(item, project_id, section_id):
            result.add_entry(item, PublishAction.CREATED, section if section_id else None)
        else:
            result.add_entry(item, PublishAction.FAILED, section, "task creation failed")

