"""
Task publishing.

Turns a GitHub work item into a Todoist task. The task description
carries the GitHub URL and repository name so a reader can trace it back.
"""

import logging

from .models import TaskDraft, WorkItem
from .todoist_client import TodoistClient

logger = logging.getLogger(__name__)


def build_task(item: WorkItem, project_id: str, section_id: str | None = None) -> TaskDraft:
    """Build the Todoist task payload for a work item."""
    return TaskDraft(
        content=item.task_content,
        description=item.task_description,
        project_id=project_id,
        section_id=section_id or None,
    )


class TaskPublisher:
    """Creates one Todoist task per work item."""

    def __init__(self, client: TodoistClient) -> None:
        self.client = client

    async def publish(
        self,
        item: WorkItem,
        project_id: str,
        section_id: str | None = None,
    ) -> bool:
        """
        Create a task for ``item``.

        Args:
            item: Issue or pull request to publish
            project_id: Target project id
            section_id: Target section, omitted from the request when None

        Returns:
            True if the task was created
        """
        draft = build_task(item, project_id, section_id)
        result = await self.client.create_task(draft)

        if not result.ok:
            logger.warning(f'Failed to create task "{draft.content}": {result.error}')
            return False

        logger.debug(f'Created task "{draft.content}"')
        return True
