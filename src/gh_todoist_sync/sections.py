"""
Section provisioning.

Sections are fetched once per run and matched by case-insensitive name.
Missing sections are created until the project reaches Todoist's section
limit; after that, callers publish without a section.
"""

import logging

from .models import TodoSection
from .todoist_client import TodoistClient

logger = logging.getLogger(__name__)


class SectionProvisioner:
    """
    Resolves section names to Todoist section ids.

    The provisioner never deletes or renames sections. A name it could
    not resolve stays unresolved for the rest of the run.
    """

    def __init__(
        self,
        client: TodoistClient,
        max_sections: int = 20,
        dry_run: bool = False,
    ) -> None:
        """
        Initialize the provisioner.

        Args:
            client: Todoist client used for section creation
            max_sections: Section limit of a Todoist project
            dry_run: If True, never create sections
        """
        self.client = client
        self.max_sections = max_sections
        self.dry_run = dry_run
        self.created = 0
        self.reused = 0
        self.unavailable = 0

    @staticmethod
    def find_section(name: str, known_sections: list[TodoSection]) -> TodoSection | None:
        """Find a section by name, ignoring case."""
        for section in known_sections:
            if section.matches(name):
                return section
        return None

    async def ensure_section(
        self,
        project_id: str,
        name: str,
        known_sections: list[TodoSection],
    ) -> str | None:
        """
        Return the id of the section called ``name``, creating it if needed.

        ``known_sections`` is the list fetched once at the start of the run.
        A newly created section is appended to it so later capacity checks
        count it.

        Args:
            project_id: Target project id
            name: Section name
            known_sections: Sections already in the project

        Returns:
            Section id, or None if the section is unavailable
        """
        existing = self.find_section(name, known_sections)
        if existing is not None:
            logger.info(f"Reusing section: {existing.name}")
            self.reused += 1
            return existing.id

        if len(known_sections) >= self.max_sections:
            logger.warning(f"Max section limit reached ({self.max_sections}). Skipping: {name}")
            self.unavailable += 1
            return None

        if self.dry_run:
            logger.info(f"Would create section: {name}")
            self.unavailable += 1
            return None

        result = await self.client.create_section(project_id, name)
        if not result.ok or result.value is None:
            logger.warning(f"Failed to create section '{name}': {result.error}")
            self.unavailable += 1
            return None

        known_sections.append(result.value)
        self.created += 1
        logger.info(f"Created new section: {name}")
        return result.value.id

    async def provision(
        self,
        project_id: str,
        names: list[str],
        known_sections: list[TodoSection],
    ) -> dict[str, str | None]:
        """Resolve every name in order; returns name to id (or None)."""
        return {
            name: await self.ensure_section(project_id, name, known_sections)
            for name in names
        }
