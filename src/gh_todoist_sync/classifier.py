"""
Repository to section classification.

Todoist caps the number of sections per project, so repositories are
grouped: mapped repositories share their configured section, tracked
repositories without a mapping get a section of their own name, and
everything else lands in the default bucket.
"""

from collections.abc import Iterable, Mapping
from types import MappingProxyType

from .models import RepositoryRef, SyncConfig


class SectionClassifier:
    """
    Maps repository names to Todoist section names.

    The lookup tables are copied at construction and never change
    afterwards, so classification is a pure function of the name.
    """

    def __init__(
        self,
        section_map: Mapping[str, str] | None = None,
        tracked_repos: Iterable[str] = (),
        ignored_repos: Iterable[str] = (),
        default_section: str = "Default",
        pull_request_section: str | None = None,
    ) -> None:
        self.section_map: Mapping[str, str] = MappingProxyType(dict(section_map or {}))
        self.tracked_repos = frozenset(tracked_repos)
        self.ignored_repos = frozenset(ignored_repos)
        self.default_section = default_section
        self.pull_request_section = pull_request_section

    @classmethod
    def from_config(cls, config: SyncConfig) -> "SectionClassifier":
        return cls(
            section_map=config.section_map,
            tracked_repos=config.tracked_repos,
            ignored_repos=config.ignored_repos,
            default_section=config.default_section,
            pull_request_section=config.pull_request_section,
        )

    def section_for(self, repo_name: str) -> str:
        """Section name for issues of ``repo_name``."""
        mapped = self.section_map.get(repo_name)
        if mapped:
            return mapped
        if repo_name in self.tracked_repos:
            return repo_name
        return self.default_section

    def pull_request_section_for(self, repo_name: str) -> str:
        """Section name for pull requests of ``repo_name``."""
        return self.pull_request_section or self.section_for(repo_name)

    def is_ignored(self, repo: RepositoryRef | str) -> bool:
        name = repo.name if isinstance(repo, RepositoryRef) else repo
        return name in self.ignored_repos

    def required_sections(self) -> list[str]:
        """
        All section names any repository can map to, in a stable order.

        Duplicates differing only in case are collapsed, since Todoist
        sections are matched case-insensitively.
        """
        candidates: list[str] = list(self.section_map.values())
        candidates.extend(sorted(r for r in self.tracked_repos if r not in self.section_map))
        if self.pull_request_section:
            candidates.append(self.pull_request_section)
        candidates.append(self.default_section)

        seen: set[str] = set()
        names: list[str] = []
        for name in candidates:
            if name.lower() not in seen:
                seen.add(name.lower())
                names.append(name)
        return names
