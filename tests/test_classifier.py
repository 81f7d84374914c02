"""Tests for repository classification."""

import pytest

from gh_todoist_sync.classifier import SectionClassifier
from gh_todoist_sync.models import RepositoryRef, SyncConfig


class TestSectionClassifier:
    """Tests for SectionClassifier class."""

    @pytest.fixture
    def classifier(self, sync_config: SyncConfig) -> SectionClassifier:
        return SectionClassifier.from_config(sync_config)

    def test_mapped_repo_uses_mapped_section(self, classifier: SectionClassifier) -> None:
        assert classifier.section_for("shop-web") == "Shop"
        assert classifier.section_for("shop-api") == "Shop"
        assert classifier.section_for(".github") == "Meta"

    def test_tracked_repo_uses_own_name(self, classifier: SectionClassifier) -> None:
        assert classifier.section_for("alpha") == "alpha"

    @pytest.mark.parametrize("name", ["beta", "random-tool", "Alpha", "SHOP-WEB"])
    def test_unknown_repo_uses_default(self, classifier: SectionClassifier, name: str) -> None:
        assert classifier.section_for(name) == "Default"

    def test_deterministic_regardless_of_order(self, classifier: SectionClassifier) -> None:
        names = ["shop-api", "beta", "alpha", ".github", "shop-web"]
        first = [classifier.section_for(n) for n in names]
        second = [classifier.section_for(n) for n in reversed(names)]
        assert first == list(reversed(second))

    def test_pull_requests_use_dedicated_section(self, classifier: SectionClassifier) -> None:
        assert classifier.pull_request_section_for("alpha") == "Pull Requests"

    def test_pull_requests_fall_back_to_repo_section(self) -> None:
        classifier = SectionClassifier(section_map={"a": "A"}, pull_request_section=None)
        assert classifier.pull_request_section_for("a") == "A"
        assert classifier.pull_request_section_for("b") == "Default"

    def test_is_ignored(self, classifier: SectionClassifier) -> None:
        assert classifier.is_ignored("archive") is True
        assert classifier.is_ignored(RepositoryRef(name="archive", owner="octocat")) is True
        assert classifier.is_ignored("alpha") is False

    def test_required_sections(self, classifier: SectionClassifier) -> None:
        assert classifier.required_sections() == [
            "Shop",
            "Meta",
            "alpha",
            "Pull Requests",
            "Default",
        ]

    def test_required_sections_collapse_case(self) -> None:
        classifier = SectionClassifier(
            section_map={"a": "Games", "b": "games"},
            default_section="Default",
        )
        assert classifier.required_sections() == ["Games", "Default"]

    def test_tables_are_immutable(self, sync_config: SyncConfig) -> None:
        classifier = SectionClassifier.from_config(sync_config)
        with pytest.raises(TypeError):
            classifier.section_map["beta"] = "Beta"  # type: ignore[index]
        assert classifier.section_for("beta") == "Default"
