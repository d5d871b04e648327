"""Unit tests for target configuration loading and output paths."""

import json
import os

import pytest

from harvester.config import TARGETS_FILE, TargetConfig, TargetPaths, get_target, load_targets
from harvester.errors import ConfigurationError
from harvester.models import Chapter


class TestLoadTargets:
    def test_bundled_targets(self) -> None:
        targets = load_targets(TARGETS_FILE)
        assert {"reference", "learn"} <= set(targets)
        reference = targets["reference"]
        assert reference.root_url == "https://react.dev/reference"
        assert reference.chapter_mapping["/reference/react"] == Chapter(1, "React Core")
        assert reference.section_priority["hooks"] == 2

    def test_keywords_lowercased_and_base_url_defaults_to_root(self, tmp_path) -> None:
        path = tmp_path / "targets.json"
        path.write_text(json.dumps({
            "site": {
                "rootUrl": "https://docs.example.com",
                "chapterMapping": {"/guide": {"number": 1, "name": "Guide"}},
                "sectionPriority": {"Overview": 1},
            }
        }))
        target = load_targets(str(path))["site"]
        assert target.section_priority == {"overview": 1}
        assert target.base_url == "https://docs.example.com"
        assert target.nav_selector == 'nav[role="navigation"]'

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(ConfigurationError, match="Cannot read"):
            load_targets(str(tmp_path / "absent.json"))

    def test_missing_root_url(self, tmp_path) -> None:
        path = tmp_path / "targets.json"
        path.write_text(json.dumps({"broken": {"chapterMapping": {}}}))
        with pytest.raises(ConfigurationError, match="broken"):
            load_targets(str(path))

    def test_not_an_object(self, tmp_path) -> None:
        path = tmp_path / "targets.json"
        path.write_text("[]")
        with pytest.raises(ConfigurationError):
            load_targets(str(path))

    def test_unknown_target_lists_choices(self) -> None:
        targets = load_targets(TARGETS_FILE)
        with pytest.raises(ConfigurationError, match="reference"):
            get_target(targets, "nope")


class TestTargetConfig:
    def test_overflow_chapter_sorts_after_mapped_chapters(self) -> None:
        mapping = {f"/c{i}": Chapter(i, f"C{i}") for i in range(95, 101)}
        target = TargetConfig("big", "https://x", "https://x", mapping, {})
        assert target.overflow_chapter == Chapter(101, "Other")

    def test_default_overflow_chapter(self, target) -> None:
        assert target.overflow_chapter == Chapter(99, "Other")


class TestTargetPaths:
    def test_layout(self, target) -> None:
        paths = TargetPaths.for_target("out", target)
        assert paths.catalog_file == os.path.join("out", "docs", "links", "docs-links.json")
        assert paths.raw_path("01-01-x") == os.path.join("out", "docs", "raw-pages", "01-01-x.html")
        assert paths.document_path("01-01-x") == os.path.join("out", "docs", "documents", "01-01-x.md")
        assert paths.index_dir == paths.documents_dir
