"""
Configuration settings for the documentation harvester.

This module defines the runtime constants (overridable through environment
variables or a .env file) and the named target configurations that select
the navigation root, chapter mapping and section priority table of one
harvest run.
"""

import os
import json
from dataclasses import dataclass, field
from typing import Dict

from dotenv import load_dotenv

from harvester.errors import ConfigurationError
from harvester.models import Chapter

load_dotenv()

# Output configuration
BASE_OUTPUT_FOLDER = os.getenv("HARVEST_OUTPUT_ROOT", "harvest")
LINKS_DIRNAME = "links"
RAW_PAGES_DIRNAME = "raw-pages"
DOCUMENTS_DIRNAME = "documents"
RAW_EXTENSION = ".html"
DOCUMENT_EXTENSION = ".md"
CATEGORY_INDEX_FILENAME = "INDEX.md"
TOC_FILENAME = "00-0-index-of-contents.md"
SUMMARY_FILENAME = "summary.log"
LOG_FILENAME = "harvest.log"

# Browser pool and politeness
POOL_SIZE = int(os.getenv("HARVEST_POOL_SIZE", "5"))
BATCH_DELAY = float(os.getenv("HARVEST_BATCH_DELAY", "2.0"))
NAV_TIMEOUT = int(os.getenv("HARVEST_NAV_TIMEOUT", "30"))
SETTLE_DELAY = float(os.getenv("HARVEST_SETTLE_DELAY", "0.5"))
DISCOVERY_SETTLE_DELAY = float(os.getenv("HARVEST_DISCOVERY_SETTLE", "3.0"))
HEADLESS = os.getenv("HARVEST_HEADLESS", "True").lower() == "true"
USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"

# Content thresholds
MIN_CONTENT_BYTES = int(os.getenv("HARVEST_MIN_CONTENT_BYTES", "1000"))
EXCERPT_LENGTH = 200
INDEX_EXCERPT_LENGTH = 100

# Table of contents filtering
META_LABELS = [
    "note", "pitfall", "deep dive", "experimental feature", "deprecated",
    "under construction", "warning", "caution", "tip", "info",
]
MIN_HEADER_LENGTH = 3

OVERFLOW_CHAPTER_NUMBER = 99
OVERFLOW_CHAPTER_NAME = "Other"

TARGETS_FILE = os.getenv(
    "HARVEST_TARGETS_FILE", os.path.join(os.path.dirname(__file__), "targets.json")
)

LOG_LEVEL = os.getenv("HARVEST_LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


@dataclass
class RunSettings:
    """Runtime knobs of one pipeline invocation."""

    output_root: str = BASE_OUTPUT_FOLDER
    pool_size: int = POOL_SIZE
    batch_delay: float = BATCH_DELAY
    nav_timeout: int = NAV_TIMEOUT
    settle_delay: float = SETTLE_DELAY
    discovery_settle_delay: float = DISCOVERY_SETTLE_DELAY
    min_content_bytes: int = MIN_CONTENT_BYTES
    headless: bool = HEADLESS
    clean: bool = False


@dataclass
class TargetConfig:
    """One named section of a documentation site to harvest."""

    name: str
    root_url: str
    base_url: str
    chapter_mapping: Dict[str, Chapter]
    section_priority: Dict[str, int]
    nav_selector: str = 'nav[role="navigation"]'
    description: str = ""
    overflow_chapter: Chapter = field(
        default_factory=lambda: Chapter(OVERFLOW_CHAPTER_NUMBER, OVERFLOW_CHAPTER_NAME)
    )

    def __post_init__(self):
        # the overflow bucket always sorts after every mapped chapter
        highest = max((c.number for c in self.chapter_mapping.values()), default=0)
        if self.overflow_chapter.number <= highest:
            self.overflow_chapter = Chapter(highest + 1, self.overflow_chapter.name)

    @classmethod
    def from_dict(cls, name, data):
        try:
            mapping = {
                prefix: Chapter(int(entry["number"]), entry["name"])
                for prefix, entry in data.get("chapterMapping", {}).items()
            }
            priority = {
                keyword.lower(): int(value)
                for keyword, value in data.get("sectionPriority", {}).items()
            }
            kwargs = {
                "name": name,
                "root_url": data["rootUrl"],
                "base_url": data.get("baseUrl") or data["rootUrl"],
                "chapter_mapping": mapping,
                "section_priority": priority,
                "description": data.get("description", ""),
            }
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid target configuration '{name}': {e}") from e
        if data.get("navSelector"):
            kwargs["nav_selector"] = data["navSelector"]
        return cls(**kwargs)


def load_targets(path=TARGETS_FILE):
    """
    Load the named target configurations from a JSON file.

    Args:
        path (str): Path of the JSON target table.

    Returns:
        dict: Target name mapped to its TargetConfig, in file order.

    Raises:
        ConfigurationError: If the file is missing or not a JSON object.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Cannot read targets file {path}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Targets file {path} must contain a JSON object")
    return {name: TargetConfig.from_dict(name, data) for name, data in raw.items()}


def get_target(targets, name):
    if name not in targets:
        raise ConfigurationError(
            f"Unknown target '{name}'. Available targets: {', '.join(targets)}"
        )
    return targets[name]


@dataclass(frozen=True)
class TargetPaths:
    """Logical directories of one target below the output root."""

    root: str
    name: str

    @classmethod
    def for_target(cls, output_root, target):
        return cls(root=os.path.join(output_root, target.name), name=target.name)

    @property
    def links_dir(self):
        return os.path.join(self.root, LINKS_DIRNAME)

    @property
    def catalog_file(self):
        return os.path.join(self.links_dir, f"{self.name}-links.json")

    @property
    def raw_dir(self):
        return os.path.join(self.root, RAW_PAGES_DIRNAME)

    @property
    def documents_dir(self):
        return os.path.join(self.root, DOCUMENTS_DIRNAME)

    # indices live in the documents root
    @property
    def index_dir(self):
        return self.documents_dir

    @property
    def summary_file(self):
        return os.path.join(self.root, SUMMARY_FILENAME)

    def raw_path(self, filename):
        return os.path.join(self.raw_dir, filename + RAW_EXTENSION)

    def document_path(self, filename):
        return os.path.join(self.documents_dir, filename + DOCUMENT_EXTENSION)
