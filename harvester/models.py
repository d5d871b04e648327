"""
Data records shared by the harvesting phases.

PageReference records are produced by link discovery and persisted in the
links catalog; every later phase derives its filenames from the Catalog
built over those references.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class PageReference:
    """A sidebar link with its display text and resolved absolute URL."""

    href: str
    title: str
    text: str
    full_url: str

    @property
    def key(self) -> Tuple[str, str]:
        return (self.href, self.text)

    def to_dict(self) -> Dict[str, str]:
        return {
            "href": self.href,
            "title": self.title,
            "text": self.text,
            "fullUrl": self.full_url,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, str]) -> "PageReference":
        return cls(
            href=data["href"],
            title=data.get("title", ""),
            text=data["text"],
            full_url=data.get("fullUrl") or data["href"],
        )


@dataclass(frozen=True)
class Chapter:
    number: int
    name: str


@dataclass(frozen=True)
class Section:
    """A page reference placed inside a chapter with its ordering priority."""

    reference: PageReference
    priority: int
    matched: bool = True

    @property
    def text(self) -> str:
        return self.reference.text

    def sort_key(self):
        href = self.reference.href
        if self.matched:
            return (self.priority, self.text, href)
        # unmatched sections: first character, then full display text
        return (self.priority, self.text[:1].lower(), self.text, href)


@dataclass
class ChapterEntry:
    info: Chapter
    sections: List[Section] = field(default_factory=list)


@dataclass
class FetchRecord:
    filename: str
    source_url: str
    title: str
    byte_size: int
    content_hash: str
    skipped: bool


@dataclass
class Document:
    """Metadata of one converted markdown document."""

    filename: str
    title: str
    source_url: str
    path: str
    excerpt: str = ""
    length: int = 0
    converted_at: str = ""
    word_count: int = 0
    skipped: bool = False

    def frontmatter(self) -> Dict[str, object]:
        return {
            "title": self.title,
            "url": self.source_url,
            "path": self.path,
            "excerpt": self.excerpt,
            "length": self.length,
            "convertedAt": self.converted_at,
        }


@dataclass(frozen=True)
class HeaderEntry:
    level: int
    text: str


@dataclass
class PhaseReport:
    """Outcome counters of one pipeline phase."""

    phase: str
    succeeded: int = 0
    skipped: int = 0
    failed: int = 0
    details: Dict[str, int] = field(default_factory=dict)


@dataclass
class RunSummary:
    target: str
    phases: List[PhaseReport] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def report_for(self, phase: str) -> Optional[PhaseReport]:
        for report in self.phases:
            if report.phase == phase:
                return report
        return None
