"""
Chapter and section classification of page references.

The classification is a pure function of the references and the target's
mapping tables. Every phase re-runs it, so a given reference must always map
to the same canonical filename or the fetch and convert caches stop matching.
"""

import re
from collections import OrderedDict
from urllib.parse import urlsplit

from harvester.models import ChapterEntry, Section


def slugify(text):
    """
    Convert display text into the slug part of a canonical filename.

    Non-alphanumeric characters are dropped, runs of whitespace and hyphens
    collapse into a single hyphen.
    """
    slug = re.sub(r"[^a-zA-Z0-9\s-]", "", text)
    slug = re.sub(r"[\s-]+", "-", slug)
    return slug.strip("-").lower()


def _href_path(href):
    path = urlsplit(href).path or href
    return path.rstrip("/") or "/"


def _matches_prefix(path, prefix):
    prefix = prefix.rstrip("/") or "/"
    if prefix == "/":
        return True
    return path == prefix or path.startswith(prefix + "/")


def get_chapter_info(href, target):
    """
    Map a reference path to its chapter by longest-prefix match.

    Prefixes match on whole path segments, so '/reference/react' does not
    claim '/reference/react-dom/...'. Unmapped paths land in the target's
    overflow chapter.
    """
    path = _href_path(href)
    best = None
    for prefix, chapter in target.chapter_mapping.items():
        if _matches_prefix(path, prefix):
            if best is None or len(prefix.rstrip("/")) > len(best[0].rstrip("/")):
                best = (prefix, chapter)
    return best[1] if best else target.overflow_chapter


def unmatched_priority(target):
    return max(target.section_priority.values(), default=0) + 1


def get_section_priority(text, href, target):
    """
    Return (priority, matched) for a reference.

    The lowest priority among the keywords found in the display text or href
    wins. References matching no keyword share a priority above every keyword.
    """
    lower_text = text.lower()
    lower_href = (href or "").lower()
    matches = [
        priority
        for keyword, priority in target.section_priority.items()
        if keyword in lower_text or keyword in lower_href
    ]
    if matches:
        return min(matches), True
    return unmatched_priority(target), False


class Catalog:
    """Chapter number mapped to its chapter info and ordered sections."""

    def __init__(self, chapters):
        self.chapters = chapters
        self._filenames = {}
        for number, entry in chapters.items():
            for index, section in enumerate(entry.sections, start=1):
                ref = section.reference
                self._filenames.setdefault(
                    ref.key, f"{number:02d}-{index:02d}-{slugify(ref.text)}"
                )

    def __len__(self):
        return len(self.chapters)

    def filename_for(self, reference):
        """
        Canonical filename of a reference, without extension.

        Raises:
            KeyError: If the reference was not part of the classified set.
        """
        return self._filenames[reference.key]

    def references(self):
        """All classified references in chapter, then section order."""
        return [
            section.reference
            for number in sorted(self.chapters)
            for section in self.chapters[number].sections
        ]


def classify(references, target):
    """
    Build the catalog of a run.

    Args:
        references (list): PageReference objects from discovery.
        target (TargetConfig): Chapter mapping and section priority tables.

    Returns:
        Catalog: Chapters keyed by number, sections sorted by priority and text.
    """
    chapters = OrderedDict()
    seen = set()
    for ref in references:
        if ref.key in seen:
            continue
        seen.add(ref.key)
        chapter = get_chapter_info(ref.href, target)
        entry = chapters.setdefault(chapter.number, ChapterEntry(info=chapter))
        priority, matched = get_section_priority(ref.text, ref.href, target)
        entry.sections.append(Section(reference=ref, priority=priority, matched=matched))

    for entry in chapters.values():
        entry.sections.sort(key=lambda s: s.sort_key())

    return Catalog(OrderedDict(sorted(chapters.items())))
