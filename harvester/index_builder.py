"""
Generation of the category index and the table of contents.

Both files are rebuilt from scratch on every run from the set of successful
documents; their cost only depends on files that are already on disk.
"""

import os
import re
import logging
from collections import defaultdict
from datetime import datetime, timezone

from harvester.config import (
    CATEGORY_INDEX_FILENAME, DOCUMENT_EXTENSION, INDEX_EXCERPT_LENGTH,
    META_LABELS, MIN_HEADER_LENGTH, TOC_FILENAME,
)
from harvester.content_processor import count_words
from harvester.file_utils import read_frontmatter, save_file
from harvester.logger import NullReporter
from harvester.models import Document, HeaderEntry

logger = logging.getLogger(__name__)

HEADER_PATTERN = re.compile(r"^(#{1,6})\s+(.+)$")
FENCE_PATTERN = re.compile(r"^(```|~~~)")
OVERFLOW_CATEGORY = "Other"


def strip_inline_markdown(text):
    """Remove links, code spans, bold, italic and strikethrough markers."""
    text = re.sub(r"\[([^\]]+)\]\([^)]+\)", r"\1", text)
    text = re.sub(r"`([^`]+)`", r"\1", text)
    text = re.sub(r"\*\*([^*]+)\*\*", r"\1", text)
    text = re.sub(r"\*([^*]+)\*", r"\1", text)
    text = re.sub(r"~~([^~]+)~~", r"\1", text)
    return text.strip()


def is_valid_header(text, meta_labels=META_LABELS, min_length=MIN_HEADER_LENGTH):
    lower_text = text.lower().strip()
    if lower_text in meta_labels:
        return False
    return len(lower_text) >= min_length


def extract_headers(body, meta_labels=META_LABELS, min_length=MIN_HEADER_LENGTH):
    """
    Extract the content headers of a markdown body in source order.

    Lines inside fenced code blocks are never headers. Meta-labels such as
    'Note' or 'Pitfall' and very short headers are dropped.

    Returns:
        list: HeaderEntry objects.
    """
    headers = []
    in_fence = False
    for line in body.splitlines():
        trimmed = line.strip()
        if FENCE_PATTERN.match(trimmed):
            in_fence = not in_fence
            continue
        if in_fence:
            continue
        match = HEADER_PATTERN.match(trimmed)
        if not match:
            continue
        text = strip_inline_markdown(match.group(2))
        if is_valid_header(text, meta_labels, min_length):
            headers.append(HeaderEntry(level=len(match.group(1)), text=text))
    return headers


def category_of(path):
    """Third path segment of a document path, or the overflow category."""
    parts = [p for p in path.split("/") if p]
    return parts[2] if len(parts) > 2 else OVERFLOW_CATEGORY


def group_by_category(documents):
    categories = defaultdict(list)
    for document in documents:
        categories[category_of(document.path)].append(document)
    return {name: categories[name] for name in sorted(categories)}


def build_category_index(documents, target, generated):
    """Render INDEX.md: documents grouped under alphabetically sorted categories."""
    categories = group_by_category(documents)
    lines = [
        f"# {target.description or target.name} - Markdown Collection",
        "",
        f"**Generated:** {generated}  ",
        f"**Total Pages:** {len(documents)}  ",
        f"**Source:** [{target.root_url}]({target.root_url})",
        "",
        "## Table of Contents",
        "",
    ]
    for category, members in categories.items():
        lines.append(f"### {category[:1].upper() + category[1:]}")
        lines.append("")
        for document in members:
            excerpt = ""
            if document.excerpt:
                excerpt = f" - {document.excerpt[:INDEX_EXCERPT_LENGTH]}"
                if len(document.excerpt) > INDEX_EXCERPT_LENGTH:
                    excerpt += "..."
            lines.append(f"- [{document.title}]({document.filename}){excerpt}")
        lines.append("")
    return "\n".join(lines), len(categories)


def build_table_of_contents(sections, target, generated, total_words):
    """
    Render the table of contents.

    Args:
        sections (list): (Document, [HeaderEntry]) pairs sorted by filename.
        target (TargetConfig): Names the harvested site section.
        generated (str): Timestamp of the run.
        total_words (int): Word count over all documents.

    Returns:
        tuple: (markdown text, total header count).
    """
    categories = sorted({category_of(document.path) for document, _ in sections})
    total_headers = sum(len(headers) for _, headers in sections)
    lines = [
        "---",
        f'title: "{target.description or target.name} - Index of Contents"',
        f"generated: {generated}",
        f"total_pages: {len(sections)}",
        "---",
        "",
        f"# Index of Contents - {target.description or target.name}",
        "",
        f"> **Complete table of contents with all headers from {len(sections)} documentation pages**",
        ">",
        f"> **Generated:** {generated}  ",
        f"> **Source:** [{target.root_url}]({target.root_url})  ",
        "> **Filtered:** Excludes meta-content like \"Note\", \"Pitfall\", \"Deep Dive\", etc.",
        "",
        "## Navigation",
        "",
    ]
    lines.extend(f"- {category}" for category in categories)
    lines.extend(["", "---", ""])

    for document, headers in sections:
        if not headers:
            continue
        lines.append(f"## {document.title}")
        lines.append("")
        lines.append(f"> **File:** [`{document.filename}`]({document.filename})  ")
        lines.append(f"> **URL:** [{document.source_url}]({document.source_url})  ")
        lines.append(f"> **Path:** `{document.path}`  ")
        lines.append(f"> **Headers:** {len(headers)}")
        lines.append("")
        for header in headers:
            lines.append(f"{'  ' * (header.level - 1)}- {header.text}")
        lines.append("")

    lines.extend([
        "---",
        "",
        "## Statistics",
        "",
        f"- **Total Pages:** {len(sections)}",
        f"- **Total Headers:** {total_headers}",
        f"- **Total Word Count:** {total_words:,}",
        f"- **Generated:** {generated}",
        "",
    ])
    return "\n".join(lines), total_headers


def scan_documents(documents_dir):
    """
    Load Document records for every markdown file in the documents root.

    Index files are excluded. Used when the index phase runs on its own.
    """
    documents = []
    if not os.path.isdir(documents_dir):
        return documents
    for filename in sorted(os.listdir(documents_dir)):
        if not filename.endswith(DOCUMENT_EXTENSION) or filename in (CATEGORY_INDEX_FILENAME, TOC_FILENAME):
            continue
        metadata, body = read_frontmatter(os.path.join(documents_dir, filename))
        documents.append(Document(
            filename=filename,
            title=str(metadata.get("title") or filename),
            source_url=str(metadata.get("url") or ""),
            path=str(metadata.get("path") or ""),
            excerpt=str(metadata.get("excerpt") or ""),
            length=int(metadata.get("length") or 0),
            converted_at=str(metadata.get("convertedAt") or ""),
            word_count=count_words(body),
            skipped=True,
        ))
    return documents


class IndexResult:
    def __init__(self, documents=0, categories=0, headers=0, words=0, failed=0):
        self.documents = documents
        self.categories = categories
        self.headers = headers
        self.words = words
        self.failed = failed


class IndexBuilder:
    """
    Write INDEX.md and the table of contents into the documents root.

    Args:
        paths (TargetPaths): Location of the documents root.
        target (TargetConfig): Names used in the generated headings.
        reporter (Reporter): Receives structured progress events.
    """

    def __init__(self, paths, target, reporter=None, meta_labels=META_LABELS,
                 min_header_length=MIN_HEADER_LENGTH):
        self.paths = paths
        self.target = target
        self.reporter = reporter or NullReporter()
        self.meta_labels = [label.lower() for label in meta_labels]
        self.min_header_length = min_header_length

    def collect_sections(self, documents):
        sections = []
        failed = 0
        for document in sorted(documents, key=lambda d: d.filename):
            path = os.path.join(self.paths.documents_dir, document.filename)
            try:
                _, body = read_frontmatter(path)
            except (OSError, UnicodeDecodeError) as e:
                logger.error(f"Failed to process headers for {document.filename}: {e}")
                failed += 1
                continue
            headers = extract_headers(body, self.meta_labels, self.min_header_length)
            sections.append((document, headers))
        return sections, failed

    def build(self, documents):
        """
        Regenerate both index files.

        Args:
            documents (list): Successful Document records of this run.

        Returns:
            IndexResult: Document, category, header and word totals.
        """
        generated = datetime.now(timezone.utc).isoformat(timespec="seconds")
        sections, failed = self.collect_sections(documents)
        indexed = [document for document, _ in sections]
        total_words = sum(document.word_count for document in indexed)

        index_text, category_count = build_category_index(indexed, self.target, generated)
        index_path = save_file(os.path.join(self.paths.index_dir, CATEGORY_INDEX_FILENAME), index_text)
        self.reporter.emit("index_written", path=index_path, documents=len(indexed))

        toc_text, header_count = build_table_of_contents(sections, self.target, generated, total_words)
        toc_path = save_file(os.path.join(self.paths.index_dir, TOC_FILENAME), toc_text)
        self.reporter.emit("index_written", path=toc_path, documents=len(indexed), headers=header_count)

        logger.info(
            f"Indexed {len(indexed)} documents: {category_count} categories, "
            f"{header_count} headers, {total_words:,} words"
        )
        return IndexResult(
            documents=len(indexed), categories=category_count,
            headers=header_count, words=total_words, failed=failed,
        )
