"""
Conversion of stored raw pages into markdown documents.

Conversion is incremental: a document is rebuilt only when its raw page is
newer than the existing markdown file, so re-running the phase over an
unchanged raw store writes nothing.
"""

import os
import logging
from datetime import datetime, timezone

from harvester.batching import run_concurrently, split_batches
from harvester.content_processor import count_words, extract_article, html_to_markdown, render_document
from harvester.errors import ExtractionError
from harvester.file_utils import modified_time, read_frontmatter, read_text, save_file, split_frontmatter
from harvester.logger import NullReporter
from harvester.models import Document

logger = logging.getLogger(__name__)


class ConvertOutcome:
    def __init__(self, documents=None, failed=0):
        self.documents = documents or []
        self.failed = failed

    @property
    def skipped(self):
        return sum(1 for d in self.documents if d.skipped)

    @property
    def converted(self):
        return sum(1 for d in self.documents if not d.skipped)

    @property
    def total_words(self):
        return sum(d.word_count for d in self.documents)


def load_existing_document(path, filename, reference):
    """
    Rebuild a Document record from an already converted file.

    Only the frontmatter and a word count of the body are read.
    """
    metadata, body = read_frontmatter(path)
    return Document(
        filename=filename,
        title=str(metadata.get("title") or reference.text),
        source_url=str(metadata.get("url") or reference.full_url),
        path=str(metadata.get("path") or reference.href),
        excerpt=str(metadata.get("excerpt") or ""),
        length=int(metadata.get("length") or 0),
        converted_at=str(metadata.get("convertedAt") or ""),
        word_count=count_words(body),
        skipped=True,
    )


class Converter:
    """
    Turn raw pages into markdown documents.

    Args:
        paths (TargetPaths): Raw page and document directories.
        settings (RunSettings): The batch size is the pool size.
        reporter (Reporter): Receives structured progress events.
    """

    def __init__(self, paths, settings, reporter=None):
        self.paths = paths
        self.settings = settings
        self.reporter = reporter or NullReporter()

    def is_up_to_date(self, raw_path, document_path):
        raw_mtime = modified_time(raw_path)
        doc_mtime = modified_time(document_path)
        return doc_mtime is not None and raw_mtime is not None and doc_mtime >= raw_mtime

    def convert_one(self, reference, filename):
        """
        Convert the raw page of one reference.

        Returns:
            Document: The new document, or the reconstructed record of the
            existing one when it is not older than the raw page.

        Raises:
            ExtractionError: If the raw page is missing or has no readable
                content region.
        """
        raw_path = self.paths.raw_path(filename)
        document_path = self.paths.document_path(filename)
        md_filename = os.path.basename(document_path)

        if not os.path.exists(raw_path):
            raise ExtractionError(f"No raw page stored for {reference.full_url}")

        if self.is_up_to_date(raw_path, document_path):
            return load_existing_document(document_path, md_filename, reference)

        article = extract_article(read_text(raw_path), fallback_title=reference.text)
        markdown = html_to_markdown(article["content_html"])

        document = Document(
            filename=md_filename,
            title=article["title"],
            source_url=reference.full_url,
            path=reference.href,
            excerpt=article["excerpt"],
            length=article["length"],
            converted_at=datetime.now(timezone.utc).isoformat(timespec="seconds"),
        )
        content = render_document(document, markdown)
        document.word_count = count_words(split_frontmatter(content)[1])
        save_file(document_path, content)
        return document

    def _convert_safely(self, reference, filename):
        try:
            document = self.convert_one(reference, filename)
        except (ExtractionError, OSError, UnicodeDecodeError) as e:
            self.reporter.emit(
                "document_failed", filename=filename, url=reference.full_url, error=str(e)
            )
            return None
        event = "document_skipped" if document.skipped else "document_converted"
        self.reporter.emit(event, filename=document.filename, word_count=document.word_count)
        return document

    def convert_all(self, references, catalog):
        """
        Convert every catalog reference in concurrent batches.

        Args:
            references (list): PageReference objects in catalog order, without duplicates.
            catalog (Catalog): Provides the canonical filenames.

        Returns:
            ConvertOutcome: Successful documents and the number of failures.
        """
        outcome = ConvertOutcome()
        batches = split_batches(references, max(1, self.settings.pool_size))
        logger.info(f"Starting conversion of {len(references)} pages in {len(batches)} batches")

        for i, batch in enumerate(batches, start=1):
            self.reporter.emit("batch_started", batch=i, total_batches=len(batches), size=len(batch))
            calls = [
                lambda r=ref, f=catalog.filename_for(ref): self._convert_safely(r, f)
                for ref in batch
            ]
            results = run_concurrently(calls, label="conversion")
            documents = [d for d in results if d is not None]
            failed = len(results) - len(documents)
            outcome.documents.extend(documents)
            outcome.failed += failed
            self.reporter.emit(
                "batch_completed", batch=i, total_batches=len(batches),
                succeeded=len(documents), failed=failed,
            )

        logger.info(
            f"Conversion completed: {len(outcome.documents)}/{len(references)} documents "
            f"({outcome.converted} converted, {outcome.skipped} up to date)"
        )
        logger.info(f"Total word count: {outcome.total_words:,} words")
        return outcome
