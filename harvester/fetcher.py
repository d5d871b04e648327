"""
Concurrent, content-addressed download of rendered pages.

References are processed in batches as large as the browser pool. Inside a
batch each reference gets a browser chosen round-robin and all of them render
concurrently; the batch is fully drained before the next one starts, and a
politeness delay separates consecutive batches. A rendered page is only
written when its SHA-256 digest differs from the stored copy.
"""

import time
import logging

from selenium.common.exceptions import WebDriverException

from harvester.batching import run_concurrently, split_batches
from harvester.browser_utils import close_browsers, create_browser, create_browser_pool, render_page
from harvester.errors import FetchError
from harvester.file_utils import file_hash, hash_content, save_file
from harvester.logger import NullReporter
from harvester.models import FetchRecord

logger = logging.getLogger(__name__)


class FetchOutcome:
    """Successful records of a fetch run plus its failure count."""

    def __init__(self, records=None, failed=0):
        self.records = records or []
        self.failed = failed

    @property
    def skipped(self):
        return sum(1 for r in self.records if r.skipped)

    @property
    def downloaded(self):
        return sum(1 for r in self.records if not r.skipped)

    @property
    def total_bytes(self):
        return sum(r.byte_size for r in self.records)


class BatchFetcher:
    """
    Render many pages with a fixed pool of browsers.

    Args:
        paths (TargetPaths): Where raw pages are stored.
        settings (RunSettings): Pool size, delays and thresholds.
        reporter (Reporter): Receives structured progress events.
        browser_factory (callable): Creates one browser; injected in tests.
        render (callable): Renders one URL on one browser.
    """

    def __init__(self, paths, settings, reporter=None, browser_factory=None, render=render_page):
        self.paths = paths
        self.settings = settings
        self.reporter = reporter or NullReporter()
        self.browser_factory = browser_factory or (
            lambda: create_browser(headless=settings.headless, nav_timeout=settings.nav_timeout)
        )
        self.render = render
        self.pool = []

    def fetch_one(self, driver, reference, filename):
        """
        Render one page and store it unless the stored copy is identical.

        Raises:
            FetchError: If the rendered content is implausibly small.
            TimeoutException, WebDriverException: On navigation failures.
        """
        html = self.render(
            driver,
            reference.full_url,
            settle_delay=self.settings.settle_delay,
            timeout=self.settings.nav_timeout,
        )
        byte_size = len((html or "").encode("utf-8"))
        if byte_size < self.settings.min_content_bytes:
            raise FetchError(
                f"Content too short or empty ({byte_size} < {self.settings.min_content_bytes} bytes)"
            )

        path = self.paths.raw_path(filename)
        digest = hash_content(html)
        skipped = file_hash(path) == digest
        if not skipped:
            save_file(path, html)

        return FetchRecord(
            filename=filename,
            source_url=reference.full_url,
            title=reference.text,
            byte_size=byte_size,
            content_hash=digest,
            skipped=skipped,
        )

    def _fetch_safely(self, driver, reference, filename):
        try:
            record = self.fetch_one(driver, reference, filename)
        except (FetchError, WebDriverException, OSError) as e:
            # selenium's TimeoutException is a WebDriverException
            self.reporter.emit(
                "page_failed", url=reference.full_url, filename=filename,
                error=getattr(e, "msg", None) or str(e),
            )
            return None
        event = "page_skipped" if record.skipped else "page_fetched"
        self.reporter.emit(event, filename=record.filename, url=record.source_url, byte_size=record.byte_size)
        return record

    def process_batch(self, batch, catalog, batch_number, total_batches):
        """
        Fetch one batch concurrently, one browser per item.

        Returns:
            tuple: (successful records in batch order, failure count).
        """
        self.reporter.emit("batch_started", batch=batch_number, total_batches=total_batches, size=len(batch))
        calls = []
        for index, reference in enumerate(batch):
            driver = self.pool[index % len(self.pool)]
            filename = catalog.filename_for(reference)
            calls.append(lambda d=driver, r=reference, f=filename: self._fetch_safely(d, r, f))

        results = run_concurrently(calls, label="fetch")
        successful = [r for r in results if r is not None]
        failed = len(results) - len(successful)
        self.reporter.emit(
            "batch_completed", batch=batch_number, total_batches=total_batches,
            succeeded=len(successful), failed=failed,
        )
        return successful, failed

    def fetch_all(self, references, catalog):
        """
        Download every reference in batches of the pool size.

        Args:
            references (list): PageReference objects in catalog order, without duplicates.
            catalog (Catalog): Provides the canonical filenames.

        Returns:
            FetchOutcome: Successful records and the number of failures.
        """
        outcome = FetchOutcome()
        if not references:
            return outcome

        batch_size = self.settings.pool_size
        batches = split_batches(references, batch_size)
        logger.info(f"Starting download of {len(references)} pages in {len(batches)} batches")

        self.pool = create_browser_pool(batch_size, self.browser_factory)
        try:
            for i, batch in enumerate(batches, start=1):
                records, failed = self.process_batch(batch, catalog, i, len(batches))
                outcome.records.extend(records)
                outcome.failed += failed
                if i < len(batches) and self.settings.batch_delay:
                    time.sleep(self.settings.batch_delay)
        finally:
            close_browsers(self.pool)
            self.pool = []

        logger.info(
            f"Download completed: {len(outcome.records)}/{len(references)} pages "
            f"({outcome.downloaded} downloaded, {outcome.skipped} skipped)"
        )
        logger.info(f"Total HTML size: {outcome.total_bytes / 1024 / 1024:.2f} MB")
        return outcome
