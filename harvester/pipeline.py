"""
Phase sequencing of one harvest run.

Phases run strictly in order: discover, classify, fetch, convert, index.
A fatal error in any phase stops the run and is raised as PipelineError;
whatever earlier phases wrote stays on disk.
"""

import logging

from selenium.common.exceptions import WebDriverException

from harvester.browser_utils import close_browsers, create_browser
from harvester.classifier import classify
from harvester.config import RunSettings, TargetPaths
from harvester.converter import Converter
from harvester.errors import HarvestError, PipelineError
from harvester.fetcher import BatchFetcher
from harvester.file_utils import clean_directories, ensure_directories, load_catalog, save_catalog, save_summary
from harvester.index_builder import IndexBuilder, scan_documents
from harvester.link_discoverer import discover_links
from harvester.logger import NullReporter, summarize_run
from harvester.models import PhaseReport, RunSummary

logger = logging.getLogger(__name__)

DISCOVER = "discover"
CLASSIFY = "classify"
FETCH = "fetch"
CONVERT = "convert"
INDEX = "index"
PHASES = [DISCOVER, CLASSIFY, FETCH, CONVERT, INDEX]
# phases a run may be resumed from; classify always runs with its successor
START_PHASES = [DISCOVER, FETCH, CONVERT, INDEX]


class Pipeline:
    """
    Run the harvesting phases for one target configuration.

    Args:
        target (TargetConfig): Navigation root and classification tables.
        settings (RunSettings): Runtime knobs; defaults from the environment.
        reporter (Reporter): Receives structured progress events.
        browser_factory (callable): Creates one browser; injected in tests.
        render (callable, optional): Page renderer handed to the fetcher.
    """

    def __init__(self, target, settings=None, reporter=None, browser_factory=None, render=None):
        self.target = target
        self.settings = settings or RunSettings()
        self.reporter = reporter or NullReporter()
        self.browser_factory = browser_factory or (
            lambda: create_browser(headless=self.settings.headless, nav_timeout=self.settings.nav_timeout)
        )
        self.render = render
        self.paths = TargetPaths.for_target(self.settings.output_root, target)
        self.references = None
        self.catalog = None
        # None until convert runs; an index-only run rescans the documents root
        self.documents = None

    def prepare(self):
        """Create the output directories, wiping old output first if configured."""
        if self.settings.clean:
            removed = clean_directories(self.paths.raw_dir, self.paths.documents_dir)
            self.reporter.emit("cleanup_completed", target=self.target.name, directories=removed)
        ensure_directories(self.paths.links_dir, self.paths.raw_dir, self.paths.documents_dir)

    def discover(self):
        driver = self.browser_factory()
        try:
            self.references = discover_links(
                driver,
                self.target,
                settle_delay=self.settings.discovery_settle_delay,
                timeout=self.settings.nav_timeout,
            )
        finally:
            close_browsers([driver])
        save_catalog(self.paths.catalog_file, self.references)
        self.reporter.emit("links_discovered", count=len(self.references), url=self.target.root_url)
        return PhaseReport(DISCOVER, succeeded=len(self.references))

    def classify(self):
        if self.references is None:
            self.references = load_catalog(self.paths.catalog_file)
        self.catalog = classify(self.references, self.target)
        classified = len(self.catalog.references())
        self.reporter.emit("catalog_classified", links=classified, chapters=len(self.catalog))
        return PhaseReport(
            CLASSIFY,
            succeeded=classified,
            details={"chapters": len(self.catalog)},
        )

    def fetch(self):
        kwargs = {"browser_factory": self.browser_factory}
        if self.render is not None:
            kwargs["render"] = self.render
        fetcher = BatchFetcher(self.paths, self.settings, self.reporter, **kwargs)
        outcome = fetcher.fetch_all(self.catalog.references(), self.catalog)
        return PhaseReport(
            FETCH,
            succeeded=outcome.downloaded,
            skipped=outcome.skipped,
            failed=outcome.failed,
            details={"bytes": outcome.total_bytes},
        )

    def convert(self):
        converter = Converter(self.paths, self.settings, self.reporter)
        outcome = converter.convert_all(self.catalog.references(), self.catalog)
        self.documents = outcome.documents
        return PhaseReport(
            CONVERT,
            succeeded=outcome.converted,
            skipped=outcome.skipped,
            failed=outcome.failed,
            details={"words": outcome.total_words},
        )

    def index(self):
        documents = self.documents
        if documents is None:
            documents = scan_documents(self.paths.documents_dir)
        result = IndexBuilder(self.paths, self.target, self.reporter).build(documents)
        return PhaseReport(
            INDEX,
            succeeded=result.documents,
            failed=result.failed,
            details={
                "categories": result.categories,
                "headers": result.headers,
                "words": result.words,
            },
        )

    def phases_from(self, start):
        if start not in START_PHASES:
            raise ValueError(f"Unknown start phase '{start}'. Choose from: {', '.join(START_PHASES)}")
        if start == INDEX:
            return [INDEX]
        if start == DISCOVER:
            return list(PHASES)
        return [CLASSIFY] + PHASES[PHASES.index(start):]

    def run(self, start=DISCOVER):
        """
        Execute the phases in order, starting at `start`.

        Returns:
            RunSummary: Per-phase counters.

        Raises:
            PipelineError: When a phase fails fatally. The summary gathered so
                far is attached as `summary`.
        """
        summary = RunSummary(target=self.target.name)
        phase = "prepare"
        try:
            self.prepare()
            for phase in self.phases_from(start):
                self.reporter.emit("phase_started", phase=phase, target=self.target.name)
                report = getattr(self, phase)()
                summary.phases.append(report)
                self.reporter.emit(
                    "phase_completed", phase=phase, target=self.target.name,
                    succeeded=report.succeeded, skipped=report.skipped, failed=report.failed,
                )
        except (HarvestError, WebDriverException, OSError) as e:
            summary.error = str(e)
            self.reporter.emit("phase_failed", phase=phase, target=self.target.name, error=str(e))
            self._finish(summary)
            error = PipelineError(phase, str(e))
            error.summary = summary
            raise error from e

        self._finish(summary)
        return summary

    def _finish(self, summary):
        lines = summarize_run(summary)
        self.reporter.emit("run_summary", target=self.target.name, summary="; ".join(lines[1:]))
        try:
            save_summary(self.paths.summary_file, lines)
        except OSError as e:
            logger.warning(f"Could not write summary file: {e}")


def run_targets(targets, settings=None, reporter=None, start=DISCOVER, browser_factory=None, render=None):
    """
    Run the pipeline once per target, sequentially.

    Every target gets its own Pipeline and therefore its own classification
    tables. The first fatal failure stops the remaining targets.

    Returns:
        list: RunSummary objects of the completed targets.
    """
    summaries = []
    for target in targets:
        pipeline = Pipeline(target, settings, reporter, browser_factory=browser_factory, render=render)
        summaries.append(pipeline.run(start))
    return summaries
