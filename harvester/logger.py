import logging
import os

from harvester.config import BASE_OUTPUT_FOLDER, LOG_FILENAME, LOG_FORMAT, LOG_LEVEL


def setup_logging(log_dir=BASE_OUTPUT_FOLDER, level=LOG_LEVEL):
    """
    Set up logging configuration.

    Configures logging to output to both a file and the console with
    appropriate formatting and log level.

    Args:
        log_dir (str): Folder receiving the log file.
        level (str): Name of the log level.

    Returns:
        Logger: A configured logger instance.
    """
    os.makedirs(log_dir, exist_ok=True)
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[
            logging.FileHandler(os.path.join(log_dir, LOG_FILENAME)),
            logging.StreamHandler()
        ]
    )
    return logging.getLogger("harvester")


class Reporter:
    """
    Sink for structured pipeline events.

    Pipeline components never print or log status themselves; they emit an
    event name plus keyword fields and the reporter decides how to render it.
    """

    def emit(self, event, **fields):
        raise NotImplementedError


class NullReporter(Reporter):
    def emit(self, event, **fields):
        pass


class LoggingReporter(Reporter):
    """Render events as human-readable log lines."""

    MESSAGES = {
        "phase_started": (logging.INFO, "\n=== PHASE: {phase} ({target}) ==="),
        "phase_completed": (logging.INFO, "✅ {phase} completed: {succeeded} ok, {skipped} skipped, {failed} failed"),
        "phase_failed": (logging.ERROR, "💥 {phase} failed: {error}"),
        "cleanup_completed": (logging.INFO, "🧹 Removed previous output: {directories}"),
        "links_discovered": (logging.INFO, "🔗 Extracted {count} links from {url}"),
        "catalog_classified": (logging.INFO, "📚 Organized {links} links into {chapters} chapters"),
        "batch_started": (logging.INFO, "📦 Batch {batch}/{total_batches} ({size} items)"),
        "batch_completed": (logging.INFO, "📦 Batch {batch}/{total_batches}: {succeeded} ok, {failed} failed"),
        "page_fetched": (logging.INFO, "⬇️ Downloaded: {filename} ({byte_size} bytes)"),
        "page_skipped": (logging.INFO, "⏭️ Skipped: {filename} (identical content)"),
        "page_failed": (logging.ERROR, "❌ Failed to download {url}: {error}"),
        "document_converted": (logging.INFO, "📝 Converted: {filename} ({word_count} words)"),
        "document_skipped": (logging.INFO, "⏭️ Up to date: {filename}"),
        "document_failed": (logging.ERROR, "❌ Failed to convert {filename}: {error}"),
        "index_written": (logging.INFO, "🗂️ Wrote {path}"),
        "run_summary": (logging.INFO, "📊 {target}: {summary}"),
    }

    def __init__(self, logger=None):
        self.logger = logger or logging.getLogger("harvester")

    def emit(self, event, **fields):
        level, template = self.MESSAGES.get(event, (logging.DEBUG, event))
        try:
            message = template.format(**fields)
        except KeyError:
            message = f"{event} {fields}"
        self.logger.log(level, message)


def summarize_run(summary, logger=None):
    """
    Log the per-phase counters of a finished (or halted) run.

    Args:
        summary (RunSummary): The run outcome.
        logger (Logger, optional): Defaults to the package logger.

    Returns:
        list: The rendered summary lines.
    """
    logger = logger or logging.getLogger("harvester")
    lines = [f"Target: {summary.target}"]
    for report in summary.phases:
        lines.append(
            f"  - {report.phase}: {report.succeeded} ok, "
            f"{report.skipped} skipped, {report.failed} failed"
        )
        for key, value in report.details.items():
            lines.append(f"    • {key}: {value}")
    if summary.error:
        lines.append(f"  Error: {summary.error}")

    logger.info("\n📊 Harvest Summary:")
    for line in lines:
        logger.info(line)
    return lines
