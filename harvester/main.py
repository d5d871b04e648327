"""
Main entry point for the documentation harvester.

Parses the command line, loads the target configurations and runs the
pipeline for one target or, with --all, for every configured target.
"""

import argparse
import sys
from dataclasses import replace

from harvester import config
from harvester.config import RunSettings, get_target, load_targets
from harvester.errors import HarvestError
from harvester.logger import LoggingReporter, setup_logging
from harvester.pipeline import DISCOVER, START_PHASES, run_targets


def build_parser():
    parser = argparse.ArgumentParser(
        description="Harvest a documentation site's sidebar pages into markdown"
    )
    selection = parser.add_mutually_exclusive_group(required=True)
    selection.add_argument("--target", help="Name of the target configuration to harvest")
    selection.add_argument("--all", action="store_true", help="Harvest every configured target, one after another")
    selection.add_argument("--list", action="store_true", help="List the configured targets and exit")
    parser.add_argument("--targets-file", default=config.TARGETS_FILE, help="JSON file with target configurations")
    parser.add_argument("--output", default=config.BASE_OUTPUT_FOLDER, help="Root folder for harvested output")
    parser.add_argument("--clean", action="store_true", help="Delete previous raw pages and documents before running")
    parser.add_argument("--from-phase", choices=START_PHASES, default=DISCOVER,
                        help="Start at this phase, reusing the output of earlier phases")
    parser.add_argument("--pool-size", type=int, default=config.POOL_SIZE, help="Number of concurrent browsers")
    parser.add_argument("--batch-delay", type=float, default=config.BATCH_DELAY,
                        help="Seconds to wait between download batches")
    parser.add_argument("--show-browser", action="store_true", help="Run Chrome with a visible window")
    parser.add_argument("--log-level", default=config.LOG_LEVEL, help="Logging level (DEBUG, INFO, ...)")
    return parser


def main(argv=None):
    """Run the harvester and return the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.pool_size < 1:
        parser.error("--pool-size must be at least 1")

    logger = setup_logging(args.output, args.log_level)

    try:
        targets = load_targets(args.targets_file)
        if args.list:
            for name, target in targets.items():
                print(f"{name}: {target.description} ({target.root_url})")
            return 0
        selected = list(targets.values()) if args.all else [get_target(targets, args.target)]

        settings = replace(
            RunSettings(),
            output_root=args.output,
            pool_size=args.pool_size,
            batch_delay=args.batch_delay,
            headless=not args.show_browser,
            clean=args.clean,
        )
        logger.info(f"🚀 Starting harvest of {', '.join(t.name for t in selected)}")
        run_targets(selected, settings, LoggingReporter(logger), start=args.from_phase)
    except HarvestError as e:
        logger.error(f"Harvest failed: {e.message}")
        return 1

    logger.info("✅ Harvest completed successfully")
    return 0


if __name__ == "__main__":
    sys.exit(main())
