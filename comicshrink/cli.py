#!/usr/bin/env python3
"""
Command-line interface for comicshrink.
Compresses CBZ/CBR/PDF comics into WebP-based CBZ archives.
"""
import argparse
import sys
import time
from pathlib import Path

from .config import (
    DEFAULT_MAX_DIMENSION,
    DEFAULT_QUALITY,
    DEFAULT_TARGET_HEIGHT,
    PipelineConfig,
    apply_global_settings,
    load_global_settings,
)
from .core.format_detector import FormatDetector
from .errors import ConfigurationError, UnsupportedFormat
from .pipeline import process_comic_files
from .progress import ProgressReporter
from .stats import print_summary_report
from .utils import log_effective_parameters, setup_logging


def parse_arguments(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="comicshrink",
        description="Compress comic book files (CBR/CBZ/PDF) with parallel processing",
        epilog="""Examples:
  %(prog)s comic.cbz
  %(prog)s --quality 80 --target-height 1600 comics/""",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "input",
        nargs="?",
        default=".",
        help="Input file or directory to process. Directories are searched recursively (default: .)",
    )

    quality_group = parser.add_argument_group("Quality & Size")
    quality_group.add_argument(
        "--quality",
        "-q",
        type=int,
        default=DEFAULT_QUALITY,
        help=f"WebP quality (1-100, default: {DEFAULT_QUALITY})",
    )
    quality_group.add_argument(
        "--target-height",
        "-H",
        type=int,
        default=DEFAULT_TARGET_HEIGHT,
        help=f"Target height for images in pixels (default: {DEFAULT_TARGET_HEIGHT})",
    )
    quality_group.add_argument(
        "--max-dimension",
        "-m",
        type=int,
        default=DEFAULT_MAX_DIMENSION,
        help=f"Maximum dimension for fallback (default: {DEFAULT_MAX_DIMENSION})",
    )

    perf_group = parser.add_argument_group("Performance")
    perf_group.add_argument(
        "--threads",
        "-t",
        type=int,
        default=0,
        help="Image conversion threads per comic (0 = number of CPUs)",
    )
    perf_group.add_argument(
        "--jobs",
        "-j",
        type=int,
        default=0,
        help="Comics processed at the same time (0 = number of CPUs)",
    )

    log_group = parser.add_argument_group("Logging")
    log_group.add_argument("--verbose", "-v", action="store_true", help="Enable debug output")
    log_group.add_argument("--silent", "-s", action="store_true", help="Only show errors")

    return parser.parse_args(argv)


def collect_comics(input_path, logger):
    """Turn the input path into a list of classified comics."""
    if input_path.is_file():
        return [FormatDetector.classify(input_path)]
    return FormatDetector.find_comic_files(input_path, logger)


def main(argv=None):
    """Main entry point."""
    args = parse_arguments(argv)

    # Apply global settings before configuring logging so verbosity is respected
    settings, settings_error = load_global_settings()
    args = apply_global_settings(args, settings)
    logger = setup_logging(args.verbose, args.silent)
    if settings_error:
        logger.warning(f"Could not load global settings: {settings_error}")

    try:
        config = PipelineConfig(
            quality=args.quality,
            target_height=args.target_height,
            max_dimension=args.max_dimension,
            threads=args.threads,
            jobs=args.jobs,
        ).validate()
    except ConfigurationError as e:
        logger.error(str(e))
        return 1

    input_path = Path(args.input).resolve()
    if not input_path.exists():
        logger.error(f"Input path does not exist: {input_path}")
        return 1

    try:
        comics = collect_comics(input_path, logger)
    except UnsupportedFormat as e:
        logger.error(str(e))
        return 1
    except OSError as e:
        logger.error(f"Failed to find comics: {e}")
        return 1

    if not comics:
        logger.warning("No comic files found in the specified path.")
        return 0

    logger.info(f"Found {len(comics)} comic file(s) to process")
    log_effective_parameters(config, logger)

    start_time = time.time()
    reporter = ProgressReporter(len(comics), logger)
    stats = process_comic_files(comics, config, logger, reporter)
    execution_time = time.time() - start_time
    minutes, seconds = divmod(execution_time, 60)

    print_summary_report(stats, logger)
    logger.info(f"Execution time: {int(minutes)}m {seconds:.1f}s")

    if not stats:
        logger.warning("No comics were successfully processed")
        return 1
    if reporter.failed:
        logger.warning(f"{reporter.failed} of {len(comics)} comics failed")
    return 0


if __name__ == "__main__":
    sys.exit(main())
