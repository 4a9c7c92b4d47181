#!/usr/bin/env python3
"""
Summary reporting for a comicshrink run.
"""

from pathlib import Path

from .core.filesystem_utils import FileSystemUtils
from .utils import get_file_size_formatted

# Files saving less than this percentage are called out in the summary
LOW_SAVINGS_THRESHOLD = 5.0


def summarize_stats(stats_map):
    """Aggregate a {path: ProcessingStats} mapping into summary figures."""
    total_original = 0
    total_compressed = 0
    total_processed = 0
    total_skipped = 0
    low_savings_files = 0
    per_file = []

    for path, stat in sorted(stats_map.items(), key=lambda item: str(item[0])):
        savings = FileSystemUtils.calculate_compression_stats(
            stat.original_size, stat.compressed_size
        )['savings_percentage']
        if savings < LOW_SAVINGS_THRESHOLD:
            low_savings_files += 1
        per_file.append((Path(path).name, savings, stat))

        total_original += stat.original_size
        total_compressed += stat.compressed_size
        total_processed += stat.images_processed
        total_skipped += stat.images_skipped

    overall = FileSystemUtils.calculate_compression_stats(total_original, total_compressed)
    return {
        'files': per_file,
        'file_count': len(stats_map),
        'total_original_size': total_original,
        'total_compressed_size': total_compressed,
        'images_processed': total_processed,
        'images_skipped': total_skipped,
        'overall_savings_percentage': overall['savings_percentage'],
        'low_savings_files': low_savings_files,
    }


def print_summary_report(stats_map, logger):
    """Print a summary report of all processed files and total space savings."""
    if not stats_map:
        return

    summary = summarize_stats(stats_map)
    total_original_fmt, _ = get_file_size_formatted(summary['total_original_size'])
    total_compressed_fmt, _ = get_file_size_formatted(summary['total_compressed_size'])

    logger.info("=" * 80)
    logger.info("PROCESSING SUMMARY")
    logger.info("=" * 80)
    for filename, savings, stat in summary['files']:
        logger.info(
            f"{filename}: {savings:.1f}% savings "
            f"({stat.images_processed} images processed, {stat.images_skipped} skipped)"
        )

    logger.info("")
    logger.info(f"Total files processed:  {summary['file_count']}")
    logger.info(f"Total images processed: {summary['images_processed']}")
    logger.info(f"Total images skipped:   {summary['images_skipped']}")
    logger.info(f"Overall size reduction: {summary['overall_savings_percentage']:.1f}%")
    logger.info(f"Original size:   {total_original_fmt}")
    logger.info(f"Compressed size: {total_compressed_fmt}")

    if summary['low_savings_files'] > 0:
        logger.info(
            f"{summary['low_savings_files']} file(s) were already well-compressed "
            f"and showed minimal improvement."
        )
    logger.info("=" * 80)
