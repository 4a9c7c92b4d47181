#!/usr/bin/env python3
"""
Per-comic processing pipeline: extract, transcode, repackage.
"""

import multiprocessing
import tempfile
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path

from . import progress as positions
from .conversion import TranscodeCoordinator, find_image_files
from .core.archive_handler import ArchiveHandler
from .core.format_detector import ComicKind
from .core.pdf_extractor import extract_pdf_images
from .errors import ComicShrinkError
from .utils import get_file_size_formatted

OUTPUT_CODEC = "webp"
OUTPUT_EXTENSION = ".cbz"


@dataclass
class ProcessingStats:
    original_size: int
    compressed_size: int
    images_processed: int
    images_skipped: int


def generate_output_path(input_path, quality):
    """Output lives next to the input: '<stem> optimized_webp_q<quality>.cbz'."""
    input_path = Path(input_path)
    return input_path.parent / f"{input_path.stem} optimized_{OUTPUT_CODEC}_q{quality}{OUTPUT_EXTENSION}"


def extract_comic(container, extract_dir, logger=None):
    """Unpack a classified comic into extract_dir using its kind's strategy."""
    if logger:
        logger.info(f"Extracting {container.path} to {extract_dir}...")

    if container.kind is ComicKind.CBZ:
        ArchiveHandler.extract_zip(container.path, extract_dir, logger)
    elif container.kind is ComicKind.CBR:
        ArchiveHandler.extract_with_fallback(container.path, extract_dir, logger)
    elif container.kind is ComicKind.PDF:
        extract_pdf_images(container.path, extract_dir, logger)
    else:
        raise ValueError(f"Unknown comic kind: {container.kind}")


def process_comic_file(container, config, logger=None, progress=None):
    """Run the whole pipeline for one comic.

    The scratch directory is removed on every exit path.

    Returns:
        ProcessingStats

    Raises:
        ConfigurationError, ExtractionError, RepackageError
    """
    config.validate()
    input_file = Path(container.path)
    orig_size_str, orig_size_bytes = get_file_size_formatted(input_file)

    with tempfile.TemporaryDirectory(prefix="comicshrink-") as temp_dir:
        temp_path = Path(temp_dir)
        if progress:
            progress.set_position(positions.EXTRACTION_STARTED)

        extract_comic(container, temp_path, logger)
        if progress:
            progress.set_position(positions.EXTRACTION_DONE)

        image_files = find_image_files(temp_path)
        coordinator = TranscodeCoordinator(
            config.quality,
            config.target_height,
            config.threads,
            logger,
            progress,
            base_offset=positions.EXTRACTION_DONE,
            progress_span=positions.TRANSCODE_SPAN,
        )
        processed, skipped = coordinator.transcode_all(image_files)
        if progress:
            progress.set_position(positions.TRANSCODE_DONE)

        output_path = generate_output_path(input_file, config.quality)
        ArchiveHandler.create_cbz(temp_path, output_path, logger)
        if progress:
            progress.set_position(positions.PACKAGING_DONE)

    new_size_str, new_size_bytes = get_file_size_formatted(output_path)
    if logger:
        logger.info(f"Compression Report for {input_file.name}:")
        logger.info(f"  Original size: {orig_size_str}")
        logger.info(f"  New size: {new_size_str}")
        logger.info(f"  Images converted: {processed}, kept as-is: {skipped}")

    return ProcessingStats(
        original_size=orig_size_bytes,
        compressed_size=new_size_bytes,
        images_processed=processed,
        images_skipped=skipped,
    )


def process_comic_files(containers, config, logger=None, reporter=None):
    """Process many comics concurrently.

    A failure in one comic is logged and reported through its progress
    sink; it never stops the others.

    Returns:
        dict: input path -> ProcessingStats, for the comics that succeeded
    """
    config.validate()
    containers = list(containers)
    stats = {}
    stats_lock = threading.Lock()

    jobs = config.jobs if config.jobs > 0 else multiprocessing.cpu_count()
    if logger:
        logger.info(f"Processing {len(containers)} comics with up to {jobs} in parallel")

    def run_one(container):
        file_progress = reporter.for_file(container.path) if reporter else None
        try:
            file_stats = process_comic_file(container, config, logger, file_progress)
        except (ComicShrinkError, OSError) as e:
            if logger:
                logger.error(f"Error processing {container.path}: {e}")
            if file_progress:
                file_progress.fail(str(e))
            return
        except Exception as e:
            if logger:
                logger.exception(f"Unexpected error processing {container.path}: {e}")
            if file_progress:
                file_progress.fail(str(e))
            return
        with stats_lock:
            stats[container.path] = file_stats
        if file_progress:
            file_progress.finish()

    with ThreadPoolExecutor(max_workers=jobs) as executor:
        for future in [executor.submit(run_one, c) for c in containers]:
            future.result()

    return stats
