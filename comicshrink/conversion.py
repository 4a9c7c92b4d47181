#!/usr/bin/env python3
"""
Image conversion for comicshrink: per-image WebP transcoding and the
threaded coordinator that runs it across a comic's pages.
"""

import io
import os
import queue
import threading
import multiprocessing
from collections import namedtuple
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from .errors import DecodeError, EncodeError, TranscodeError

IMAGE_EXTENSIONS = {'.jpg', '.jpeg', '.png', '.bmp', '.tiff', '.tif'}

TranscodeOutcome = namedtuple('TranscodeOutcome', ['source_path', 'succeeded'])


def find_image_files(directory):
    """Find all convertible images below directory, in page order."""
    images = []
    for root, _, files in os.walk(directory):
        for file in files:
            file_path = Path(root) / file
            if file_path.suffix.lower() in IMAGE_EXTENSIONS and file_path.is_file():
                images.append(file_path)
    return sorted(images)


def compute_target_size(width, height, target_height):
    """Return (width, height) scaled to target_height with the same aspect ratio."""
    aspect_ratio = width / height
    new_height = target_height
    new_width = max(1, round(new_height * aspect_ratio))
    return new_width, new_height


def _encode_webp(img, quality):
    buffer = io.BytesIO()
    img.save(buffer, 'WEBP', quality=quality)
    return buffer.getvalue()


def transcode_image(image_path, quality, target_height, logger=None):
    """Resize one image to target_height and re-encode it as WebP.

    The original is replaced by ``<stem>.webp`` only when the WebP data
    is strictly smaller than the original file.

    Returns:
        bool: True if the image was replaced, False if it was left untouched

    Raises:
        DecodeError: the image could not be read
        EncodeError: the WebP could not be produced or written
    """
    image_path = Path(image_path)
    try:
        with Image.open(image_path) as img:
            img.load()
            # Check if image needs to be converted from CMYK or other modes
            if img.mode not in ('RGB', 'RGBA', 'L', 'LA'):
                img = img.convert('RGB')
            width, height = img.size
            new_size = compute_target_size(width, height, target_height)
            resized = img.resize(new_size, Image.LANCZOS)
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
        raise DecodeError(f"Cannot decode {image_path.name}: {e}") from e

    try:
        webp_bytes = _encode_webp(resized, quality)
    except (OSError, ValueError, KeyError) as e:
        raise EncodeError(f"Cannot encode {image_path.name} as WebP: {e}") from e

    original_size = image_path.stat().st_size
    if len(webp_bytes) >= original_size:
        if logger:
            logger.debug(
                f"Keeping {image_path.name}: WebP would be {len(webp_bytes)} bytes "
                f"vs {original_size} bytes original"
            )
        return False

    webp_path = image_path.with_suffix('.webp')
    try:
        webp_path.write_bytes(webp_bytes)
        image_path.unlink()
    except OSError as e:
        raise EncodeError(f"Cannot write {webp_path.name}: {e}") from e

    if logger:
        savings_pct = (1 - len(webp_bytes) / original_size) * 100
        logger.debug(
            f"Converted: {image_path.name} -> {webp_path.name} "
            f"({savings_pct:.1f}% smaller, {original_size/1024:.1f}KB → {len(webp_bytes)/1024:.1f}KB)"
        )
    return True


class TranscodeCoordinator:
    """
    Runs transcode_image over a list of images on a thread pool.

    Workers only put a TranscodeOutcome on a bounded queue. One aggregator
    thread drains it, owns the processed/skipped counters and publishes
    progress, so counters and positions are written by a single thread.
    """

    QUEUE_SIZE = 100
    _DONE = object()

    def __init__(self, quality, target_height, num_threads=0, logger=None,
                 progress=None, base_offset=30, progress_span=50):
        self.quality = quality
        self.target_height = target_height
        self.num_threads = num_threads if num_threads > 0 else multiprocessing.cpu_count()
        self.logger = logger
        self.progress = progress
        self.base_offset = base_offset
        self.progress_span = progress_span

    def transcode_all(self, image_paths):
        """Transcode every image. Returns (processed_count, skipped_count)."""
        image_paths = list(image_paths)
        total = len(image_paths)
        if total == 0:
            return 0, 0

        if self.logger:
            self.logger.info(
                f"Converting {total} images to WebP using {self.num_threads} threads "
                f"(quality={self.quality}, target_height={self.target_height})"
            )

        outcomes = queue.Queue(maxsize=self.QUEUE_SIZE)
        counts = {'processed': 0, 'skipped': 0}
        aggregator = threading.Thread(
            target=self._aggregate,
            args=(outcomes, counts, total),
            name="transcode-aggregator",
            daemon=True,
        )
        aggregator.start()

        # Pages sharing a stem (001.png, 001.bmp) would write the same .webp
        claimed = set()
        try:
            with ThreadPoolExecutor(max_workers=self.num_threads) as executor:
                for image_path in image_paths:
                    target = Path(image_path).with_suffix('.webp')
                    if target in claimed or target.exists():
                        if self.logger:
                            self.logger.warning(
                                f"Keeping {Path(image_path).name}: {target.name} is already taken by another page"
                            )
                        outcomes.put(TranscodeOutcome(image_path, False))
                        continue
                    claimed.add(target)
                    executor.submit(self._work, image_path, outcomes)
        finally:
            outcomes.put(self._DONE)
            aggregator.join()

        processed, skipped = counts['processed'], counts['skipped']
        if self.logger:
            self.logger.info(f"Converted {processed}/{total} images ({skipped} kept as-is)")
        return processed, skipped

    def _work(self, image_path, outcomes):
        try:
            succeeded = transcode_image(image_path, self.quality, self.target_height, self.logger)
        except TranscodeError as e:
            if self.logger:
                self.logger.warning(f"Skipping {Path(image_path).name}: {e}")
            succeeded = False
        except Exception as e:
            if self.logger:
                self.logger.exception(f"Unexpected error converting {Path(image_path).name}: {e}")
            succeeded = False
        outcomes.put(TranscodeOutcome(image_path, succeeded))

    def _aggregate(self, outcomes, counts, total):
        last_position = None
        while True:
            outcome = outcomes.get()
            if outcome is self._DONE:
                break
            if outcome.succeeded:
                counts['processed'] += 1
            else:
                counts['skipped'] += 1

            done = counts['processed'] + counts['skipped']
            position = self.base_offset + (done * self.progress_span) // total
            if self.progress is not None and position != last_position:
                self.progress.set_position(position)
                last_position = position


def transcode_images(image_paths, quality, target_height, num_threads=0, logger=None, progress=None):
    """Convenience wrapper around TranscodeCoordinator.transcode_all."""
    coordinator = TranscodeCoordinator(quality, target_height, num_threads, logger, progress)
    return coordinator.transcode_all(image_paths)
