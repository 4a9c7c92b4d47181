#!/usr/bin/env python3
"""
Utility functions for comicshrink.
"""

import logging
from pathlib import Path

from .core.filesystem_utils import FileSystemUtils


def setup_logging(verbose, silent):
    """Configure logging based on verbosity settings."""
    if silent:
        log_level = logging.ERROR
    elif verbose:
        log_level = logging.DEBUG
    else:
        log_level = logging.INFO

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )
    return logging.getLogger("comicshrink")


def get_file_size_formatted(file_path_or_size):
    """Return a tuple of (human_readable_size, size_in_bytes)."""
    if isinstance(file_path_or_size, (int, float)):
        return FileSystemUtils.get_file_size_formatted(file_path_or_size)
    return FileSystemUtils.get_file_size_formatted(Path(file_path_or_size))


def log_effective_parameters(config, logger):
    """Log the effective parameters being used for conversion."""
    logger.info(
        f"Using parameters: quality={config.quality}, target_height={config.target_height}, "
        f"max_dimension={config.max_dimension}, threads={config.threads or 'auto'}, "
        f"jobs={config.jobs or 'auto'}"
    )
