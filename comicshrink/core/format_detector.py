#!/usr/bin/env python3
"""
Comic container classification and discovery.
"""

import os
import enum
from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar

from ..errors import UnsupportedFormat


class ComicKind(enum.Enum):
    CBZ = "cbz"
    CBR = "cbr"
    PDF = "pdf"


@dataclass(frozen=True)
class ComicContainer:
    """A comic file together with the extraction strategy its extension selects."""
    path: Path
    kind: ComicKind


class FormatDetector:
    """Extension-based classification of comic files."""

    KIND_BY_EXTENSION: ClassVar[dict[str, ComicKind]] = {
        '.cbz': ComicKind.CBZ,
        '.cbr': ComicKind.CBR,
        '.pdf': ComicKind.PDF,
    }

    # Marker embedded in every output name, see pipeline.generate_output_path
    OUTPUT_MARKER = " optimized_webp_q"

    @classmethod
    def classify(cls, path):
        """Classify a path by its lowercased extension.

        Raises:
            UnsupportedFormat: for any other extension, directories included
        """
        path = Path(path)
        kind = cls.KIND_BY_EXTENSION.get(path.suffix.lower())
        if kind is None:
            raise UnsupportedFormat(
                f"Unsupported file type: {path.name}. Only CBZ, CBR and PDF files are supported."
            )
        return ComicContainer(path=path, kind=kind)

    @classmethod
    def is_supported(cls, path):
        return Path(path).suffix.lower() in cls.KIND_BY_EXTENSION

    @classmethod
    def is_generated_output(cls, path):
        """Check if a file looks like the output of a previous run."""
        return cls.OUTPUT_MARKER in Path(path).stem

    @classmethod
    def find_comic_files(cls, directory, logger=None):
        """Recursively find all supported comic files under directory."""
        containers = []

        for root, _, files in os.walk(directory):
            for file in files:
                file_path = Path(root) / file
                if not file_path.is_file():
                    continue
                try:
                    container = cls.classify(file_path)
                except UnsupportedFormat:
                    continue
                if cls.is_generated_output(file_path):
                    if logger:
                        logger.debug(f"Skipping previous output: {file_path}")
                    continue
                containers.append(container)

        return sorted(containers, key=lambda c: str(c.path))


def classify(path):
    """Classify a single path. See FormatDetector.classify."""
    return FormatDetector.classify(path)


def find_comic_files(directory, logger=None):
    """Find all CBZ/CBR/PDF files below directory."""
    return FormatDetector.find_comic_files(directory, logger)
