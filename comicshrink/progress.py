#!/usr/bin/env python3
"""
Progress reporting for comicshrink.

Each comic gets a FileProgress whose position runs from 0 to 100;
the ProgressReporter counts completed files across the whole run.
Both render through the logger.
"""

import threading
from pathlib import Path

# Positions reported by the pipeline for each comic
EXTRACTION_STARTED = 10
EXTRACTION_DONE = 30
TRANSCODE_SPAN = 50
TRANSCODE_DONE = EXTRACTION_DONE + TRANSCODE_SPAN
PACKAGING_DONE = 100


class FileProgress:
    """Position sink for a single comic. Positions never move backwards."""

    def __init__(self, name, logger=None, on_finished=None):
        self.name = name
        self.logger = logger
        self.position = 0
        self.failed = False
        self.message = None
        self._on_finished = on_finished
        self._lock = threading.Lock()

    def set_position(self, position):
        position = max(0, min(100, int(position)))
        with self._lock:
            if position <= self.position:
                return
            self.position = position
        if self.logger:
            self.logger.debug(f"{self.name}: {position}%")

    def finish(self, message="Complete"):
        self.set_position(PACKAGING_DONE)
        self.message = message
        if self.logger:
            self.logger.info(f"✓ {self.name}: {message}")
        if self._on_finished:
            self._on_finished(self)

    def fail(self, message):
        self.failed = True
        self.message = f"Failed: {message}"
        if self.logger:
            self.logger.error(f"✗ {self.name}: {self.message}")
        if self._on_finished:
            self._on_finished(self)


class ProgressReporter:
    """Hands out FileProgress sinks and tracks how many comics are done."""

    def __init__(self, total_files, logger=None):
        self.total_files = total_files
        self.logger = logger
        self.completed = 0
        self.failed = 0
        self._lock = threading.Lock()

    def for_file(self, path):
        return FileProgress(Path(path).name, self.logger, on_finished=self._file_finished)

    def _file_finished(self, file_progress):
        with self._lock:
            self.completed += 1
            if file_progress.failed:
                self.failed += 1
            completed = self.completed
        if self.logger:
            self.logger.info(f"[{completed}/{self.total_files}] files done")
