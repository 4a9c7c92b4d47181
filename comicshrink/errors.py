#!/usr/bin/env python3
"""
Exception hierarchy for comicshrink.

Per-file errors (ExtractionError, RepackageError) are contained at the
pipeline boundary; per-image errors (DecodeError, EncodeError) are
contained inside the transcode coordinator and only show up as skips.
"""


class ComicShrinkError(Exception):
    """Base class for all comicshrink errors."""


class UnsupportedFormat(ComicShrinkError):
    """Path does not have a supported comic extension."""


class ConfigurationError(ComicShrinkError):
    """Invalid settings. Raised before any pipeline starts."""


class ExtractionError(ComicShrinkError):
    """A container could not be unpacked into its scratch directory."""


class RepackageError(ComicShrinkError):
    """The output archive could not be written."""


class TranscodeError(ComicShrinkError):
    """Base class for per-image failures."""


class DecodeError(TranscodeError):
    pass


class EncodeError(TranscodeError):
    pass
