#!/usr/bin/env python3
"""
Run configuration and the optional global settings file.
"""

import json
import sys
from dataclasses import dataclass
from pathlib import Path

from .errors import ConfigurationError

DEFAULT_QUALITY = 90
DEFAULT_TARGET_HEIGHT = 1800
DEFAULT_MAX_DIMENSION = 1200

# Global settings management
DEFAULT_CONFIG_DIR = Path.home() / ".comicshrink"
DEFAULT_SETTINGS_FILE = DEFAULT_CONFIG_DIR / "settings.json"


@dataclass(frozen=True)
class PipelineConfig:
    """Settings shared by every per-file pipeline of a run."""
    quality: int = DEFAULT_QUALITY
    target_height: int = DEFAULT_TARGET_HEIGHT
    # Accepted and validated; does not change the output
    max_dimension: int = DEFAULT_MAX_DIMENSION
    threads: int = 0
    jobs: int = 0

    def validate(self):
        """Raise ConfigurationError for any out-of-range value."""
        if not isinstance(self.quality, int) or not 1 <= self.quality <= 100:
            raise ConfigurationError(f"Quality must be between 1 and 100, got {self.quality}")
        if not isinstance(self.target_height, int) or self.target_height <= 0:
            raise ConfigurationError(f"Target height must be a positive integer, got {self.target_height}")
        if not isinstance(self.max_dimension, int) or self.max_dimension <= 0:
            raise ConfigurationError(f"Max dimension must be a positive integer, got {self.max_dimension}")
        if self.threads < 0:
            raise ConfigurationError(f"Thread count cannot be negative, got {self.threads}")
        if self.jobs < 0:
            raise ConfigurationError(f"Job count cannot be negative, got {self.jobs}")
        return self


def load_global_settings(settings_file=None):
    """Load global settings from JSON file.

    Returns:
        tuple: (settings dict, error message or None)
    """
    settings_file = Path(settings_file) if settings_file else DEFAULT_SETTINGS_FILE
    if settings_file.exists():
        try:
            with open(settings_file, encoding="utf-8") as f:
                settings = json.load(f)
        except json.JSONDecodeError as e:
            error_msg = f"Invalid JSON in settings file: {e}"
            print(f"Warning: {error_msg}", file=sys.stderr)
            return {}, error_msg
        except OSError as e:
            error_msg = f"Error reading settings file: {e}"
            print(f"Warning: {error_msg}", file=sys.stderr)
            return {}, error_msg
        if not isinstance(settings, dict):
            error_msg = "Settings file must contain a JSON object"
            print(f"Warning: {error_msg}", file=sys.stderr)
            return {}, error_msg
        return settings, None
    return {}, None


def apply_global_settings(args, settings):
    """Apply global settings, but don't override explicit args."""
    if not getattr(args, "verbose", False) and settings.get("verbose", False):
        args.verbose = True
    if not getattr(args, "silent", False) and settings.get("silent", False):
        args.silent = True
    for key in ("threads", "jobs"):
        if getattr(args, key, None) in (None, 0) and key in settings:
            setattr(args, key, settings[key])
    return args
