#!/usr/bin/env python3
"""
File system and size helpers for comicshrink.
"""

from pathlib import Path


class FileSystemUtils:
    """Centralized file size operations."""

    @staticmethod
    def get_file_size_formatted(file_path_or_size):
        """
        Return a tuple of (human_readable_size, size_in_bytes).
        If given a path, we take the file size from disk;
        if given an int, we interpret it as raw bytes.
        """
        if isinstance(file_path_or_size, (int, float)):
            size_bytes = file_path_or_size
        else:
            size_bytes = Path(file_path_or_size).stat().st_size

        units = ['B', 'KB', 'MB', 'GB', 'TB']
        size = float(size_bytes)
        idx = 0

        while size >= 1024 and idx < len(units) - 1:
            size /= 1024
            idx += 1

        return f"{size:.2f} {units[idx]}", size_bytes

    @staticmethod
    def calculate_compression_stats(original_size, new_size):
        """Calculate compression statistics.

        Savings are clamped at zero when the new file is larger, so a
        grown file reads as 0% saved with ``increased`` set.
        """
        if original_size <= 0:
            return {
                'savings_bytes': 0,
                'savings_percentage': 0.0,
                'compression_ratio': 1.0,
                'increased': False
            }

        savings_bytes = original_size - new_size
        savings_percentage = max(0.0, (savings_bytes / original_size) * 100)
        compression_ratio = new_size / original_size
        increased = savings_bytes < 0

        return {
            'savings_bytes': savings_bytes,
            'savings_percentage': savings_percentage,
            'compression_ratio': compression_ratio,
            'increased': increased
        }
