"""Compress CBZ/CBR/PDF comics into WebP-based CBZ archives."""

__version__ = "1.0.0"
