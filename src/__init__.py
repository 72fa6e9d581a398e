# src/__init__.py — v1
"""matingest: batch material ingestion (parse, resolve, upload)."""

from matingest.version import __version__

__all__ = ["__version__"]
