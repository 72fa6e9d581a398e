# src/ingest/sample.py — v1
"""Companion sample file documenting the two-column link format."""

from __future__ import annotations

from pathlib import Path

SAMPLE_FILENAME = "batch-upload-sample.csv"

SAMPLE_CSV = """Title,URL
Introduction to Python,https://www.youtube.com/watch?v=dQw4w9WgXcQ
Course Materials Folder,https://drive.google.com/drive/folders/1234567890
Week 1 Lecture Notes,https://docs.google.com/document/d/abc123
"""


def write_sample_csv(path: Path | None = None) -> Path:
    """Write the sample CSV and return its path."""
    target = Path(path) if path is not None else Path(SAMPLE_FILENAME)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(SAMPLE_CSV, encoding="utf-8")
    return target
