# src/ingest/material_types.py — v1
"""Material type inference from file extensions and URLs."""

from __future__ import annotations

from pathlib import PurePosixPath
from urllib.parse import urlparse

from matingest.core.models import MaterialType

EXTENSION_TYPES: dict[str, MaterialType] = {
    # Documents
    "pdf": "pdf",
    "doc": "docs",
    "docx": "docs",
    "txt": "docs",
    "rtf": "docs",
    # Presentations
    "ppt": "ppt",
    "pptx": "ppt",
    # Spreadsheets
    "xls": "excel",
    "xlsx": "excel",
    "csv": "excel",
    # Images
    "jpg": "image",
    "jpeg": "image",
    "png": "image",
    "gif": "image",
    "svg": "image",
    "webp": "image",
    "bmp": "image",
    # Videos
    "mp4": "video",
    "avi": "video",
    "mov": "video",
    "wmv": "video",
    "flv": "video",
    "webm": "video",
    "mkv": "video",
    "m4v": "video",
}

_ARTICLE_HOST_MARKERS = ("wikipedia.org", "medium.com", "blog")


def type_from_extension(extension: str | None) -> MaterialType:
    if not extension:
        return "other"
    return EXTENSION_TYPES.get(extension.lower().lstrip("."), "other")


def type_from_filename(filename: str) -> MaterialType:
    suffix = PurePosixPath(filename).suffix
    return type_from_extension(suffix)


def type_from_url(url: str) -> MaterialType:
    """Infer the material type of an absolute URL.

    Platform hosts win over the path extension.
    """
    parsed = urlparse(url)
    host = (parsed.hostname or "").lower()
    if not host:
        return type_from_filename(url)

    if "youtube.com" in host or "youtu.be" in host:
        return "youtube"
    if "drive.google.com" in host or "docs.google.com" in host:
        return "gdrive"
    if "vimeo.com" in host:
        return "video"
    if any(marker in host for marker in _ARTICLE_HOST_MARKERS):
        return "article"

    return type_from_filename(parsed.path.lower())
