# src/ingest/normalizer.py — v1
"""Source normalizer — turn one raw input into a canonical PendingItem.

Pure functions only: URL sniffing, source-type classification, cloud and
video identifier extraction, and heuristic titles. No network or disk I/O
happens here; the detected type is computed once and resolvers switch on
it instead of re-sniffing the URL.
"""

from __future__ import annotations

import mimetypes
import re
from pathlib import PurePosixPath
from urllib.parse import parse_qs, urlparse

from matingest.core.models import (
    LOADING_TITLE,
    DetectedType,
    FileHandle,
    FileSource,
    LinkSource,
    PendingItem,
)
from matingest.ingest.material_types import type_from_filename, type_from_url

DEFAULT_SCHEME = "https"

YOUTUBE_HOSTS = frozenset({"www.youtube.com", "youtube.com", "m.youtube.com", "youtu.be"})
GDRIVE_HOST_MARKERS = ("drive.google.com", "docs.google.com")

# Extensions that mark a plain link as a downloadable document.
DOCUMENT_EXTENSIONS = frozenset(
    {".pdf", ".doc", ".docx", ".ppt", ".pptx", ".xls", ".xlsx", ".odt", ".rtf", ".txt", ".epub"}
)

_DOMAIN_LIKE_RE = re.compile(r"^[\w-]+(\.[\w-]+)+(/.*)?$")
_LEADING_JUNK_RE = re.compile(r"^[@\"']+")
_TRAILING_JUNK_RE = re.compile(r"[\"']+$")
_YOUTUBE_ID_RE = re.compile(r"^.*(youtu\.be/|v/|u/\w/|embed/|watch\?v=|&v=)([^#&?]*).*")
_FOLDER_ID_RE = re.compile(r"/folders/([a-zA-Z0-9_-]+)")

# Ordered: the first pattern that matches wins.
DOCUMENT_ID_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"/file/d/([a-zA-Z0-9_-]+)"),
    re.compile(r"/document/d/([a-zA-Z0-9_-]+)"),
    re.compile(r"/spreadsheets/d/([a-zA-Z0-9_-]+)"),
    re.compile(r"/presentation/d/([a-zA-Z0-9_-]+)"),
    re.compile(r"[?&]id=([a-zA-Z0-9_-]+)"),
)

_FILE_EXTENSION_RE = re.compile(r"\.[^/.]+$")
_SEPARATOR_RE = re.compile(r"[_-]")
_WHITESPACE_RE = re.compile(r"\s+")


# === URL sniffing ===


def is_absolute_url(text: str) -> bool:
    parsed = urlparse(text)
    return bool(parsed.scheme) and bool(parsed.netloc)


def looks_like_url(text: str) -> bool:
    """True for absolute URLs and scheme-less domain-like strings."""
    text = text.strip()
    if not text:
        return False
    return is_absolute_url(text) or bool(_DOMAIN_LIKE_RE.match(text))


def looks_like_link_field(text: str) -> bool:
    """Heuristic used to pick the URL column in a two-field line."""
    lowered = text.lower()
    return (
        looks_like_url(text)
        or "http" in lowered
        or "drive.google" in lowered
        or "youtu" in lowered
    )


def normalize_url(raw: str) -> str:
    """Strip stray quotes/@ and prepend a default scheme when missing."""
    trimmed = _TRAILING_JUNK_RE.sub("", _LEADING_JUNK_RE.sub("", raw.strip()))
    if not is_absolute_url(trimmed):
        return f"{DEFAULT_SCHEME}://{trimmed}"
    return trimmed


def _host(url: str) -> str:
    return (urlparse(url).hostname or "").lower()


def is_youtube_url(url: str) -> bool:
    return _host(url) in YOUTUBE_HOSTS


def is_gdrive_url(url: str) -> bool:
    return any(marker in url for marker in GDRIVE_HOST_MARKERS)


# === Identifier extraction ===


def extract_video_id(url: str) -> str | None:
    """Return the 11-character YouTube video id, or None."""
    if not is_youtube_url(url):
        return None
    match = _YOUTUBE_ID_RE.match(url)
    if match and len(match.group(2)) == 11:
        return match.group(2)
    return None


def extract_folder_id(url: str) -> str | None:
    match = _FOLDER_ID_RE.search(url)
    return match.group(1) if match else None


def extract_document_id(url: str) -> str | None:
    """Return the Drive/Docs file id using the ordered pattern list."""
    for pattern in DOCUMENT_ID_PATTERNS:
        match = pattern.search(url)
        if match:
            return match.group(1)
    return None


# === Classification ===


def classify_url(url: str) -> DetectedType:
    """Classify a normalized URL into its source type."""
    if is_youtube_url(url):
        return "video-embed"
    if is_gdrive_url(url):
        if extract_folder_id(url) is not None:
            return "cloud-folder"
        if extract_document_id(url) is not None:
            return "cloud-document"
    if PurePosixPath(urlparse(url).path.lower()).suffix in DOCUMENT_EXTENSIONS:
        return "generic-document"
    return "generic-link"


# === Titles ===


def clean_title(title: str) -> str:
    """Separators to spaces, collapse whitespace, title-case each word."""
    collapsed = _WHITESPACE_RE.sub(" ", _SEPARATOR_RE.sub(" ", title)).strip()
    return " ".join(w[:1].upper() + w[1:].lower() for w in collapsed.split(" ")).strip()


def title_from_filename(filename: str) -> str:
    return clean_title(_FILE_EXTENSION_RE.sub("", filename))


def title_from_url(url: str) -> str:
    """Best heuristic title for a link before any lookup."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return "Material"
    host = (parsed.hostname or "").lower()
    if not host:
        return "Material"

    if "youtube.com" in host:
        video_id = parse_qs(parsed.query).get("v", [""])[0]
        return f"YouTube Video - {video_id}" if video_id else "YouTube Video"
    if "youtu.be" in host:
        video_id = parsed.path.lstrip("/")
        return f"YouTube Video - {video_id}" if video_id else "YouTube Video"
    if "drive.google.com" in host:
        return "Google Drive Document"

    filename = parsed.path.split("/")[-1]
    if "." in filename:
        return title_from_filename(filename)
    return clean_title(host)


# === Item construction ===


def normalize_link(url: str, title: str = "") -> PendingItem:
    """Build a pending link item. An empty title schedules an authoritative lookup."""
    normalized = normalize_url(url)
    fallback = title_from_url(normalized)
    title = title.strip()
    return PendingItem(
        source=LinkSource(url=normalized, detected_type=classify_url(normalized)),
        title=title or LOADING_TITLE,
        fallback_title=title or fallback,
        title_origin="input" if title else "heuristic",
        material_type=type_from_url(normalized),
    )


def guess_content_type(filename: str) -> str:
    content_type, _ = mimetypes.guess_type(filename)
    return content_type or "application/octet-stream"


def normalize_file(handle: FileHandle) -> PendingItem:
    """Build a pending file item; the title comes from the file name."""
    title = title_from_filename(handle.filename)
    return PendingItem(
        source=FileSource(handle=handle),
        title=title,
        fallback_title=title,
        material_type=type_from_filename(handle.filename),
    )
