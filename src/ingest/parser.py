# src/ingest/parser.py — v1
"""Batch parser — delimited link lists and file selections to PendingItems.

Parsing never raises for bad input: empty text yields an empty report,
and lines or files that cannot enter the batch (over the item cap, too
large, header row, empty URL) are returned as RejectedInput diagnostics.
"""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, Sequence

from matingest.core.blobs import LocalBlob
from matingest.core.models import FileHandle, ParseReport, RejectedInput
from matingest.ingest.normalizer import (
    guess_content_type,
    looks_like_link_field,
    normalize_file,
    normalize_link,
)

if TYPE_CHECKING:
    from matingest.config.settings import Settings

logger = logging.getLogger(__name__)

DEFAULT_MAX_LINKS = 50
DEFAULT_MAX_FILES = 20
DEFAULT_MAX_FILE_SIZE = 500 * 1024 * 1024

_HEADER_TITLES = frozenset({"title", "name", "label"})
_HEADER_URLS = frozenset({"url", "link", "href", "address"})
_QUOTES = "\"'"


def split_lines(text: str) -> list[str]:
    """Non-empty, trimmed lines of a text blob."""
    return [line.strip() for line in text.splitlines() if line.strip()]


def detect_delimiter(first_line: str) -> str:
    """Tab, then semicolon, else comma."""
    if "\t" in first_line:
        return "\t"
    if ";" in first_line:
        return ";"
    return ","


def split_fields(line: str, delimiter: str) -> list[str]:
    """Split one line, honouring double quotes, and strip quotes/whitespace."""
    row = next(csv.reader([line], delimiter=delimiter, skipinitialspace=True), [])
    fields = [f.strip().strip(_QUOTES).strip() for f in row]
    while fields and not fields[-1]:
        fields.pop()
    return fields


def pick_title_and_url(fields: Sequence[str], delimiter: str = ",") -> tuple[str, str]:
    """Decide which field is the URL. Returns (title, url).

    With two fields, whichever looks like a link is the URL; if neither or
    both do, field 0 is the title and field 1 the URL. A single field is
    the URL with no title. Extra fields are folded back into the title.
    """
    if not fields:
        return "", ""
    if len(fields) == 1:
        return "", fields[0]

    if len(fields) == 2:
        first_is_link = looks_like_link_field(fields[0])
        second_is_link = looks_like_link_field(fields[1])
        if first_is_link and not second_is_link:
            return fields[1], fields[0]
        return fields[0], fields[1]

    joiner = ", " if delimiter == "," else f"{delimiter} "
    for idx, field in enumerate(fields):
        if looks_like_link_field(field):
            rest = [f for i, f in enumerate(fields) if i != idx and f]
            return joiner.join(rest), field
    return fields[0], fields[1]


def _is_header(fields: Sequence[str]) -> bool:
    lowered = {f.lower() for f in fields}
    return bool(lowered & _HEADER_TITLES) and bool(lowered & _HEADER_URLS)


class BatchParser:
    """Parse raw batch input into PendingItems, enforcing the batch limits."""

    def __init__(self, settings: Settings | None = None) -> None:
        if settings is None:
            self._max_links = DEFAULT_MAX_LINKS
            self._max_files = DEFAULT_MAX_FILES
            self._max_file_size = DEFAULT_MAX_FILE_SIZE
        else:
            self._max_links = settings.max_batch_links
            self._max_files = settings.max_batch_files
            self._max_file_size = settings.max_file_size_bytes

    @property
    def max_links(self) -> int:
        return self._max_links

    @property
    def max_files(self) -> int:
        return self._max_files

    @property
    def max_file_size(self) -> int:
        return self._max_file_size

    def parse_links(self, text: str, existing_count: int = 0) -> ParseReport:
        """Parse a delimited text blob of `Title<delim>URL` or bare URL lines.

        Args:
            text: Raw multi-line text (pasted or read from a .csv/.txt file).
            existing_count: Items already in the batch; they count toward the cap.

        Returns:
            ParseReport with accepted items in input order and rejected lines.
        """
        report = ParseReport()
        lines = split_lines(text)
        if not lines:
            return report

        delimiter = detect_delimiter(lines[0])
        capacity = max(self._max_links - existing_count, 0)

        for position, line in enumerate(lines):
            fields = split_fields(line, delimiter)
            if position == 0 and _is_header(fields):
                report.rejected.append(
                    RejectedInput(position=position, raw=line, reason="header")
                )
                continue

            title, url = pick_title_and_url(fields, delimiter)
            if not url:
                report.rejected.append(
                    RejectedInput(
                        position=position, raw=line, reason="empty_url",
                        detail="no URL found on line",
                    )
                )
                continue

            if len(report.items) >= capacity:
                report.rejected.append(
                    RejectedInput(
                        position=position, raw=line, reason="over_limit",
                        detail=f"maximum {self._max_links} links per batch",
                    )
                )
                continue

            report.items.append(normalize_link(url, title))

        if report.rejected:
            logger.warning(
                "Link parse: accepted %d, rejected %d line(s)",
                report.accepted_count, report.rejected_count,
            )
        else:
            logger.info("Link parse: accepted %d line(s)", report.accepted_count)
        return report

    def parse_files(
        self,
        files: Iterable[Path | FileHandle],
        existing_count: int = 0,
    ) -> ParseReport:
        """Turn a file selection into pending file items.

        Missing or oversized files are rejected; files beyond the item cap
        are rejected. Rejected files never consume capacity.
        """
        report = ParseReport()
        capacity = max(self._max_files - existing_count, 0)

        for position, entry in enumerate(files):
            try:
                handle = entry if isinstance(entry, FileHandle) else file_handle(entry)
            except OSError as exc:
                report.rejected.append(
                    RejectedInput(
                        position=position, raw=str(entry), reason="unreadable",
                        detail=str(exc),
                    )
                )
                continue

            if handle.size_bytes > self._max_file_size:
                report.rejected.append(
                    RejectedInput(
                        position=position, raw=handle.filename, reason="too_large",
                        detail=f"{handle.size_bytes} bytes exceeds {self._max_file_size}",
                    )
                )
                _release_temp(handle)
                continue

            if len(report.items) >= capacity:
                report.rejected.append(
                    RejectedInput(
                        position=position, raw=handle.filename, reason="over_limit",
                        detail=f"maximum {self._max_files} files per batch",
                    )
                )
                _release_temp(handle)
                continue

            report.items.append(normalize_file(handle))

        if report.rejected:
            logger.warning(
                "File parse: accepted %d, rejected %d file(s)",
                report.accepted_count, report.rejected_count,
            )
        else:
            logger.info("File parse: accepted %d file(s)", report.accepted_count)
        return report


def file_handle(path: Path) -> FileHandle:
    """Build a FileHandle for a file on disk. Raises OSError if unreadable."""
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Not a file: {path}")
    return FileHandle(
        path=path.resolve(),
        filename=path.name,
        size_bytes=path.stat().st_size,
        content_type=guess_content_type(path.name),
    )


def file_handle_from_bytes(filename: str, data: bytes) -> FileHandle:
    """Spill in-memory file content to an owned temp file."""
    content_type = guess_content_type(filename)
    blob = LocalBlob.from_bytes(
        data, content_type=content_type, filename=filename, suffix=Path(filename).suffix,
    )
    return FileHandle(
        path=blob.path,
        filename=filename,
        size_bytes=len(data),
        content_type=content_type,
        temp=blob,
    )


def _release_temp(handle: FileHandle) -> None:
    if handle.temp is not None:
        handle.temp.release()
