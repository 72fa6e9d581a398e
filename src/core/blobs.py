# src/core/blobs.py — v1
"""Locally-owned binary blobs (generated thumbnails, materialized uploads).

A LocalBlob lives in a temporary file and belongs to exactly one item.
The ledger releases it when the item is discarded; release() removes the
backing file and is a no-op afterwards.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)


class LocalBlob:
    """A temp file holding bytes owned by a single pending item."""

    def __init__(
        self,
        path: Path,
        content_type: str,
        filename: str | None = None,
        delete_on_release: bool = True,
    ) -> None:
        self._path = Path(path)
        self.content_type = content_type
        self.filename = filename or self._path.name
        self._delete_on_release = delete_on_release
        self._released = False

    @classmethod
    def from_bytes(
        cls,
        data: bytes,
        content_type: str,
        filename: str,
        suffix: str = "",
    ) -> LocalBlob:
        """Spill bytes into a new temp file and take ownership of it."""
        fd, name = tempfile.mkstemp(prefix="matingest-", suffix=suffix)
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
        return cls(Path(name), content_type=content_type, filename=filename)

    @property
    def path(self) -> Path:
        return self._path

    @property
    def released(self) -> bool:
        return self._released

    @property
    def size_bytes(self) -> int:
        if self._released:
            return 0
        return self._path.stat().st_size

    def read_bytes(self) -> bytes:
        if self._released:
            raise RuntimeError(f"Blob {self.filename!r} was already released")
        return self._path.read_bytes()

    def release(self) -> bool:
        """Free the backing file. Returns False if already released."""
        if self._released:
            return False
        self._released = True
        if self._delete_on_release:
            try:
                self._path.unlink(missing_ok=True)
            except OSError:
                logger.warning("Could not remove blob file %s", self._path, exc_info=True)
        logger.debug("Released blob %s", self.filename)
        return True

    def __repr__(self) -> str:
        state = "released" if self._released else "live"
        return f"LocalBlob({self.filename!r}, {self.content_type!r}, {state})"
