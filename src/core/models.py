# src/core/models.py — v1
"""Shared Pydantic domain models used across modules.

Other modules import these types from here rather than redefining them.
"""

from __future__ import annotations

import uuid
from pathlib import Path
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from matingest.core.blobs import LocalBlob

# Title shown while an authoritative title lookup is still in flight.
LOADING_TITLE = "Loading title..."

DetectedType = Literal[
    "video-embed",
    "cloud-document",
    "cloud-folder",
    "generic-document",
    "generic-link",
]

MaterialType = Literal[
    "youtube",
    "gdrive",
    "pdf",
    "docs",
    "ppt",
    "excel",
    "image",
    "video",
    "article",
    "other",
]

ItemStatus = Literal["pending", "resolving", "ready", "uploading", "success", "error"]

# Where the current title came from; user and input titles survive a URL edit.
TitleOrigin = Literal["input", "heuristic", "lookup", "user"]

TERMINAL_STATUSES: frozenset[str] = frozenset({"success", "error"})
PRE_UPLOAD_STATUSES: frozenset[str] = frozenset({"pending", "resolving", "ready"})


def new_item_id() -> str:
    """Opaque item identity, unique within a batch."""
    return uuid.uuid4().hex[:12]


# === SOURCES ===


class FileHandle(BaseModel):
    """A local file selected for upload.

    When the caller hands over raw bytes instead of a path, the bytes are
    spilled to a temp file and `temp` owns it.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    path: Path
    filename: str
    size_bytes: int
    content_type: str = "application/octet-stream"
    temp: LocalBlob | None = None


class FileSource(BaseModel):
    kind: Literal["file"] = "file"
    handle: FileHandle


class LinkSource(BaseModel):
    kind: Literal["link"] = "link"
    url: str
    detected_type: DetectedType


Source = Annotated[FileSource | LinkSource, Field(discriminator="kind")]


# === PREVIEW ===


class PreviewAsset(BaseModel):
    """A thumbnail: either an absolute URL or a locally-owned blob, never both."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    url: str | None = None
    blob: LocalBlob | None = None

    @model_validator(mode="after")
    def exactly_one_reference(self) -> PreviewAsset:
        if (self.url is None) == (self.blob is None):
            raise ValueError("PreviewAsset needs exactly one of url or blob")
        return self

    @property
    def is_local(self) -> bool:
        return self.blob is not None


# === ITEMS ===


class PendingItem(BaseModel):
    """The per-item work record tracked through the ledger state machine."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: str = Field(default_factory=new_item_id)
    source: Source
    title: str
    fallback_title: str
    title_origin: TitleOrigin = "heuristic"
    material_type: MaterialType = "other"
    preview: PreviewAsset | None = None
    page_count: int | None = Field(default=None, gt=0)
    status: ItemStatus = "pending"
    title_loading: bool = False
    preview_loading: bool = False
    generation: int = 0
    error: str | None = None
    result_id: str | None = None

    @property
    def is_file(self) -> bool:
        return self.source.kind == "file"

    @property
    def detected_type(self) -> DetectedType | None:
        if isinstance(self.source, LinkSource):
            return self.source.detected_type
        return None

    @property
    def locator(self) -> str:
        """Absolute URL for links, file name for files."""
        if isinstance(self.source, LinkSource):
            return self.source.url
        return self.source.handle.filename

    @property
    def needs_title(self) -> bool:
        """True while the title is the loading placeholder. A user edit is never a placeholder."""
        return self.title == LOADING_TITLE and self.title_origin != "user"

    @property
    def has_usable_title(self) -> bool:
        return bool(self.title.strip()) and not self.needs_title

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def owned_blobs(self) -> list[LocalBlob]:
        """Every blob this item is responsible for releasing."""
        blobs: list[LocalBlob] = []
        if self.preview is not None and self.preview.blob is not None:
            blobs.append(self.preview.blob)
        if isinstance(self.source, FileSource) and self.source.handle.temp is not None:
            blobs.append(self.source.handle.temp)
        return blobs


class BatchDefaults(BaseModel):
    """Batch-wide values applied to every item at submission time."""

    target_course_id: str | None = None
    folder_id: str | None = None
    visibility: Literal["public", "private"] = "public"
    restriction: Literal["downloadable", "readonly"] = "downloadable"


class Batch(BaseModel):
    """Ordered items plus batch defaults. Has no identity and is never stored."""

    items: list[PendingItem] = Field(default_factory=list)
    defaults: BatchDefaults = Field(default_factory=BatchDefaults)


# === PARSING ===


class RejectedInput(BaseModel):
    """One line or file excluded from the batch, with the reason."""

    position: int
    raw: str
    reason: Literal["over_limit", "too_large", "empty_url", "header", "unreadable"]
    detail: str = ""


class ParseReport(BaseModel):
    """Outcome of one parse call: accepted items and rejected inputs."""

    items: list[PendingItem] = Field(default_factory=list)
    rejected: list[RejectedInput] = Field(default_factory=list)

    @property
    def accepted_count(self) -> int:
        return len(self.items)

    @property
    def rejected_count(self) -> int:
        return len(self.rejected)


# === SUBMISSION ===


class CreationRequest(BaseModel):
    """Everything the creation endpoint needs to create one material."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    title: str
    material_type: MaterialType
    resource_address: str | None = None
    file: FileHandle | None = None
    preview_url: str | None = None
    preview_blob: LocalBlob | None = None
    page_count: int | None = None
    target_course_id: str | None = None
    folder_id: str | None = None
    visibility: str = "public"
    restriction: str = "downloadable"


class ItemOutcome(BaseModel):
    """Result of one submission attempt, reported in submission order."""

    index: int
    item_id: str
    title: str
    success: bool
    result_id: str | None = None
    error: str | None = None


class BatchResult(BaseModel):
    """Summary of one Upload Executor run."""

    results: list[ItemOutcome] = Field(default_factory=list)
    total_requested: int = 0
    total_succeeded: int = 0
    total_failed: int = 0
    duration_seconds: float = 0.0

    @property
    def all_succeeded(self) -> bool:
        return self.total_failed == 0

    @property
    def failures(self) -> list[ItemOutcome]:
        return [r for r in self.results if not r.success]
