# src/ledger/states.py — v1
"""Item lifecycle state machine.

    pending -> resolving -> ready -> uploading -> success | error

A locator edit sends a pre-upload item back to pending with a new
generation. Title edits and removal are allowed in every pre-upload
state. Uploading items only move to a terminal state.
"""

from __future__ import annotations

from matingest.core.models import ItemStatus

TRANSITIONS: dict[str, frozenset[str]] = {
    "pending": frozenset({"resolving", "ready", "pending"}),
    "resolving": frozenset({"ready", "pending"}),
    "ready": frozenset({"uploading", "pending"}),
    "uploading": frozenset({"success", "error"}),
    "success": frozenset(),
    "error": frozenset(),
}


def can_transition(current: ItemStatus, target: ItemStatus) -> bool:
    return target in TRANSITIONS.get(current, frozenset())


def is_editable(status: ItemStatus) -> bool:
    """Title edits, locator edits and removal are pre-upload only."""
    return status in ("pending", "resolving", "ready")
