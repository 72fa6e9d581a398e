# src/core/errors.py — v1
"""Exception hierarchy for the ingestion pipeline.

Parse rejections and resolution degradations are never raised to the
caller: they are recorded as data (RejectedInput, fallback values).
Only precondition violations escalate out of the pipeline.
"""

from __future__ import annotations


class MatingestError(Exception):
    """Base class for all pipeline errors."""


class UnknownItemError(MatingestError, KeyError):
    """Raised when an item id is not present in the ledger."""

    def __init__(self, item_id: str) -> None:
        self.item_id = item_id
        super().__init__(f"Unknown item: {item_id!r}")

    def __str__(self) -> str:
        return self.args[0]


class InvalidTransitionError(MatingestError):
    """Raised when an item is asked to move to a state it cannot reach."""

    def __init__(self, item_id: str, current: str, target: str) -> None:
        self.item_id = item_id
        self.current = current
        self.target = target
        super().__init__(
            f"Item {item_id!r} cannot move from {current!r} to {target!r}"
        )


class PreconditionViolation(MatingestError):
    """The batch is not eligible for upload. Raised before any submission."""

    def __init__(self, problems: list[str]) -> None:
        self.problems = list(problems)
        super().__init__("Batch not ready for upload: " + "; ".join(self.problems))


class LookupFailed(MatingestError):
    """A metadata collaborator (Drive, oEmbed) could not answer."""

    def __init__(self, source: str, reason: str) -> None:
        self.source = source
        self.reason = reason
        super().__init__(f"{source} lookup failed: {reason}")


class CreationFailed(MatingestError):
    """The creation endpoint rejected one item."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(
            message if status_code is None else f"HTTP {status_code}: {message}"
        )
