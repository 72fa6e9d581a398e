# src/upload/aggregator.py — v1
"""Batch result aggregation."""

from __future__ import annotations

from typing import Sequence

from matingest.core.models import BatchResult, ItemOutcome


def aggregate(outcomes: Sequence[ItemOutcome], duration_seconds: float = 0.0) -> BatchResult:
    """Fold per-item outcomes into a BatchResult, ordered by submission index."""
    ordered = sorted(outcomes, key=lambda o: o.index)
    succeeded = sum(1 for o in ordered if o.success)
    return BatchResult(
        results=ordered,
        total_requested=len(ordered),
        total_succeeded=succeeded,
        total_failed=len(ordered) - succeeded,
        duration_seconds=round(duration_seconds, 3),
    )


def summarize(result: BatchResult) -> str:
    """One-line human summary, e.g. '3 requested: 2 succeeded, 1 failed'."""
    return (
        f"{result.total_requested} requested: {result.total_succeeded} succeeded, "
        f"{result.total_failed} failed ({result.duration_seconds:.1f}s)"
    )
