"""Fold per-file import outcomes into one outcome per record type.

Counters, duration and detail lists are additive. ``eps`` and ``rps`` use a
pairwise running mean: the first outcome is taken as-is and each later one
is averaged with the accumulator. That mean is neither volume-weighted nor
order-independent; it is kept for compatibility with earlier result logs.
"""

from __future__ import annotations

from typing import Iterable

from core.types import ImportOutcome


def summarize_outcomes(outcomes: Iterable[ImportOutcome]) -> ImportOutcome:
    """Fold a sequence of outcomes into one aggregate outcome.

    Args:
        outcomes: Per-batch or per-file outcomes, in import order.

    Returns:
        Aggregate outcome; the zero outcome for empty input.
    """
    summary = ImportOutcome.empty()
    folded_any = False
    for outcome in outcomes:
        summary = _fold(summary, outcome, first=not folded_any)
        folded_any = True
    return summary


def _fold(summary: ImportOutcome, outcome: ImportOutcome, first: bool) -> ImportOutcome:
    """Combine the accumulator with one more outcome."""
    return ImportOutcome(
        record_type=outcome.record_type or summary.record_type,
        total=summary.total + outcome.total,
        success=summary.success + outcome.success,
        failed=summary.failed + outcome.failed,
        skipped=summary.skipped + outcome.skipped,
        duplicates=summary.duplicates + outcome.duplicates,
        batches=summary.batches + outcome.batches,
        requests=summary.requests + outcome.requests,
        retries=summary.retries + outcome.retries,
        duration=summary.duration + outcome.duration,
        eps=outcome.eps if first else (summary.eps + outcome.eps) / 2,
        rps=outcome.rps if first else (summary.rps + outcome.rps) / 2,
        errors=summary.errors + tuple(outcome.errors),
        responses=summary.responses + tuple(outcome.responses),
    )
