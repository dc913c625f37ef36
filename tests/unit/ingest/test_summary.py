"""Unit tests for outcome summarization."""

from __future__ import annotations

from dataclasses import replace

from core.types import ImportOutcome
from ingest.summary import summarize_outcomes

_OUTCOME = ImportOutcome(
    record_type="event",
    total=10,
    success=8,
    failed=1,
    skipped=1,
    duplicates=0,
    batches=2,
    requests=3,
    retries=1,
    duration=1500,
    eps=100.0,
    rps=4.0,
    errors=({"error": "bad"},),
    responses=({"status_code": 200},),
)


def test_summarize_empty_returns_zero_outcome() -> None:
    """Folding nothing should yield the zero outcome."""
    assert summarize_outcomes([]) == ImportOutcome.empty()


def test_summarize_single_outcome_is_identity() -> None:
    """Folding one outcome should return an equal outcome."""
    assert summarize_outcomes([_OUTCOME]) == _OUTCOME


def test_summarize_adds_counters_and_concatenates_details() -> None:
    """Counters should sum and detail lists concatenate in order."""
    second = replace(
        _OUTCOME,
        total=5,
        success=5,
        failed=0,
        duration=500,
        errors=({"error": "worse"},),
        responses=({"status_code": 400},),
    )

    summary = summarize_outcomes([_OUTCOME, second])

    assert (summary.total, summary.success, summary.failed) == (15, 13, 1)
    assert (summary.batches, summary.requests, summary.retries, summary.duration) == (4, 6, 2, 2000)
    assert summary.errors == ({"error": "bad"}, {"error": "worse"})
    assert summary.responses == ({"status_code": 200}, {"status_code": 400})


def test_summarize_rates_use_pairwise_running_mean() -> None:
    """Rates keep the order-sensitive pairwise mean, not a weighted average."""
    outcomes = [replace(_OUTCOME, eps=eps) for eps in (100.0, 200.0, 400.0)]

    forward = summarize_outcomes(outcomes)
    backward = summarize_outcomes(list(reversed(outcomes)))

    assert forward.eps == 275.0
    assert backward.eps == 200.0


def test_summarize_record_type_last_writer_wins() -> None:
    """The last non-empty record type should label the summary."""
    summary = summarize_outcomes([_OUTCOME, replace(_OUTCOME, record_type="user")])

    assert summary.record_type == "user"
