from __future__ import annotations

import httpx
import pytest
from hypothesis import given, strategies as st

from overload.metrics import ErrorType, Outcome, OutcomeClass, classify_outcome, summarize

_outcomes = st.one_of(
    st.builds(
        Outcome,
        duration=st.floats(min_value=0.0, max_value=5.0),
        status_code=st.integers(min_value=100, max_value=599),
        bytes_read=st.integers(min_value=0, max_value=1_000_000),
    ),
    st.sampled_from(list(ErrorType)).map(lambda err: Outcome.from_error(httpx.ConnectError("refused"), err)),
)


def test_classification_policy() -> None:
    assert classify_outcome(Outcome(0.1, 200, 10)) is OutcomeClass.SUCCESS
    assert classify_outcome(Outcome(0.1, 302, 0)) is OutcomeClass.SUCCESS
    assert classify_outcome(Outcome(0.1, 400, 10)) is OutcomeClass.FAILURE
    assert classify_outcome(Outcome(0.1, 503, 10)) is OutcomeClass.FAILURE
    err = Outcome.from_error(httpx.ReadError("reset"), ErrorType.READ)
    assert classify_outcome(err) is OutcomeClass.UNAVAILABLE
    assert (err.duration, err.status_code, err.bytes_read) == (0.0, 0, 0)


@given(outcomes=st.lists(_outcomes, max_size=60), wall=st.floats(min_value=0.0, max_value=100.0))
def test_counts_always_add_up(outcomes: list[Outcome], wall: float) -> None:
    summary = summarize(outcomes, wall)
    assert summary.total_requests == len(outcomes)
    assert summary.successes + summary.failures + summary.unavailable == len(outcomes)
    assert summary.requests_per_second >= 0.0
    if summary.successes == 0:
        assert summary.average_duration == 0.0
        assert summary.total_bytes == 0

    reordered = summarize(list(reversed(outcomes)), wall)
    assert (reordered.successes, reordered.failures, reordered.unavailable) == (
        summary.successes,
        summary.failures,
        summary.unavailable,
    )
    assert reordered.total_bytes == summary.total_bytes


def test_only_successes_feed_bytes_and_duration() -> None:
    outcomes = [
        Outcome(0.2, 200, 100),
        Outcome(0.4, 200, 300),
        Outcome(9.0, 404, 5000),
        Outcome.from_error(httpx.ConnectTimeout("slow"), ErrorType.TIMEOUT),
    ]
    summary = summarize(outcomes, wall_sec=2.0)
    assert (summary.successes, summary.failures, summary.unavailable) == (2, 1, 1)
    assert summary.total_bytes == 400
    assert abs(summary.total_success_duration - 0.6) < 1e-9
    assert abs(summary.average_duration - 0.3) < 1e-9
    assert summary.requests_per_second == 1.0
    assert summary.status_counts == {200: 2, 404: 1}
    assert summary.error_counts == {ErrorType.TIMEOUT: 1}
    assert 200.0 <= summary.p50_ms <= 400.0


def test_zero_wall_time_reports_zero_rps() -> None:
    summary = summarize([Outcome(0.0, 200, 1)], wall_sec=0.0)
    assert summary.successes == 1
    assert summary.requests_per_second == 0.0


def test_empty_run() -> None:
    summary = summarize([], wall_sec=0.001)
    assert summary.total_requests == 0
    assert summary.average_duration == 0.0
    assert summary.requests_per_second == 0.0
    assert summary.p99_ms == 0.0


def test_custom_classifier() -> None:
    def strict(outcome: Outcome) -> OutcomeClass:
        if outcome.error is None and outcome.status_code >= 300:
            return OutcomeClass.FAILURE
        return classify_outcome(outcome)

    summary = summarize([Outcome(0.1, 301, 0), Outcome(0.1, 200, 0)], 1.0, classify=strict)
    assert (summary.successes, summary.failures) == (1, 1)


def test_published_counts_are_read_only() -> None:
    summary = summarize(
        [Outcome(0.1, 200, 1), Outcome.from_error(httpx.ConnectError("refused"), ErrorType.CONNECT)],
        wall_sec=1.0,
    )
    with pytest.raises(TypeError):
        summary.status_counts[200] = 99
    with pytest.raises(TypeError):
        summary.error_counts[ErrorType.CONNECT] = 0
    assert summary.status_counts == {200: 1}
    assert summary.error_counts == {ErrorType.CONNECT: 1}
