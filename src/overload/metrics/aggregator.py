from __future__ import annotations

from collections import Counter
from types import MappingProxyType
from dataclasses import dataclass, field
from typing import Callable, Iterable

import numpy as np

from overload.metrics.models import ErrorType, Outcome, OutcomeClass, Summary

Classifier = Callable[[Outcome], OutcomeClass]


def classify_outcome(outcome: Outcome) -> OutcomeClass:
    """Transport errors are unavailable, HTTP status >= 400 a failure, anything else a success."""
    if outcome.error is not None:
        return OutcomeClass.UNAVAILABLE
    if outcome.status_code >= 400:
        return OutcomeClass.FAILURE
    return OutcomeClass.SUCCESS


@dataclass(slots=True)
class Tally:
    """Order-independent running totals for one run."""

    classify: Classifier = classify_outcome
    total: int = 0
    successes: int = 0
    failures: int = 0
    unavailable: int = 0
    total_bytes: int = 0
    total_success_duration: float = 0.0
    latencies_ms: list[float] = field(default_factory=list)
    status_counts: Counter[int] = field(default_factory=Counter)
    error_counts: Counter[ErrorType] = field(default_factory=Counter)

    def add(self, outcome: Outcome) -> OutcomeClass:
        self.total += 1
        kind = self.classify(outcome)
        if kind is OutcomeClass.UNAVAILABLE:
            self.unavailable += 1
            self.error_counts[outcome.error_type or ErrorType.OTHER] += 1
            return kind
        self.status_counts[outcome.status_code] += 1
        if kind is OutcomeClass.FAILURE:
            self.failures += 1
            return kind
        self.successes += 1
        self.total_bytes += outcome.bytes_read
        self.total_success_duration += outcome.duration
        self.latencies_ms.append(outcome.duration * 1000.0)
        return kind

    def summary(self, wall_sec: float) -> Summary:
        average = self.total_success_duration / self.successes if self.successes > 0 else 0.0
        rps = self.successes / wall_sec if wall_sec > 0 else 0.0
        if self.latencies_ms:
            p50 = float(np.percentile(self.latencies_ms, 50))
            p95 = float(np.percentile(self.latencies_ms, 95))
            p99 = float(np.percentile(self.latencies_ms, 99))
        else:
            p50 = p95 = p99 = 0.0
        return Summary(
            total_requests=self.total,
            successes=self.successes,
            failures=self.failures,
            unavailable=self.unavailable,
            total_bytes=self.total_bytes,
            total_success_duration=self.total_success_duration,
            average_duration=average,
            duration=wall_sec,
            requests_per_second=rps,
            p50_ms=p50,
            p95_ms=p95,
            p99_ms=p99,
            status_counts=MappingProxyType(dict(self.status_counts)),
            error_counts=MappingProxyType(dict(self.error_counts)),
        )


def summarize(
    outcomes: Iterable[Outcome],
    wall_sec: float,
    classify: Classifier = classify_outcome,
) -> Summary:
    tally = Tally(classify=classify)
    for outcome in outcomes:
        tally.add(outcome)
    return tally.summary(wall_sec)
