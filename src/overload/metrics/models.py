from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping


class ErrorType(str, Enum):
    TIMEOUT = "timeout"
    CONNECT = "connect"
    READ = "read"
    OTHER = "other"
    CANCELLED = "cancelled"


class OutcomeClass(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True, slots=True)
class Outcome:
    duration: float
    status_code: int
    bytes_read: int
    error: BaseException | None = None
    error_type: ErrorType | None = None

    @classmethod
    def from_error(cls, error: BaseException, error_type: ErrorType) -> Outcome:
        return cls(duration=0.0, status_code=0, bytes_read=0, error=error, error_type=error_type)


@dataclass(frozen=True, slots=True)
class Summary:
    total_requests: int
    successes: int
    failures: int
    unavailable: int
    total_bytes: int
    total_success_duration: float
    average_duration: float
    duration: float
    requests_per_second: float
    p50_ms: float = 0.0
    p95_ms: float = 0.0
    p99_ms: float = 0.0
    status_counts: Mapping[int, int] = field(default_factory=dict)
    error_counts: Mapping[ErrorType, int] = field(default_factory=dict)

    def to_metadata(self) -> Mapping[str, Any]:
        return {
            "total_requests": self.total_requests,
            "successes": self.successes,
            "failures": self.failures,
            "unavailable": self.unavailable,
            "total_bytes": self.total_bytes,
            "total_success_duration_sec": self.total_success_duration,
            "average_duration_sec": self.average_duration,
            "duration_sec": self.duration,
            "requests_per_second": self.requests_per_second,
            "latency_ms": {
                "p50": self.p50_ms,
                "p95": self.p95_ms,
                "p99": self.p99_ms,
            },
            "status_counts": {str(code): count for code, count in sorted(self.status_counts.items())},
            "error_counts": {err.value: count for err, count in self.error_counts.items()},
        }
