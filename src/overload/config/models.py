from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping


class SetupError(ValueError):
    """Raised when a run cannot be set up; no request is dispatched."""


@dataclass(frozen=True, slots=True)
class RunConfig:
    url: str
    num_requests: int = 1
    concurrency: int = 1
    keep_alive: bool = False
    headers: tuple[str, ...] = ()
    gzip: bool = True
    secure_tls: bool = False
    request_timeout_sec: float | None = 30.0
    run_timeout_sec: float | None = None

    def __post_init__(self) -> None:
        if self.num_requests < 0:
            msg = f"num_requests must be >= 0, got {self.num_requests}"
            raise SetupError(msg)
        if self.concurrency < 1:
            msg = f"concurrency must be >= 1, got {self.concurrency}"
            raise SetupError(msg)

    def to_metadata(self) -> Mapping[str, Any]:
        return {
            "url": self.url,
            "num_requests": self.num_requests,
            "concurrency": self.concurrency,
            "keep_alive": self.keep_alive,
            "headers": list(self.headers),
            "gzip": self.gzip,
            "secure_tls": self.secure_tls,
            "request_timeout_sec": self.request_timeout_sec,
            "run_timeout_sec": self.run_timeout_sec,
        }
