"""JSON log records on standard error, kept apart from the summary on stdout."""

from __future__ import annotations

import json
import logging
import os
import sys
from typing import Any, Dict

_EXTRA_FIELDS = (
    "url",
    "num_requests",
    "concurrency",
    "worker_id",
    "handled",
    "sequence",
    "error_type",
    "error",
    "successes",
    "failures",
    "unavailable",
)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload: Dict[str, Any] = {
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for attr in _EXTRA_FIELDS:
            value = getattr(record, attr, None)
            if value is not None:
                payload[attr] = value
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True)


def resolve_level(raw: str | None, default_level: int) -> int:
    """Map a level name or number to a level; unknown values give the default."""
    if raw is None or not raw.strip():
        return default_level
    raw = raw.strip().upper()
    if raw.isdigit():
        return int(raw)
    level = logging.getLevelName(raw)
    return level if isinstance(level, int) else default_level


def setup_logging(default_level: int = logging.WARNING, override: int | None = None) -> None:
    """Configure the root logger.

    An explicit ``override`` (the CLI's verbose flag) wins, then ``LOG_LEVEL``
    from the environment, then ``default_level``.
    """
    if override is not None:
        level = override
    else:
        level = resolve_level(os.environ.get("LOG_LEVEL"), default_level)
    root = logging.getLogger()
    root.setLevel(level)

    # Called once per CLI invocation, but tests may call main() repeatedly.
    if any(isinstance(handler, logging.StreamHandler) for handler in root.handlers):
        for handler in root.handlers:
            handler.setFormatter(JsonFormatter())
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonFormatter())
    root.addHandler(handler)
