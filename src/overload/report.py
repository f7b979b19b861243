from __future__ import annotations

import json

from overload.metrics import Summary


def format_duration(seconds: float) -> str:
    """Render a duration with the largest unit that keeps it above one."""
    if seconds <= 0:
        return "0s"
    if seconds >= 60:
        minutes, rest = divmod(seconds, 60)
        return f"{int(minutes)}m{rest:.6f}s"
    if seconds >= 1:
        return f"{seconds:.6f}s"
    if seconds >= 1e-3:
        return f"{seconds * 1e3:.3f}ms"
    if seconds >= 1e-6:
        return f"{seconds * 1e6:.3f}µs"
    return f"{seconds * 1e9:.0f}ns"


def render_text(summary: Summary) -> str:
    lines = [
        f"# Requests: {summary.total_requests}",
        f"# Successes: {summary.successes}",
        f"# Failures: {summary.failures}",
        f"# Unavailable: {summary.unavailable}",
        f"Duration: {format_duration(summary.duration)}",
        f"Average Request Duration: {format_duration(summary.average_duration)}",
        f"Requests Per Second: {summary.requests_per_second:f}",
        f"Bytes Received (excluding headers): {summary.total_bytes}",
    ]
    if summary.successes > 0:
        lines.append(
            f"Latency p50/p95/p99: {summary.p50_ms:.3f}/{summary.p95_ms:.3f}/{summary.p99_ms:.3f} ms"
        )
    return "\n".join(lines)


def render_json(summary: Summary) -> str:
    return json.dumps(summary.to_metadata(), indent=2)
