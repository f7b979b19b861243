from __future__ import annotations

import argparse
import asyncio
import logging
import math
import sys
from typing import Sequence

from overload import __version__
from overload.config import RunConfig, SetupError
from overload.loadgen.runner import run_load
from overload.logging_setup import setup_logging
from overload.report import render_json, render_text


def _non_negative_int(raw: str) -> int:
    value = int(raw)
    if value < 0:
        raise argparse.ArgumentTypeError(f"must be >= 0, got {value}")
    return value


def _positive_int(raw: str) -> int:
    value = int(raw)
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1, got {value}")
    return value


def _seconds(raw: str) -> float:
    value = float(raw)
    if not math.isfinite(value) or value < 0:
        raise argparse.ArgumentTypeError(f"must be a finite number >= 0, got {value}")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="overload",
        usage="%(prog)s [options] URL",
        description="Issue a fixed number of concurrent GET requests and summarize the results.",
    )
    parser.add_argument("url", metavar="URL", help="Target URL")
    parser.add_argument(
        "-r", "--num-requests", type=_non_negative_int, default=1, help="Number of requests to make"
    )
    parser.add_argument(
        "-c", "--concurrent", type=_positive_int, default=1, help="Number of concurrent connections to make"
    )
    parser.add_argument("-k", "--keep-alive", action="store_true", help="Use keep alive connection")
    parser.add_argument(
        "-H",
        "--header",
        action="append",
        default=[],
        dest="headers",
        help="Header to include in request (can be used multiple times)",
    )
    parser.add_argument("--no-gzip", action="store_true", help="Disable gzip accept encoding")
    parser.add_argument("--secure-tls", action="store_true", help="Validate TLS certificates")
    parser.add_argument(
        "--timeout", type=_seconds, default=30.0, help="Per-request timeout in seconds (0 disables it)"
    )
    parser.add_argument("--run-timeout", type=_seconds, default=None, help="Deadline for the whole run in seconds")
    parser.add_argument("--json", action="store_true", help="Print the summary as JSON")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log per-request detail to stderr")
    parser.add_argument("--version", action="version", version=f"overload {__version__}")
    return parser


def config_from_args(args: argparse.Namespace) -> RunConfig:
    return RunConfig(
        url=args.url,
        num_requests=args.num_requests,
        concurrency=args.concurrent,
        keep_alive=args.keep_alive,
        headers=tuple(args.headers),
        gzip=not args.no_gzip,
        secure_tls=args.secure_tls,
        request_timeout_sec=args.timeout or None,
        run_timeout_sec=args.run_timeout,
    )


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(override=logging.DEBUG if args.verbose else None)

    try:
        summary = asyncio.run(run_load(config_from_args(args)))
    except SetupError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    print(render_json(summary) if args.json else render_text(summary))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
