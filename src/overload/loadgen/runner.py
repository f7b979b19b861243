from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from dataclasses import dataclass, field

import httpx

from overload.config import RunConfig
from overload.loadgen.channel import Channel, ChannelClosedError
from overload.loadgen.client import build_client, execute_request
from overload.loadgen.request import RequestSpec, Ticket, build_request_spec
from overload.metrics import Classifier, ErrorType, Outcome, Summary, Tally, classify_outcome

logger = logging.getLogger(__name__)


class RunCancelledError(Exception):
    """Marks an attempt abandoned or skipped because the run deadline passed."""


@dataclass(slots=True)
class RunContext:
    config: RunConfig
    spec: RequestSpec
    client: httpx.AsyncClient
    classify: Classifier = classify_outcome
    requests: Channel[Ticket] = field(default_factory=Channel)
    results: Channel[Outcome] = field(default_factory=Channel)
    summaries: Channel[Summary] = field(default_factory=Channel)
    cancelled: asyncio.Event = field(default_factory=asyncio.Event)
    started_mono: float = field(default_factory=time.perf_counter)


async def run_load(
    config: RunConfig,
    transport: httpx.AsyncBaseTransport | None = None,
    classify: Classifier = classify_outcome,
) -> Summary:
    """Run one load test and return its summary.

    Raises ``SetupError`` before anything is dispatched when the URL or a
    header is malformed.
    """
    spec = build_request_spec(config)
    async with build_client(config, transport) as client:
        ctx = RunContext(config=config, spec=spec, client=client, classify=classify)
        return await _orchestrate(ctx)


async def _orchestrate(ctx: RunContext) -> Summary:
    config = ctx.config
    logger.info(
        "run started",
        extra={"url": config.url, "num_requests": config.num_requests, "concurrency": config.concurrency},
    )
    loop = asyncio.get_running_loop()
    deadline = None
    if config.run_timeout_sec is not None:
        deadline = loop.call_later(config.run_timeout_sec, _cancel_run, ctx)

    ctx.started_mono = time.perf_counter()
    tasks = [
        asyncio.create_task(feed_requests(ctx)),
        *(asyncio.create_task(run_worker(ctx, i)) for i in range(config.concurrency)),
        asyncio.create_task(collect_results(ctx)),
    ]
    receive = asyncio.create_task(ctx.summaries.receive())
    try:
        done, _ = await asyncio.wait([receive, *tasks], return_when=asyncio.FIRST_EXCEPTION)
        for task in done:
            exc = None if task.cancelled() else task.exception()
            if exc is not None:
                raise exc
        summary = receive.result()
    finally:
        if deadline is not None:
            deadline.cancel()
        for task in (receive, *tasks):
            if not task.done():
                task.cancel()
        await asyncio.gather(receive, *tasks, return_exceptions=True)
    logger.info(
        "run finished",
        extra={
            "successes": summary.successes,
            "failures": summary.failures,
            "unavailable": summary.unavailable,
        },
    )
    return summary


def _cancel_run(ctx: RunContext) -> None:
    logger.warning("run deadline reached, abandoning outstanding requests")
    ctx.cancelled.set()


async def feed_requests(ctx: RunContext) -> None:
    """Send exactly ``num_requests`` tickets, then close the request channel."""
    try:
        for sequence in range(ctx.config.num_requests):
            await ctx.requests.send(Ticket(sequence, ctx.spec))
    finally:
        ctx.requests.close()


async def run_worker(ctx: RunContext, worker_id: int) -> None:
    """Drain the request channel, sending exactly one outcome per ticket."""
    handled = 0
    while True:
        try:
            ticket = await ctx.requests.receive()
        except ChannelClosedError:
            break
        outcome = await _perform(ctx, ticket)
        await ctx.results.send(outcome)
        handled += 1
    logger.debug("worker exiting", extra={"worker_id": worker_id, "handled": handled})


async def _perform(ctx: RunContext, ticket: Ticket) -> Outcome:
    if ctx.cancelled.is_set():
        return Outcome.from_error(RunCancelledError("run deadline reached"), ErrorType.CANCELLED)
    request = asyncio.ensure_future(execute_request(ctx.client, ticket.spec))
    stop = asyncio.ensure_future(ctx.cancelled.wait())
    try:
        await asyncio.wait({request, stop}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        request.cancel()
        raise
    finally:
        stop.cancel()
    if request.done():
        return request.result()
    request.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await request
    logger.debug("request abandoned", extra={"sequence": ticket.sequence})
    return Outcome.from_error(RunCancelledError("request abandoned at run deadline"), ErrorType.CANCELLED)


async def collect_results(ctx: RunContext) -> None:
    """Consume exactly ``num_requests`` outcomes and publish one summary."""
    tally = Tally(classify=ctx.classify)
    for _ in range(ctx.config.num_requests):
        tally.add(await ctx.results.receive())
    summary = tally.summary(time.perf_counter() - ctx.started_mono)
    await ctx.summaries.send(summary)
