from __future__ import annotations

import logging
import time

import httpx

from overload import __version__
from overload.config import RunConfig
from overload.loadgen.request import RequestSpec
from overload.metrics import ErrorType, Outcome

logger = logging.getLogger(__name__)

USER_AGENT = f"overload/{__version__}"


def build_client(config: RunConfig, transport: httpx.AsyncBaseTransport | None = None) -> httpx.AsyncClient:
    if config.keep_alive:
        limits = httpx.Limits(max_connections=None, max_keepalive_connections=None)
    else:
        limits = httpx.Limits(max_connections=None, max_keepalive_connections=0)
    client = httpx.AsyncClient(
        verify=config.secure_tls,
        limits=limits,
        timeout=httpx.Timeout(config.request_timeout_sec),
        follow_redirects=True,
        transport=transport,
        headers={"User-Agent": USER_AGENT},
    )
    # Accept-Encoding is set per request, and only when gzip is wanted.
    del client.headers["Accept-Encoding"]
    return client


async def execute_request(client: httpx.AsyncClient, spec: RequestSpec) -> Outcome:
    """Perform one attempt and drain the raw body; never raises for transport errors."""
    request = spec.build(client)
    start = time.perf_counter()
    try:
        response = await client.send(request, stream=True)
    except (httpx.HTTPError, httpx.StreamError) as exc:
        return _error_outcome(exc)
    try:
        bytes_read = 0
        async for chunk in response.aiter_raw():
            bytes_read += len(chunk)
    except (httpx.HTTPError, httpx.StreamError) as exc:
        return _error_outcome(exc)
    finally:
        await response.aclose()
    return Outcome(
        duration=time.perf_counter() - start,
        status_code=response.status_code,
        bytes_read=bytes_read,
    )


def error_type_for(exc: BaseException) -> ErrorType:
    if isinstance(exc, httpx.TimeoutException):
        return ErrorType.TIMEOUT
    if isinstance(exc, httpx.ConnectError):
        return ErrorType.CONNECT
    if isinstance(exc, httpx.ReadError):
        return ErrorType.READ
    return ErrorType.OTHER


def _error_outcome(exc: BaseException) -> Outcome:
    err = error_type_for(exc)
    logger.debug("request failed", extra={"error_type": err.value, "error": repr(exc)})
    return Outcome.from_error(exc, err)
