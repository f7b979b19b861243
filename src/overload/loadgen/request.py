from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable

import httpx

from overload.config import RunConfig, SetupError

_TOKEN = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")


@dataclass(frozen=True, slots=True)
class RequestSpec:
    url: str
    headers: tuple[tuple[str, str], ...] = ()
    gzip: bool = True
    method: str = "GET"

    def header_items(self) -> list[tuple[str, str]]:
        items: list[tuple[str, str]] = []
        if self.gzip:
            items.append(("Accept-Encoding", "gzip"))
        items.extend(self.headers)
        return items

    def build(self, client: httpx.AsyncClient) -> httpx.Request:
        """Build a fresh request for one attempt; requests are never shared between workers."""
        return client.build_request(self.method, self.url, headers=self.header_items())


@dataclass(frozen=True, slots=True)
class Ticket:
    sequence: int
    spec: RequestSpec


def parse_header(raw: str) -> tuple[str, str]:
    """Split ``Name:Value`` on the first colon."""
    name, sep, value = raw.partition(":")
    name = name.strip()
    if not sep:
        msg = f"Invalid header - {raw}"
        raise SetupError(msg)
    if not _TOKEN.match(name):
        msg = f"Invalid header name - {raw}"
        raise SetupError(msg)
    value = value.strip()
    if not value.isascii() or any(c in value for c in "\r\n\0"):
        msg = f"Invalid header value - {raw}"
        raise SetupError(msg)
    return name, value


def validate_url(url: str) -> str:
    try:
        parsed = httpx.URL(url)
    except (httpx.InvalidURL, TypeError) as exc:
        msg = f"Unable to create HTTP request - {exc}"
        raise SetupError(msg) from exc
    if parsed.scheme not in ("http", "https"):
        msg = f"Unable to create HTTP request - unsupported scheme in {url!r}"
        raise SetupError(msg)
    if not parsed.host:
        msg = f"Unable to create HTTP request - missing host in {url!r}"
        raise SetupError(msg)
    return url


def build_request_spec(config: RunConfig) -> RequestSpec:
    url = validate_url(config.url)
    headers = tuple(_parse_headers(config.headers))
    return RequestSpec(url=url, headers=headers, gzip=config.gzip)


def _parse_headers(raw_headers: Iterable[str]) -> Iterable[tuple[str, str]]:
    for raw in raw_headers:
        yield parse_header(raw)
