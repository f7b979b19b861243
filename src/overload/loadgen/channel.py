from __future__ import annotations

import asyncio
from typing import Generic, TypeVar

T = TypeVar("T")

_CLOSED = object()


class ChannelClosedError(Exception):
    """Raised on receive from a closed, drained channel or send to a closed one."""


class Channel(Generic[T]):
    """Unbuffered hand-off between tasks.

    ``send`` returns only once a receiver has taken the item, so a sender can
    never run ahead of its consumers. After ``close`` every pending and future
    ``receive`` raises ``ChannelClosedError`` once the items already sent have
    been taken.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[object] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def send(self, item: T) -> None:
        if self._closed:
            raise ChannelClosedError("send on closed channel")
        delivered: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        await self._queue.put((item, delivered))
        await delivered

    async def receive(self) -> T:
        entry = await self._queue.get()
        if entry is _CLOSED:
            # Leave the marker in place for the other receivers.
            self._queue.put_nowait(_CLOSED)
            raise ChannelClosedError("receive on closed channel")
        item, delivered = entry
        if not delivered.done():
            delivered.set_result(None)
        return item

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)

    def __aiter__(self) -> Channel[T]:
        return self

    async def __anext__(self) -> T:
        try:
            return await self.receive()
        except ChannelClosedError:
            raise StopAsyncIteration from None
