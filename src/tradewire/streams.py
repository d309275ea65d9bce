"""Streaming pump: turns a raw socket into an ordered channel of typed events.

Each open stream runs two tasks. The read loop pulls frames off the
connection and hands them over a single-slot relay queue; the supervisor
(the stream task itself) takes them off the relay and passes them to a
handler, which decodes and publishes to the caller's :class:`EventChannel`.

Cancelling the stream task stops both tasks at their next suspension point.
Nothing is published after cancellation and the channel is closed exactly
once, whatever the reason the stream ended.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Mapping, Protocol, TypeVar

from pydantic import BaseModel, ValidationError

from .errors import DecodeError, TransportError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Receives either a frame or a terminal error. Returns False to stop the stream.
FrameHandler = Callable[[bytes | None, BaseException | None], Awaitable[bool]]


class Connection(Protocol):
    async def next_frame(self) -> bytes | None:
        """Return the next complete frame, or None once the peer has closed cleanly."""
        ...

    async def close(self) -> None:
        ...


class Dialer(Protocol):
    async def dial(self, url: str, headers: Mapping[str, str] | None = None) -> Connection:
        ...


@dataclass(frozen=True)
class StreamEvent(Generic[T]):
    """Either a decoded event or the terminal error of a stream."""

    event: T | None = None
    error: BaseException | None = None

    @property
    def is_error(self) -> bool:
        return self.error is not None


class EventChannel(Generic[T]):
    """Single-slot channel the stream publishes into and the caller iterates.

    Iteration yields items in publication order and stops once the channel is
    closed and drained. ``cancel()`` (or leaving ``async with``) stops the
    stream feeding the channel.
    """

    def __init__(self) -> None:
        self._items: asyncio.Queue[T] = asyncio.Queue(maxsize=1)
        self._closed = asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    def attach(self, task: asyncio.Task[None]) -> None:
        self._task = task

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    async def publish(self, item: T) -> None:
        if self._closed.is_set():
            raise RuntimeError("publish on closed channel")
        await self._items.put(item)

    def close(self) -> None:
        if self._closed.is_set():
            raise RuntimeError("channel already closed")
        self._closed.set()

    def cancel(self) -> None:
        if self._task is not None:
            self._task.cancel()

    async def wait_closed(self) -> None:
        """Wait for the feeding stream to finish, including connection teardown."""
        if self._task is not None:
            await asyncio.gather(self._task, return_exceptions=True)
        await self._closed.wait()

    async def __aenter__(self) -> EventChannel[T]:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.cancel()
        await self.wait_closed()

    def __aiter__(self) -> EventChannel[T]:
        return self

    async def __anext__(self) -> T:
        while True:
            if not self._items.empty():
                return self._items.get_nowait()
            if self._closed.is_set():
                raise StopAsyncIteration

            getter = asyncio.ensure_future(self._items.get())
            closer = asyncio.ensure_future(self._closed.wait())
            try:
                await asyncio.wait({getter, closer}, return_when=asyncio.FIRST_COMPLETED)
            finally:
                closer.cancel()
                getter.cancel()
            if getter.done() and not getter.cancelled():
                return getter.result()


@dataclass(frozen=True)
class _Relayed:
    frame: bytes | None = None
    error: BaseException | None = None
    end: bool = False


async def _read_loop(conn: Connection, relay: asyncio.Queue[_Relayed]) -> None:
    while True:
        try:
            frame = await conn.next_frame()
        except Exception as exc:
            # read errors are permanent for this connection
            await relay.put(_Relayed(error=exc))
            return
        if frame is None:
            await relay.put(_Relayed(end=True))
            return
        # copy so the connection may reuse its buffer while the frame is consumed
        await relay.put(_Relayed(frame=bytes(frame)))


async def open_stream(dialer: Dialer, url: str, handle: FrameHandler) -> None:
    """Dial ``url`` and feed every frame to ``handle`` until the stream ends.

    A dial failure is passed to ``handle`` as a single :class:`TransportError`.
    The stream ends on the first read error, on a clean close by the peer,
    when ``handle`` returns False, or when the running task is cancelled.
    The connection is always closed after the read loop has exited.
    """
    logger.debug("dialing %s", url)
    try:
        conn = await dialer.dial(url, None)
    except Exception as exc:
        err = TransportError(f"unable to establish websocket connection: {exc}")
        err.__cause__ = exc
        logger.warning("websocket dial to %s failed: %s", url, exc)
        await handle(None, err)
        return

    relay: asyncio.Queue[_Relayed] = asyncio.Queue(maxsize=1)
    reader = asyncio.create_task(_read_loop(conn, relay))
    try:
        while True:
            item = await relay.get()
            if item.end:
                logger.debug("stream %s closed by peer", url)
                return
            keep_going = await handle(item.frame, item.error)
            if item.error is not None:
                logger.warning("stream %s terminated: %s", url, item.error)
                return
            if not keep_going:
                return
    finally:
        reader.cancel()
        await asyncio.gather(reader, return_exceptions=True)
        await conn.close()
        logger.debug("stream %s connection closed", url)


def start_stream(
    dialer: Dialer,
    url: str,
    handle: FrameHandler,
    on_close: Callable[[], None],
) -> asyncio.Task[None]:
    """Run :func:`open_stream` in a background task.

    ``on_close`` runs exactly once when the task finishes, including when it
    is cancelled before it ever started.
    """
    def finished(task: asyncio.Task[None]) -> None:
        if not task.cancelled() and task.exception() is not None:
            logger.error("stream %s failed", url, exc_info=task.exception())
        on_close()

    task = asyncio.create_task(open_stream(dialer, url, handle))
    task.add_done_callback(finished)
    return task


def decode_and_publish(channel: EventChannel[StreamEvent[Any]], model: type[BaseModel]) -> FrameHandler:
    """Build a handler that decodes frames into ``model`` and publishes them."""

    async def handle(frame: bytes | None, error: BaseException | None) -> bool:
        if error is not None:
            await channel.publish(StreamEvent(error=error))
            return False
        try:
            event = model.model_validate_json(frame)
        except ValidationError as exc:
            err = DecodeError(f"error decoding {model.__name__}: {exc}")
            err.__cause__ = exc
            await channel.publish(StreamEvent(error=err))
            return False
        await channel.publish(StreamEvent(event=event))
        return True

    return handle
