"""aiohttp-backed WebSocket dialer."""

from __future__ import annotations

import logging
from typing import Mapping

import aiohttp

from .errors import TransportError

logger = logging.getLogger(__name__)

_CLOSING = (aiohttp.WSMsgType.CLOSE, aiohttp.WSMsgType.CLOSING, aiohttp.WSMsgType.CLOSED)


class AiohttpConnection:
    """Wraps an ``aiohttp.ClientWebSocketResponse`` as a frame reader."""

    def __init__(self, ws: aiohttp.ClientWebSocketResponse):
        self.ws = ws

    async def next_frame(self) -> bytes | None:
        while True:
            msg = await self.ws.receive()
            if msg.type == aiohttp.WSMsgType.TEXT:
                return msg.data.encode()
            if msg.type == aiohttp.WSMsgType.BINARY:
                return msg.data
            if msg.type in _CLOSING:
                return None
            if msg.type == aiohttp.WSMsgType.ERROR:
                raise TransportError(f"websocket read failed: {self.ws.exception()}")
            # ping/pong are answered by aiohttp itself
            logger.debug("skipping websocket message of type %s", msg.type)

    async def close(self) -> None:
        await self.ws.close()


class AiohttpDialer:
    """Opens WebSocket connections on a lazily created ``aiohttp.ClientSession``."""

    def __init__(self, *, proxy: str | None = None, heartbeat: float | None = 30.0):
        self.proxy = proxy
        self.heartbeat = heartbeat
        self.session = None

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self.session is None:
            self.session = aiohttp.ClientSession()
        return self.session

    async def dial(self, url: str, headers: Mapping[str, str] | None = None) -> AiohttpConnection:
        session = await self._ensure_session()
        ws = await session.ws_connect(
            url,
            headers=dict(headers) if headers else None,
            proxy=self.proxy,
            heartbeat=self.heartbeat,
        )
        logger.info("websocket connected: %s", url)
        return AiohttpConnection(ws)

    async def close(self) -> None:
        if self.session:
            await self.session.close()
            self.session = None
