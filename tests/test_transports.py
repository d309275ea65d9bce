"""Tests for the aiohttp transport and dialer with mocked sessions."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest
from yarl import URL

from tradewire.errors import TransportError
from tradewire.http import AiohttpTransport, HttpRequest
from tradewire.websockets import AiohttpConnection, AiohttpDialer


def create_async_response(status=200, body=b"{}"):
    """Create a mock async response."""
    resp = AsyncMock()
    resp.status = status
    resp.headers = {"Content-Type": "application/json"}
    resp.read = AsyncMock(return_value=body)
    resp.__aenter__ = AsyncMock(return_value=resp)
    resp.__aexit__ = AsyncMock(return_value=None)
    return resp


def ws_message(msg_type, data=None):
    return SimpleNamespace(type=msg_type, data=data)


class TestAiohttpTransport:
    @pytest.mark.asyncio
    async def test_query_sent_unchanged(self):
        transport = AiohttpTransport(proxy="http://proxy:8080")
        session = MagicMock()
        session.request = MagicMock(return_value=create_async_response(418, b'{"code":-1}'))
        transport._ensure_session = AsyncMock(return_value=session)

        request = HttpRequest(
            "POST",
            "https://example.com/api/v3/order?newClientOrderId=a%2Fb&timestamp=1&signature=abc",
            {"X-MBX-APIKEY": "key"},
        )
        response = await transport.do(request)

        assert response.status == 418
        assert response.body == b'{"code":-1}'
        method, url = session.request.call_args.args
        assert method == "POST"
        assert isinstance(url, URL)
        assert url.raw_query_string == "newClientOrderId=a%2Fb&timestamp=1&signature=abc"
        assert session.request.call_args.kwargs["headers"] == {"X-MBX-APIKEY": "key"}
        assert session.request.call_args.kwargs["proxy"] == "http://proxy:8080"

    @pytest.mark.asyncio
    async def test_close_without_session(self):
        await AiohttpTransport().close()


class TestAiohttpConnection:
    @pytest.mark.asyncio
    async def test_text_and_binary_frames(self):
        ws = MagicMock()
        ws.receive = AsyncMock(side_effect=[
            ws_message(aiohttp.WSMsgType.TEXT, '{"e":"trade"}'),
            ws_message(aiohttp.WSMsgType.PING, b""),
            ws_message(aiohttp.WSMsgType.BINARY, b"\x01\x02"),
            ws_message(aiohttp.WSMsgType.CLOSE),
        ])
        conn = AiohttpConnection(ws)

        assert await conn.next_frame() == b'{"e":"trade"}'
        assert await conn.next_frame() == b"\x01\x02"
        assert await conn.next_frame() is None

    @pytest.mark.asyncio
    async def test_error_message_raises(self):
        ws = MagicMock()
        ws.receive = AsyncMock(return_value=ws_message(aiohttp.WSMsgType.ERROR))
        ws.exception = MagicMock(return_value=RuntimeError("reset"))

        with pytest.raises(TransportError, match="reset"):
            await AiohttpConnection(ws).next_frame()

    @pytest.mark.asyncio
    async def test_dial(self):
        ws = MagicMock()
        session = MagicMock()
        session.ws_connect = AsyncMock(return_value=ws)
        dialer = AiohttpDialer(proxy=None, heartbeat=5.0)
        dialer._ensure_session = AsyncMock(return_value=session)

        conn = await dialer.dial("wss://example.com/ws/btcusdt@trade")

        assert conn.ws is ws
        session.ws_connect.assert_awaited_once_with(
            "wss://example.com/ws/btcusdt@trade", headers=None, proxy=None, heartbeat=5.0
        )
