"""HTTP transport and request execution."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Protocol, TypeVar, overload

import aiohttp
from pydantic import TypeAdapter, ValidationError
from yarl import URL

from .errors import DecodeError, HttpError, TransportError
from .models import ErrorBody

logger = logging.getLogger(__name__)

T = TypeVar("T")

STATUS_OK = 200


@dataclass(frozen=True)
class HttpRequest:
    """A fully built request, ready to hand to a transport."""

    method: str
    url: str
    headers: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class HttpResponse:
    status: int
    body: bytes = b""
    headers: Mapping[str, str] = field(default_factory=dict)


class Transport(Protocol):
    """Performs a built request. Must be safe for concurrent use."""

    async def do(self, request: HttpRequest) -> HttpResponse:
        ...


class AiohttpTransport:
    """Transport backed by a lazily created ``aiohttp.ClientSession``."""

    def __init__(self, *, proxy: str | None = None, timeout: float = 10.0):
        self.proxy = proxy
        self.timeout = timeout
        self.session = None

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self.session is None:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )
        return self.session

    async def do(self, request: HttpRequest) -> HttpResponse:
        session = await self._ensure_session()
        # The query string is already encoded and signed; it must go out unchanged.
        url = URL(request.url, encoded=True)
        async with session.request(
            request.method,
            url,
            headers=dict(request.headers),
            proxy=self.proxy,
        ) as resp:
            body = await resp.read()
            return HttpResponse(status=resp.status, body=body, headers=dict(resp.headers))

    async def close(self) -> None:
        if self.session:
            await self.session.close()
            self.session = None


@overload
async def perform_request(transport: Transport, request: HttpRequest, out_type: None = None) -> None:
    ...


@overload
async def perform_request(transport: Transport, request: HttpRequest, out_type: type[T]) -> T:
    ...


async def perform_request(transport: Transport, request: HttpRequest, out_type: Any = None) -> Any:
    """Execute ``request`` once and decode the outcome.

    Raises:
        TransportError: the transport failed to produce a response.
        HttpError: the venue answered with a non-200 status.
        DecodeError: a 200 body did not match ``out_type``.

    Returns:
        The decoded body, or None when ``out_type`` is None.
    """
    logger.debug("%s %s", request.method, URL(request.url, encoded=True).path)
    try:
        resp = await transport.do(request)
    except Exception as exc:
        raise TransportError(f"error performing request: {exc}") from exc

    if resp.status != STATUS_OK:
        try:
            body = ErrorBody.model_validate_json(resp.body)
        except ValidationError:
            logger.debug("undecodable error body for status %s", resp.status)
            raise HttpError(resp.status) from None
        raise HttpError(resp.status, body.code, body.msg)

    if out_type is None:
        return None

    try:
        return TypeAdapter(out_type).validate_json(resp.body)
    except ValidationError as exc:
        raise DecodeError(f"error decoding response: {exc}") from exc
