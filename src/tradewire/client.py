"""Client for the venue's REST and WebSocket APIs."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Mapping
from urllib.parse import quote, urlencode

from yarl import URL

from .enums import OrderResponseType, OrderSide, OrderType, QuantityAsset, TimeInForce
from .errors import InvalidInputError, RequestConstructionError
from .http import AiohttpTransport, HttpRequest, Transport, perform_request
from .models import (
    AccountInformation,
    CancelSpotOrderResult,
    SpotOrder,
    SpotOrderResult,
    TradeEvent,
    datetime_to_millis,
)
from .orders import (
    CancelSpotOrderInput,
    DecimalLike,
    OpenOrdersInput,
    QueryOrderInput,
    SpotOrderInput,
    as_decimal,
    window_millis,
)
from .params import encode_params, to_params
from .settings import Settings
from .signer import HMACSigner, Signer
from .streams import Dialer, EventChannel, FrameHandler, StreamEvent, decode_and_publish, start_stream
from .websockets import AiohttpDialer

logger = logging.getLogger(__name__)

SIGNATURE_QUERY = "signature"
TIMESTAMP_QUERY = "timestamp"
RECV_WINDOW_QUERY = "recvWindow"
USER_AGENT_HEADER = "User-Agent"
API_KEY_HEADER = "X-MBX-APIKEY"

ACCOUNT_PATH = "/api/v3/account"
ORDER_PATH = "/api/v3/order"
OPEN_ORDERS_PATH = "/api/v3/openOrders"

HTTP_METHODS = frozenset({"GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS"})


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Client:
    """Venue client.

    The configuration is read-only after construction, so one instance can
    serve any number of concurrent requests and streams. The signer,
    transport and dialer are injected so each can be replaced in tests; the
    clock is injected so signed timestamps are deterministic.
    """

    def __init__(
        self,
        *,
        http_api_url: str,
        websocket_api_url: str,
        api_key: str,
        signer: Signer,
        transport: Transport,
        dialer: Dialer,
        user_agent: str = "tradewire/0.1",
        recv_window: timedelta = timedelta(0),
        now: Callable[[], datetime] = utc_now,
    ):
        self.http_api_url = http_api_url
        self.websocket_api_url = websocket_api_url
        self.user_agent = user_agent
        self.api_key = api_key
        self.recv_window = recv_window
        self.signer = signer
        self.transport = transport
        self.dialer = dialer
        self.now = now

    @classmethod
    def from_settings(cls, settings: Settings, *, now: Callable[[], datetime] = utc_now) -> Client:
        """Build a client with the aiohttp transport and dialer."""
        if settings.credentials is None:
            raise ValueError("credentials are required to build a client")
        proxy = settings.proxy.proxy_url if settings.proxy.enabled else None
        return cls(
            http_api_url=settings.http_api_url,
            websocket_api_url=settings.websocket_api_url,
            user_agent=settings.user_agent,
            api_key=settings.credentials.api_key.get_secret_value(),
            recv_window=timedelta(milliseconds=settings.recv_window_ms),
            signer=HMACSigner(settings.credentials.api_secret.get_secret_value()),
            transport=AiohttpTransport(proxy=proxy, timeout=settings.request_timeout),
            dialer=AiohttpDialer(proxy=proxy),
            now=now,
        )

    def _resolve(self, base: str, path: str) -> URL:
        try:
            base_url = URL(base)
        except (TypeError, ValueError) as exc:
            raise RequestConstructionError(f"invalid base url {base!r}") from exc
        if not base_url.is_absolute():
            raise RequestConstructionError(f"base url must be absolute, got {base!r}")
        return base_url.join(URL(path))

    def _build_request(self, method: str, path: str, query: str, include_api_key: bool) -> HttpRequest:
        method = method.upper()
        if method not in HTTP_METHODS:
            raise RequestConstructionError(f"unsupported http method {method!r}")

        url = str(self._resolve(self.http_api_url, path).with_query(None))
        if query:
            url = f"{url}?{query}"

        headers = {USER_AGENT_HEADER: self.user_agent}
        if include_api_key:
            headers[API_KEY_HEADER] = self.api_key
        return HttpRequest(method=method, url=url, headers=headers)

    def build_unsigned_request(
        self,
        method: str,
        path: str,
        params: Mapping[str, str] | None = None,
        include_api_key: bool = False,
    ) -> HttpRequest:
        return self._build_request(method, path, encode_params(params or {}), include_api_key)

    def build_signed_request(
        self,
        method: str,
        path: str,
        params: Mapping[str, str] | None = None,
    ) -> HttpRequest:
        """Build a request carrying timestamp, receive window and signature.

        The signature covers the encoded parameters exactly as they are sent
        and is appended as the last query parameter.
        """
        params = dict(params or {})
        params[TIMESTAMP_QUERY] = str(datetime_to_millis(self.now()))
        if not params.get(RECV_WINDOW_QUERY) and self.recv_window > timedelta(0):
            params[RECV_WINDOW_QUERY] = str(window_millis(self.recv_window))

        query = encode_params(params)
        signature = self.signer.sign(query)
        query = f"{query}&{urlencode({SIGNATURE_QUERY: signature})}"
        return self._build_request(method, path, query, include_api_key=True)

    # Account

    async def account_information(self) -> AccountInformation:
        """Fetch the account tied to the configured API key."""
        req = self.build_signed_request("GET", ACCOUNT_PATH)
        return await perform_request(self.transport, req, AccountInformation)

    # Orders

    async def _place_order(
        self,
        order: SpotOrderInput,
        client_order_id: str | None,
        recv_window: timedelta | None,
    ) -> SpotOrderResult:
        order.new_order_resp_type = OrderResponseType.FULL
        if client_order_id:
            order.new_client_order_id = client_order_id
        if recv_window is not None:
            order.recv_window = window_millis(recv_window)
        req = self.build_signed_request("POST", ORDER_PATH, to_params(order))
        logger.info("placing %s %s order on %s", order.side.value, order.type.value, order.symbol)
        return await perform_request(self.transport, req, SpotOrderResult)

    async def place_limit_order(
        self,
        symbol: str,
        side: OrderSide | str,
        quantity: DecimalLike,
        price: DecimalLike,
        time_in_force: TimeInForce | str,
        *,
        client_order_id: str | None = None,
        recv_window: timedelta | None = None,
    ) -> SpotOrderResult:
        order = SpotOrderInput(
            symbol=symbol,
            side=OrderSide(side),
            type=OrderType.LIMIT,
            quantity=as_decimal(quantity),
            price=as_decimal(price),
            time_in_force=TimeInForce(time_in_force),
        )
        return await self._place_order(order, client_order_id, recv_window)

    async def place_market_order(
        self,
        symbol: str,
        side: OrderSide | str,
        quantity: DecimalLike,
        asset: QuantityAsset | str = QuantityAsset.BASE,
        *,
        client_order_id: str | None = None,
        recv_window: timedelta | None = None,
    ) -> SpotOrderResult:
        """Place a market order.

        With ``QuantityAsset.BASE`` the quantity is the amount of the base
        asset to trade. With ``QuantityAsset.QUOTE`` it is the amount of the
        quote asset to spend or receive, and the venue works out the base
        quantity from the market price.
        """
        order = SpotOrderInput(symbol=symbol, side=OrderSide(side), type=OrderType.MARKET)
        if asset == QuantityAsset.BASE:
            order.quantity = as_decimal(quantity)
        elif asset == QuantityAsset.QUOTE:
            order.quote_order_qty = as_decimal(quantity)
        else:
            raise InvalidInputError(f"unknown asset value {asset!r}")
        return await self._place_order(order, client_order_id, recv_window)

    async def place_stop_loss_order(
        self,
        symbol: str,
        side: OrderSide | str,
        quantity: DecimalLike,
        stop_price: DecimalLike,
        *,
        client_order_id: str | None = None,
        recv_window: timedelta | None = None,
    ) -> SpotOrderResult:
        """Place an order that executes at market once ``stop_price`` is reached."""
        order = SpotOrderInput(
            symbol=symbol,
            side=OrderSide(side),
            type=OrderType.STOP_LOSS,
            quantity=as_decimal(quantity),
            stop_price=as_decimal(stop_price),
        )
        return await self._place_order(order, client_order_id, recv_window)

    async def place_stop_loss_limit_order(
        self,
        symbol: str,
        side: OrderSide | str,
        quantity: DecimalLike,
        stop_price: DecimalLike,
        limit_price: DecimalLike,
        time_in_force: TimeInForce | str,
        *,
        client_order_id: str | None = None,
        recv_window: timedelta | None = None,
    ) -> SpotOrderResult:
        """Place a limit order at ``limit_price`` once ``stop_price`` is reached."""
        order = SpotOrderInput(
            symbol=symbol,
            side=OrderSide(side),
            type=OrderType.STOP_LOSS_LIMIT,
            quantity=as_decimal(quantity),
            stop_price=as_decimal(stop_price),
            price=as_decimal(limit_price),
            time_in_force=TimeInForce(time_in_force),
        )
        return await self._place_order(order, client_order_id, recv_window)

    async def place_take_profit_order(
        self,
        symbol: str,
        side: OrderSide | str,
        quantity: DecimalLike,
        stop_price: DecimalLike,
        *,
        client_order_id: str | None = None,
        recv_window: timedelta | None = None,
    ) -> SpotOrderResult:
        order = SpotOrderInput(
            symbol=symbol,
            side=OrderSide(side),
            type=OrderType.TAKE_PROFIT,
            quantity=as_decimal(quantity),
            stop_price=as_decimal(stop_price),
        )
        return await self._place_order(order, client_order_id, recv_window)

    async def place_take_profit_limit_order(
        self,
        symbol: str,
        side: OrderSide | str,
        quantity: DecimalLike,
        stop_price: DecimalLike,
        limit_price: DecimalLike,
        time_in_force: TimeInForce | str,
        *,
        client_order_id: str | None = None,
        recv_window: timedelta | None = None,
    ) -> SpotOrderResult:
        order = SpotOrderInput(
            symbol=symbol,
            side=OrderSide(side),
            type=OrderType.TAKE_PROFIT_LIMIT,
            quantity=as_decimal(quantity),
            stop_price=as_decimal(stop_price),
            price=as_decimal(limit_price),
            time_in_force=TimeInForce(time_in_force),
        )
        return await self._place_order(order, client_order_id, recv_window)

    async def place_limit_maker_order(
        self,
        symbol: str,
        side: OrderSide | str,
        quantity: DecimalLike,
        price: DecimalLike,
        *,
        client_order_id: str | None = None,
        recv_window: timedelta | None = None,
    ) -> SpotOrderResult:
        """Place a post-only limit order, rejected if it would take liquidity."""
        order = SpotOrderInput(
            symbol=symbol,
            side=OrderSide(side),
            type=OrderType.LIMIT_MAKER,
            quantity=as_decimal(quantity),
            price=as_decimal(price),
        )
        return await self._place_order(order, client_order_id, recv_window)

    async def _query_order(self, query: QueryOrderInput, recv_window: timedelta | None) -> SpotOrder:
        if recv_window is not None:
            query.recv_window = window_millis(recv_window)
        req = self.build_signed_request("GET", ORDER_PATH, to_params(query))
        return await perform_request(self.transport, req, SpotOrder)

    async def query_order_by_id(
        self, symbol: str, order_id: int, *, recv_window: timedelta | None = None
    ) -> SpotOrder:
        """Fetch an order by the ID the venue assigned to it."""
        return await self._query_order(QueryOrderInput(symbol=symbol, order_id=order_id), recv_window)

    async def query_order_by_client_id(
        self, symbol: str, client_order_id: str, *, recv_window: timedelta | None = None
    ) -> SpotOrder:
        """Fetch an order by the client ID supplied when it was placed."""
        query = QueryOrderInput(symbol=symbol, orig_client_order_id=client_order_id)
        return await self._query_order(query, recv_window)

    async def _cancel_order(
        self,
        cancel: CancelSpotOrderInput,
        new_client_order_id: str | None,
        recv_window: timedelta | None,
    ) -> CancelSpotOrderResult:
        if new_client_order_id:
            cancel.new_client_order_id = new_client_order_id
        if recv_window is not None:
            cancel.recv_window = window_millis(recv_window)
        req = self.build_signed_request("DELETE", ORDER_PATH, to_params(cancel))
        logger.info("cancelling order on %s", cancel.symbol)
        return await perform_request(self.transport, req, CancelSpotOrderResult)

    async def cancel_order_by_id(
        self,
        symbol: str,
        order_id: int,
        *,
        new_client_order_id: str | None = None,
        recv_window: timedelta | None = None,
    ) -> CancelSpotOrderResult:
        cancel = CancelSpotOrderInput(symbol=symbol, order_id=order_id)
        return await self._cancel_order(cancel, new_client_order_id, recv_window)

    async def cancel_order_by_client_id(
        self,
        symbol: str,
        client_order_id: str,
        *,
        new_client_order_id: str | None = None,
        recv_window: timedelta | None = None,
    ) -> CancelSpotOrderResult:
        cancel = CancelSpotOrderInput(symbol=symbol, orig_client_order_id=client_order_id)
        return await self._cancel_order(cancel, new_client_order_id, recv_window)

    async def open_orders(
        self, symbol: str | None = None, *, recv_window: timedelta | None = None
    ) -> list[SpotOrder]:
        """List open orders for ``symbol``, or for every symbol when omitted.

        Listing every symbol is expensive on the venue side; call it sparingly.
        """
        query = OpenOrdersInput(symbol=symbol or "")
        if recv_window is not None:
            query.recv_window = window_millis(recv_window)
        req = self.build_signed_request("GET", OPEN_ORDERS_PATH, to_params(query))
        return await perform_request(self.transport, req, list[SpotOrder])

    # Streams

    def open_websocket(self, path: str, handle: FrameHandler, on_close: Callable[[], None]) -> asyncio.Task[None]:
        """Start streaming ``path`` relative to the WebSocket base URL."""
        url = str(self._resolve(self.websocket_api_url, path))
        return start_stream(self.dialer, url, handle, on_close)

    def trades(self, symbol: str) -> EventChannel[StreamEvent[TradeEvent]]:
        """Stream live trades for ``symbol``.

        Must be called from a running event loop. The returned channel yields
        trades in the order they arrive. A connection or decode failure is
        delivered as one final error event. The channel closes when the
        stream ends or is cancelled with ``channel.cancel()``.
        """
        channel: EventChannel[StreamEvent[TradeEvent]] = EventChannel()
        path = f"/ws/{quote(symbol.lower(), safe='')}@trade"
        channel.attach(self.open_websocket(path, decode_and_publish(channel, TradeEvent), channel.close))
        return channel

    async def close(self) -> None:
        """Close the transport and dialer sessions."""
        for resource in (self.transport, self.dialer):
            close = getattr(resource, "close", None)
            if close is not None:
                await close()
