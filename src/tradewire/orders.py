"""Request inputs for the order endpoints."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal, InvalidOperation
from typing import Union

from .enums import OrderResponseType, OrderSide, OrderType, TimeInForce
from .errors import InvalidInputError
from .params import param

DecimalLike = Union[Decimal, str, int]


def as_decimal(value: DecimalLike | None) -> Decimal | None:
    """Coerce a price or quantity to Decimal without passing through binary floats."""
    if value is None:
        return value
    if isinstance(value, bool) or isinstance(value, float):
        raise InvalidInputError(f"prices and quantities must be exact decimals, got {value!r}")
    if isinstance(value, (int, str)):
        try:
            value = Decimal(value)
        except InvalidOperation as exc:
            raise InvalidInputError(f"cannot interpret {value!r} as a decimal") from exc
    elif not isinstance(value, Decimal):
        raise InvalidInputError(f"cannot interpret {value!r} as a decimal")
    if not value.is_finite():
        raise InvalidInputError(f"prices and quantities must be finite, got {value!r}")
    return value


def window_millis(window: timedelta) -> int:
    return window // timedelta(milliseconds=1)


@dataclass
class SpotOrderInput:
    symbol: str = param("symbol", omitempty=True, default="")
    side: OrderSide | None = param("side", omitempty=True)
    type: OrderType | None = param("type", omitempty=True)
    time_in_force: TimeInForce | None = param("timeInForce", omitempty=True)
    quantity: Decimal | None = param("quantity", omitempty=True)
    quote_order_qty: Decimal | None = param("quoteOrderQty", omitempty=True)
    price: Decimal | None = param("price", omitempty=True)
    new_client_order_id: str = param("newClientOrderId", omitempty=True, default="")
    stop_price: Decimal | None = param("stopPrice", omitempty=True)
    iceberg_qty: int = param("icebergQty", omitempty=True, default=0)
    new_order_resp_type: OrderResponseType | None = param("newOrderRespType", omitempty=True)
    recv_window: int = param("recvWindow", omitempty=True, default=0)


@dataclass
class QueryOrderInput:
    symbol: str = param("symbol", default="")
    order_id: int = param("orderId", omitempty=True, default=0)
    orig_client_order_id: str = param("origClientOrderId", omitempty=True, default="")
    recv_window: int = param("recvWindow", omitempty=True, default=0)


@dataclass
class CancelSpotOrderInput:
    symbol: str = param("symbol", omitempty=True, default="")
    order_id: int = param("orderId", omitempty=True, default=0)
    orig_client_order_id: str = param("origClientOrderId", omitempty=True, default="")
    # Assigns a new client ID to the cancellation itself; it does not select the order.
    new_client_order_id: str = param("newClientOrderId", omitempty=True, default="")
    recv_window: int = param("recvWindow", omitempty=True, default=0)


@dataclass
class OpenOrdersInput:
    symbol: str = param("symbol", omitempty=True, default="")
    recv_window: int = param("recvWindow", omitempty=True, default=0)
