"""Enumerations used on the wire."""

from __future__ import annotations

from enum import Enum


class OrderStatus(str, Enum):
    """Lifecycle state of an order."""

    NEW = "NEW"
    PARTIALLY_FILLED = "PARTIALLY_FILLED"
    FILLED = "FILLED"
    CANCELED = "CANCELED"
    PENDING_CANCEL = "PENDING_CANCEL"
    REJECTED = "REJECTED"
    # Canceled by the order type's rules or by the venue itself.
    EXPIRED = "EXPIRED"


class OrderType(str, Enum):
    LIMIT = "LIMIT"
    MARKET = "MARKET"
    STOP_LOSS = "STOP_LOSS"
    STOP_LOSS_LIMIT = "STOP_LOSS_LIMIT"
    TAKE_PROFIT = "TAKE_PROFIT"
    TAKE_PROFIT_LIMIT = "TAKE_PROFIT_LIMIT"
    LIMIT_MAKER = "LIMIT_MAKER"


class OrderResponseType(str, Enum):
    """Level of detail returned when placing an order."""

    ACK = "ACK"
    RESULT = "RESULT"
    FULL = "FULL"


class OrderSide(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class TimeInForce(str, Enum):
    """How long an order stays on the book."""

    GTC = "GTC"
    IOC = "IOC"
    FOK = "FOK"


class QuantityAsset(str, Enum):
    """Which side of the pair a market order quantity is expressed in."""

    BASE = "BASE"
    QUOTE = "QUOTE"
