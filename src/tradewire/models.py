"""Response and event models decoded from the venue's JSON payloads."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator

from .enums import OrderSide, OrderStatus, OrderType, TimeInForce

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_MILLI = timedelta(milliseconds=1)


def millis_to_datetime(millis: int) -> datetime:
    """Convert integer milliseconds since the unix epoch to an aware UTC datetime."""
    return EPOCH + timedelta(milliseconds=millis)


def datetime_to_millis(value: datetime) -> int:
    """Convert a datetime to integer milliseconds since the unix epoch.

    Naive datetimes are taken to be UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return (value - EPOCH) // _ONE_MILLI


def _parse_millis(value: Any) -> Any:
    if isinstance(value, datetime):
        return value
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"expected integer milliseconds, got {value!r}")
    try:
        return millis_to_datetime(value)
    except (OverflowError, OSError) as exc:
        raise ValueError(f"timestamp {value} is out of range") from exc


MillisTimestamp = Annotated[datetime, BeforeValidator(_parse_millis)]


class WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class ErrorBody(WireModel):
    """Error document returned with non-200 responses."""

    code: int = 0
    msg: str = ""


class TradeEvent(WireModel):
    """A single trade from the ``<symbol>@trade`` stream."""

    event: str = Field(alias="e")
    time: MillisTimestamp = Field(alias="E")
    symbol: str = Field(alias="s")
    trade_id: int = Field(alias="t")
    price: Decimal = Field(alias="p")
    quantity: Decimal = Field(alias="q")
    buyer_order_id: int = Field(alias="b")
    seller_order_id: int = Field(alias="a")
    trade_time: MillisTimestamp = Field(alias="T")
    is_buyer_maker: bool = Field(alias="m")
    # "M" (best price match) is deliberately not mapped.


class Balance(WireModel):
    """Funds held in a single asset."""

    asset: str
    # Available for trading.
    free: Decimal
    # Reserved by open orders.
    locked: Decimal

    @property
    def total(self) -> Decimal:
        return self.free + self.locked


class AccountInformation(WireModel):
    maker_commission: int = Field(alias="makerCommission")
    taker_commission: int = Field(alias="takerCommission")
    buyer_commission: int = Field(alias="buyerCommission")
    seller_commission: int = Field(alias="sellerCommission")
    can_trade: bool = Field(alias="canTrade")
    can_withdraw: bool = Field(alias="canWithdraw")
    can_deposit: bool = Field(alias="canDeposit")
    update_time: MillisTimestamp = Field(alias="updateTime")
    account_type: str = Field(alias="accountType")
    balances: dict[str, Balance] = Field(default_factory=dict)
    permissions: list[str] = Field(default_factory=list)

    @field_validator("balances", mode="before")
    @classmethod
    def _index_balances(cls, value: Any) -> Any:
        if isinstance(value, list):
            indexed = {}
            for item in value:
                balance = Balance.model_validate(item)
                indexed[balance.asset] = balance
            return indexed
        return value


class Fill(WireModel):
    price: Decimal
    qty: Decimal
    commission: Decimal
    commission_asset: str = Field(alias="commissionAsset")


class SpotOrderResult(WireModel):
    """Response to placing a spot order."""

    symbol: str
    order_id: int = Field(alias="orderId")
    order_list_id: int = Field(default=-1, alias="orderListId")
    client_order_id: str = Field(alias="clientOrderId")
    transact_time: MillisTimestamp = Field(alias="transactTime")
    price: Decimal | None = None
    orig_qty: Decimal | None = Field(default=None, alias="origQty")
    executed_qty: Decimal | None = Field(default=None, alias="executedQty")
    # The venue spells this "cummulative".
    cumulative_quote_qty: Decimal | None = Field(default=None, alias="cummulativeQuoteQty")
    status: OrderStatus | None = None
    time_in_force: TimeInForce | None = Field(default=None, alias="timeInForce")
    type: OrderType | None = None
    side: OrderSide | None = None
    fills: list[Fill] = Field(default_factory=list)


class SpotOrder(WireModel):
    """An order as returned by order queries and open order listings."""

    symbol: str
    order_id: int = Field(alias="orderId")
    order_list_id: int = Field(default=-1, alias="orderListId")
    client_order_id: str = Field(alias="clientOrderId")
    price: Decimal
    orig_qty: Decimal = Field(alias="origQty")
    executed_qty: Decimal = Field(alias="executedQty")
    cumulative_quote_qty: Decimal = Field(alias="cummulativeQuoteQty")
    status: OrderStatus
    time_in_force: TimeInForce = Field(alias="timeInForce")
    type: OrderType
    side: OrderSide
    stop_price: Decimal | None = Field(default=None, alias="stopPrice")
    iceberg_qty: Decimal | None = Field(default=None, alias="icebergQty")
    time: MillisTimestamp
    update_time: MillisTimestamp = Field(alias="updateTime")
    is_working: bool = Field(alias="isWorking")
    orig_quote_order_qty: Decimal | None = Field(default=None, alias="origQuoteOrderQty")


class CancelSpotOrderResult(WireModel):
    symbol: str
    orig_client_order_id: str = Field(alias="origClientOrderId")
    order_id: int = Field(alias="orderId")
    order_list_id: int = Field(default=-1, alias="orderListId")
    client_order_id: str = Field(alias="clientOrderId")
    price: Decimal
    orig_qty: Decimal = Field(alias="origQty")
    executed_qty: Decimal = Field(alias="executedQty")
    cumulative_quote_qty: Decimal = Field(alias="cummulativeQuoteQty")
    status: OrderStatus
    time_in_force: TimeInForce = Field(alias="timeInForce")
    type: OrderType
    side: OrderSide
