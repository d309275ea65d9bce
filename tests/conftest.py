"""Pytest configuration and fixtures."""

import json
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from tradewire.client import Client
from tradewire.http import HttpResponse

TEST_BASE_URL = "https://example.com"
TEST_WS_URL = "wss://example.com"
TEST_USER_AGENT = "tradewire-tests/1.0"
TEST_API_KEY = "test_api_key_123456"
MOCK_SIGNATURE = "mocksignature"
# 2009-02-13T23:31:30.123Z
CURRENT_TIME_MILLIS = 1234567890123


def mock_now():
    return datetime(2009, 2, 13, 23, 31, 30, 123000, tzinfo=timezone.utc)


def json_response(status=200, payload=None):
    """Create an HttpResponse with a JSON body."""
    return HttpResponse(status=status, body=json.dumps(payload if payload is not None else {}).encode())


@pytest.fixture
def api_key():
    """Test API key."""
    return TEST_API_KEY


@pytest.fixture
def api_secret():
    """Test API secret."""
    return "test_api_secret_789012"


@pytest.fixture
def transport():
    """Transport whose ``do`` is an AsyncMock."""
    mock = MagicMock()
    mock.do = AsyncMock(return_value=json_response(200, {}))
    return mock


@pytest.fixture
def signer():
    """Signer returning a fixed signature."""
    mock = MagicMock()
    mock.sign.return_value = MOCK_SIGNATURE
    return mock


@pytest.fixture
def dialer():
    mock = MagicMock()
    mock.dial = AsyncMock()
    return mock


@pytest.fixture
def client(transport, signer, dialer):
    """Client wired to mocks with a 3 second receive window and a frozen clock."""
    return Client(
        http_api_url=TEST_BASE_URL,
        websocket_api_url=TEST_WS_URL,
        user_agent=TEST_USER_AGENT,
        api_key=TEST_API_KEY,
        recv_window=timedelta(seconds=3),
        signer=signer,
        transport=transport,
        dialer=dialer,
        now=mock_now,
    )


@pytest.fixture
def sample_account_response():
    """Sample account information response."""
    return {
        "makerCommission": 15,
        "takerCommission": 15,
        "buyerCommission": 0,
        "sellerCommission": 0,
        "canTrade": True,
        "canWithdraw": True,
        "canDeposit": True,
        "updateTime": 123456789,
        "accountType": "SPOT",
        "balances": [
            {"asset": "BTC", "free": "4723846.89208129", "locked": "0.00000000"},
            {"asset": "LTC", "free": "4763368.68006011", "locked": "0.00000000"},
        ],
        "permissions": ["SPOT"],
    }


@pytest.fixture
def sample_order_result():
    """Sample FULL response to placing an order."""
    return {
        "symbol": "BTCUSDT",
        "orderId": 28,
        "orderListId": -1,
        "clientOrderId": "6gCrw2kRUAF9CvJDGP16IP",
        "transactTime": 1507725176595,
        "price": "0.00000000",
        "origQty": "10.00000000",
        "executedQty": "10.00000000",
        "cummulativeQuoteQty": "10.00000000",
        "status": "FILLED",
        "timeInForce": "GTC",
        "type": "MARKET",
        "side": "SELL",
        "fills": [
            {
                "price": "4000.00000000",
                "qty": "1.00000000",
                "commission": "4.00000000",
                "commissionAsset": "USDT",
            },
            {
                "price": "3999.00000000",
                "qty": "5.00000000",
                "commission": "19.99500000",
                "commissionAsset": "USDT",
            },
        ],
    }


@pytest.fixture
def sample_spot_order():
    """Sample order as returned by order queries."""
    return {
        "symbol": "LTCBTC",
        "orderId": 1,
        "orderListId": -1,
        "clientOrderId": "myOrder1",
        "price": "0.1",
        "origQty": "1.0",
        "executedQty": "0.0",
        "cummulativeQuoteQty": "0.0",
        "status": "NEW",
        "timeInForce": "GTC",
        "type": "LIMIT",
        "side": "BUY",
        "stopPrice": "0.0",
        "icebergQty": "0.0",
        "time": 1499827319559,
        "updateTime": 1499827319559,
        "isWorking": True,
        "origQuoteOrderQty": "0.000000",
    }


@pytest.fixture
def sample_cancel_result():
    """Sample response to cancelling an order."""
    return {
        "symbol": "LTCBTC",
        "origClientOrderId": "myOrder1",
        "orderId": 4,
        "orderListId": -1,
        "clientOrderId": "cancelMyOrder1",
        "price": "2.00000000",
        "origQty": "1.00000000",
        "executedQty": "0.00000000",
        "cummulativeQuoteQty": "0.00000000",
        "status": "CANCELED",
        "timeInForce": "GTC",
        "type": "LIMIT",
        "side": "BUY",
    }
