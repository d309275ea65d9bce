"""tradewire: typed client for the venue's REST and WebSocket APIs."""

from .client import Client
from .errors import (
    DecodeError,
    HttpError,
    InvalidInputError,
    RequestConstructionError,
    TradewireError,
    TransportError,
)
from .params import encode_params, param, to_params
from .settings import Settings
from .signer import HMACSigner, Signer
from .streams import EventChannel, StreamEvent

__all__ = [
    "Client",
    "Settings",
    "HMACSigner",
    "Signer",
    "EventChannel",
    "StreamEvent",
    "param",
    "to_params",
    "encode_params",
    "TradewireError",
    "InvalidInputError",
    "RequestConstructionError",
    "TransportError",
    "HttpError",
    "DecodeError",
]
