"""Exception hierarchy for the tradewire client."""

from __future__ import annotations


class TradewireError(Exception):
    """Base class for all errors raised by tradewire."""


class InvalidInputError(TradewireError):
    """An argument cannot be encoded. Always a programming error."""


class RequestConstructionError(TradewireError):
    """A request could not be built from its inputs."""


class TransportError(TradewireError):
    """The underlying HTTP call or socket could not complete."""


class DecodeError(TradewireError):
    """A response body or stream frame did not match the expected shape."""


class HttpError(TradewireError):
    """Returned when the venue answers with a non-200 status.

    ``error_code`` and ``message`` come from the venue's error body when it
    could be decoded; otherwise they are ``0`` and ``""``.
    """

    def __init__(self, status_code: int, error_code: int = 0, message: str = ""):
        self.status_code = status_code
        self.error_code = error_code
        self.message = message
        super().__init__(str(self))

    def __str__(self) -> str:
        return (
            f"got status {self.status_code} from binance. "
            f"error code was {self.error_code}: {self.message}"
        )

    def __repr__(self) -> str:
        return (
            f"HttpError(status_code={self.status_code!r}, "
            f"error_code={self.error_code!r}, message={self.message!r})"
        )
