"""Request signing."""

from __future__ import annotations

import hashlib
import hmac
from typing import Protocol


class Signer(Protocol):
    """Produces the signature sent alongside authenticated requests."""

    def sign(self, payload: str) -> str:
        ...


class HMACSigner:
    """HMAC-SHA256 signer keyed with the account's API secret."""

    def __init__(self, secret: str):
        self._secret = secret.encode()

    def sign(self, payload: str) -> str:
        """Return the lowercase hex HMAC-SHA256 digest of ``payload``."""
        return hmac.new(self._secret, payload.encode(), hashlib.sha256).hexdigest()

    def __repr__(self) -> str:
        return "HMACSigner(secret=***)"
