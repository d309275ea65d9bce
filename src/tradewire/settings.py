from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, SecretStr


class ProxySettings(BaseModel):
    enabled: bool = False
    url: str | None = None
    username: str | None = None
    password: SecretStr | None = None

    model_config = {"extra": "forbid"}

    @property
    def proxy_url(self) -> str | None:
        if not self.url:
            return None
        if self.username and self.password:
            scheme, sep, rest = self.url.partition("://")
            if not sep:
                scheme, rest = "http", self.url
            return f"{scheme}://{self.username}:{self.password.get_secret_value()}@{rest}"
        return self.url


class Credentials(BaseModel):
    api_key: SecretStr
    api_secret: SecretStr

    model_config = {"extra": "forbid"}


class Settings(BaseModel):
    env: str = "dev"
    http_api_url: str = "https://api.binance.com"
    websocket_api_url: str = "wss://stream.binance.com:9443"
    user_agent: str = "tradewire/0.1"
    recv_window_ms: int = Field(default=5000, ge=0)
    request_timeout: float = Field(default=10.0, gt=0)
    credentials: Credentials | None = None
    proxy: ProxySettings = Field(default_factory=ProxySettings)

    model_config = {"extra": "forbid"}

    def redacted(self) -> dict[str, Any]:
        data = self.model_dump(mode="json")
        creds = data.get("credentials")
        if isinstance(creds, dict):
            for key in ("api_key", "api_secret"):
                if key in creds:
                    creds[key] = "***"
        proxy = data.get("proxy")
        if isinstance(proxy, dict) and proxy.get("password") is not None:
            proxy["password"] = "***"
        return data
