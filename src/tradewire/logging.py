from __future__ import annotations

import logging
import logging.handlers
import os
import re
from pathlib import Path

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are far too chatty at DEBUG.
_NOISY_LOGGERS = ("aiohttp.access", "aiohttp.client", "aiohttp.websocket", "asyncio")

_SECRET_PATTERN = re.compile(r"(signature=|X-MBX-APIKEY['\"]?\s*[:=]\s*['\"]?)[^&\s'\",}]+", re.IGNORECASE)


class SecretMaskingFilter(logging.Filter):
    """Masks request signatures and API key headers in formatted messages."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        masked = _SECRET_PATTERN.sub(r"\1***", message)
        if masked != message:
            record.msg = masked
            record.args = None
        return True


def configure_logging(log_dir: Path | None = None, level: str | None = None) -> None:
    """Set up console logging and, when ``log_dir`` is given, a rotating log file.

    The level comes from ``level``, then ``TRADEWIRE_LOG_LEVEL``, then INFO.
    Every handler masks signatures and API keys.
    """
    level_name = (level or os.environ.get("TRADEWIRE_LOG_LEVEL", "INFO")).upper()
    resolved = getattr(logging, level_name, logging.INFO)

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    masking = SecretMaskingFilter()

    root_logger = logging.getLogger()
    root_logger.setLevel(resolved)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_dir:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.handlers.RotatingFileHandler(
            log_dir / "tradewire.log",
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        ))
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(masking)
        root_logger.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(resolved, logging.WARNING))
