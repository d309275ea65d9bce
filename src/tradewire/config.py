"""Settings loading: YAML file plus ``TRADEWIRE_`` environment overrides.

``TRADEWIRE_CREDENTIALS__API_KEY=abc`` sets ``credentials.api_key``;
double underscores separate nesting levels. Values are parsed as YAML
scalars, so ``TRADEWIRE_RECV_WINDOW_MS=3000`` arrives as an integer.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .settings import Settings

logger = logging.getLogger(__name__)

ENV_PREFIX = "TRADEWIRE_"
DEFAULT_CONFIG = "config.yml"
_RESERVED = {"CONFIG", "LOG_LEVEL"}
# Leaves passed through as raw strings, never YAML-parsed.
_VERBATIM_LEAVES = {"api_key", "api_secret", "password", "username"}


def _set_path(target: dict[str, Any], path: list[str], value: Any) -> None:
    node = target
    for key in path[:-1]:
        child = node.get(key)
        if not isinstance(child, dict):
            child = {}
            node[key] = child
        node = child
    node[path[-1]] = value


def _coerce(raw: str) -> Any:
    try:
        return yaml.safe_load(raw)
    except yaml.YAMLError:
        return raw


def env_overrides(environ: dict[str, str] | None = None, *, prefix: str = ENV_PREFIX) -> dict[str, Any]:
    """Collect nested overrides from environment variables starting with ``prefix``."""
    environ = dict(os.environ) if environ is None else environ
    overrides: dict[str, Any] = {}
    for key, raw_value in environ.items():
        if not key.startswith(prefix):
            continue
        remainder = key[len(prefix):]
        if remainder in _RESERVED:
            continue
        path = [part.lower() for part in remainder.split("__") if part]
        if path:
            value = raw_value if path[-1] in _VERBATIM_LEAVES else _coerce(raw_value)
            _set_path(overrides, path, value)
    return overrides


def _merge(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Load settings from ``config_path`` (or ``TRADEWIRE_CONFIG``) and the environment.

    A missing file is not an error; defaults and environment values apply.

    Raises:
        ValueError: if the file is not a mapping or the result fails validation.
    """
    if config_path is None:
        config_path = os.environ.get(f"{ENV_PREFIX}CONFIG", DEFAULT_CONFIG)

    path = Path(config_path)
    data: dict[str, Any] = {}
    if path.exists():
        loaded = yaml.safe_load(path.read_text(encoding="utf-8"))
        if isinstance(loaded, dict):
            data = loaded
        elif loaded is not None:
            raise ValueError(f"Config root must be a mapping, got: {type(loaded)!r}")
    else:
        logger.debug("config file %s not found, using defaults", path)

    data = _merge(data, env_overrides())

    try:
        return Settings.model_validate(data)
    except ValidationError as exc:
        raise ValueError(f"Invalid configuration: {exc}") from exc
