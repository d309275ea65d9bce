"""Query parameter codec.

Request inputs are plain dataclasses. Each field may carry wire metadata
declared with :func:`param`:

- ``name``: the key used in the query string. Defaults to the field name.
  The name ``"-"`` excludes the field entirely.
- ``omitempty``: drop the field when its value is the zero value of its type.
- ``empty_value``: literal emitted in place of a zero value when the field
  is not ``omitempty``.

Fields whose names start with an underscore are never encoded.
"""

from __future__ import annotations

import dataclasses
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping
from urllib.parse import urlencode

from .errors import InvalidInputError

PARAM_KEY = "param"
OMIT = "-"


@dataclasses.dataclass(frozen=True)
class ParamSpec:
    """Wire metadata attached to a dataclass field."""

    name: str | None = None
    omitempty: bool = False
    empty_value: str | None = None


def param(
    name: str | None = None,
    *,
    omitempty: bool = False,
    empty_value: str | None = None,
    default: Any = None,
) -> Any:
    """Declare a dataclass field with query parameter metadata."""
    spec = ParamSpec(name=name, omitempty=omitempty, empty_value=empty_value)
    return dataclasses.field(default=default, metadata={PARAM_KEY: spec})


def is_zero(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, Enum):
        return is_zero(value.value)
    if isinstance(value, (str, bool, int, float, Decimal)):
        return not value
    return False


def render(value: Any) -> str:
    """Render a single value in its canonical wire form."""
    if value is None:
        return ""
    if isinstance(value, Enum):
        return render(value.value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Decimal):
        return format(value, "f")
    return str(value)


def to_params(record: Any) -> dict[str, str]:
    """Convert a dataclass instance into query parameters.

    Raises:
        InvalidInputError: if ``record`` is not a dataclass instance.
    """
    if not dataclasses.is_dataclass(record) or isinstance(record, type):
        raise InvalidInputError(
            f"to_params can only be called on dataclass instances, got {type(record).__name__}"
        )

    out: dict[str, str] = {}
    for f in dataclasses.fields(record):
        if f.name.startswith("_"):
            continue
        spec: ParamSpec = f.metadata.get(PARAM_KEY, ParamSpec())
        name = spec.name or f.name
        if name == OMIT:
            continue

        value = getattr(record, f.name)
        rendered = render(value)
        if is_zero(value):
            if spec.omitempty:
                continue
            if spec.empty_value:
                rendered = spec.empty_value
        out[name] = rendered
    return out


def encode_params(params: Mapping[str, str]) -> str:
    """Encode parameters as a query string with keys in sorted order."""
    return urlencode(sorted(params.items()))
