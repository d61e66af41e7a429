"""
Lenient field types for payloads produced by the language model.

The model is not guaranteed to populate every field, may wrap values as
``{"value": ...}`` and marks absent values with ``NOT_FOUND``. These
annotated types turn all of that into documented defaults instead of
validation errors.
"""

from __future__ import annotations

import math
from typing import Annotated, Any

from pydantic import BeforeValidator

NOT_FOUND = "NOT_FOUND"


def unwrap_value(value: Any) -> Any:
    """Return the wrapped value, or ``None`` when the value is absent."""
    if isinstance(value, dict) and "value" in value:
        value = value["value"]
    if value is None or value == NOT_FOUND:
        return None
    return value


def to_number(value: Any) -> float:
    value = unwrap_value(value)
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, str):
        value = value.strip().replace(",", "")
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if math.isnan(number) or math.isinf(number):
        return 0
    return number


def to_int(value: Any) -> int:
    return int(to_number(value))


def to_optional_text(value: Any) -> str | None:
    value = unwrap_value(value)
    if value is None:
        return None
    return str(value)


def text_or(default: str):
    def _coerce(value: Any) -> str:
        value = unwrap_value(value)
        if value is None or value == "":
            return default
        return str(value)

    return _coerce


def to_text_list(value: Any) -> list[str]:
    value = unwrap_value(value)
    if not isinstance(value, list):
        return []
    items = (unwrap_value(item) for item in value)
    return [str(item) for item in items if item not in (None, "")]


def to_list(value: Any) -> list[Any]:
    value = unwrap_value(value)
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def to_dict(value: Any) -> dict[str, Any]:
    value = unwrap_value(value)
    return value if isinstance(value, dict) else {}


def choice_or(allowed: set[str], default: str):
    def _coerce(value: Any) -> str:
        value = unwrap_value(value)
        if isinstance(value, str) and value.lower() in allowed:
            return value.lower()
        return default

    return _coerce


LenientInt = Annotated[int, BeforeValidator(to_int)]
LenientFloat = Annotated[float, BeforeValidator(to_number)]
LenientText = Annotated[str, BeforeValidator(text_or(""))]
OptionalText = Annotated[str | None, BeforeValidator(to_optional_text)]
TextList = Annotated[list[str], BeforeValidator(to_text_list)]
