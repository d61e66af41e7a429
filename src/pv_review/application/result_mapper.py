from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from src.pv_review.domain.exceptions import MalformedResultError

ModelT = TypeVar("ModelT", bound=BaseModel)


def decode_payload(raw: Any) -> dict[str, Any]:
    """Decode a raw task result into a mapping, raising only when it is not well-formed."""
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise MalformedResultError("Result is not valid UTF-8") from exc
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise MalformedResultError("Invalid AI response format") from exc
    if not isinstance(raw, Mapping):
        raise MalformedResultError(f"Expected a JSON object, got {type(raw).__name__}")
    return dict(raw)


def map_result(raw: Any, shape: type[ModelT]) -> ModelT:
    """
    Reshape a raw task result into ``shape``.

    Absent, null and ``NOT_FOUND`` fields receive the defaults declared on the
    shape and numbers are coerced, so missing data never raises.
    """
    payload = decode_payload(raw)
    try:
        return shape.model_validate(payload)
    except ValidationError as exc:
        raise MalformedResultError(f"Result does not match {shape.__name__}") from exc
