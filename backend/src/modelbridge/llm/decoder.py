"""Typed chunk decoder.

Turns raw event payloads into the pydantic shape declared by a backend
adapter. Pure functions; no state.
"""

from typing import TypeVar

import pydantic

from ..core.exceptions import DecodeError, UnknownEventError
from .types import EventKind, RawEvent, RawResponse

ShapeT = TypeVar("ShapeT", bound=pydantic.BaseModel)

_PREVIEW_BYTES = 200


def _preview(payload: bytes) -> str:
    return payload[:_PREVIEW_BYTES].decode("utf-8", errors="replace")


def _validate(payload: bytes, shape: type[ShapeT], what: str) -> ShapeT:
    try:
        return shape.model_validate_json(payload)
    except pydantic.ValidationError as e:
        raise DecodeError(
            f"{what} did not match {shape.__name__}",
            details={
                "shape": shape.__name__,
                "errors": e.errors(include_url=False, include_context=False),
                "payload": _preview(payload),
            },
        ) from e


def decode_chunk(event: RawEvent, shape: type[ShapeT]) -> ShapeT:
    """Decode a ``chunk`` event into ``shape``.

    Unknown events are rejected with ``UnknownEventError`` rather than skipped;
    any other non-chunk kind is a caller error and raises ``DecodeError``.
    """
    if event.kind is EventKind.UNKNOWN:
        raise UnknownEventError(event.event_type, details={"event_type": event.event_type, "payload": _preview(event.payload)})
    if event.kind is not EventKind.CHUNK:
        raise DecodeError(f"expected a chunk event, got '{event.kind.value}'")
    return _validate(event.payload, shape, "Stream chunk")


def decode_response(response: RawResponse, shape: type[ShapeT]) -> ShapeT:
    """Decode a complete single-shot response body into ``shape``."""
    return _validate(response.body, shape, "Response body")
