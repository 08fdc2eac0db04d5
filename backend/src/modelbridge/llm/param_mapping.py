"""Parameter normalization and mapping layer.

Merges configured defaults with per-call generation options, validates them
against the serialized parameter mapping of a backend adapter, and renames
them to the backend's request field names.

Key policies:
- Per-call values override defaults; keys with None values are omitted
- Only options the backend declares are mapped; undeclared unified options are dropped
- ``extra`` parameters the backend declares are validated and renamed like any
  other option; undeclared ones are passed through as-is

This module does not perform any network I/O.
"""

from __future__ import annotations

from typing import Any

from ..core.exceptions import ValidationError
from ..core.logging import get_logger

logger = get_logger(__name__)

_ALLOWED_TYPES = {
    "number": (int, float),
    "integer": (int,),
    "string": (str,),
    "boolean": (bool,),
    "array": (list,),
    "object": (dict,),
    # "enum" is validated via the given options
    "enum": None,
}


def _options_values(definition: dict[str, Any]) -> list | None:
    options = definition.get("options")
    if not isinstance(options, list):
        return None
    return [opt.get("value") for opt in options if isinstance(opt, dict) and "value" in opt]


def _validate_single(key: str, value: Any, definition: dict[str, Any]) -> None:
    """Validate a single normalized parameter value against its parameter definition.

    Definition fields honored:
    - type: one of number|integer|string|boolean|array|object|enum
    - min, max: numeric bounds (inclusive) for number/integer
    - max_items: upper bound on array length
    - options: allowed values for enum
    - properties, required: nested definitions for object
    """
    t = definition.get("type")
    if t is None:
        return

    if t not in _ALLOWED_TYPES:
        raise ValidationError(f"Unsupported type '{t}' for parameter '{key}'", details={"param": key, "type": t})

    if t == "enum":
        option_values = _options_values(definition)
        if not option_values:
            raise ValidationError(f"Enum parameter '{key}' is missing 'options' in mapping", details={"param": key})
        if value not in option_values:
            raise ValidationError(
                f"Invalid enum value for '{key}': {value}",
                details={"param": key, "allowed": option_values},
            )
        return

    # bool is an int subclass; never accept it for numeric parameters
    if not isinstance(value, _ALLOWED_TYPES[t]) or (t in ("number", "integer") and isinstance(value, bool)):
        raise ValidationError(
            f"Parameter '{key}' expects type {t}",
            details={"param": key, "expected": t, "actual": type(value).__name__},
        )

    if t in ("number", "integer"):
        lower = definition.get("min")
        upper = definition.get("max")
        if lower is not None and value < lower:
            raise ValidationError(
                f"Parameter '{key}' must be >= {lower}",
                details={"param": key, "min": lower, "value": value},
            )
        if upper is not None and value > upper:
            raise ValidationError(
                f"Parameter '{key}' must be <= {upper}",
                details={"param": key, "max": upper, "value": value},
            )

    if t == "array":
        max_items = definition.get("max_items")
        if max_items is not None and len(value) > max_items:
            raise ValidationError(
                f"Parameter '{key}' accepts at most {max_items} items",
                details={"param": key, "max_items": max_items, "actual": len(value)},
            )

    if t == "object":
        properties = definition.get("properties") or {}
        missing = [name for name in definition.get("required") or [] if value.get(name) is None]
        if missing:
            raise ValidationError(
                f"Parameter '{key}' is missing required fields: {', '.join(missing)}",
                details={"param": key, "missing": missing},
            )
        for name, nested in value.items():
            if name in properties and nested is not None:
                _validate_single(f"{key}.{name}", nested, properties[name])


def build_backend_params(
    parameter_mapping: dict[str, Any] | None,
    defaults: dict[str, Any] | None,
    request_params: dict[str, Any] | None,
    extra: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Return the request-body fields for the given options.

    ``parameter_mapping`` is the serialized mapping of an adapter, keyed by
    unified option name.
    """
    mapping = parameter_mapping or {}
    normalized: dict[str, Any] = {}

    for source in (defaults or {}, request_params or {}):
        for key, value in source.items():
            if value is None:
                continue
            normalized[key] = value

    payload: dict[str, Any] = {}
    for key, value in normalized.items():
        definition = mapping.get(key)
        if definition is None:
            logger.debug("Dropping option '%s': not supported by this backend", key)
            continue
        _validate_single(key, value, definition)
        payload[definition.get("field") or key] = value

    for key, value in (extra or {}).items():
        if value is None:
            continue
        definition = mapping.get(key)
        if definition is not None:
            _validate_single(key, value, definition)
            payload[definition.get("field") or key] = value
        else:
            payload[key] = value

    return payload
