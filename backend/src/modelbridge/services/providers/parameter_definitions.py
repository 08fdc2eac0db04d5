"""Typed parameter definitions for backend parameter mapping (dataclass-based).

Adapters return these objects keyed by unified option name; ``field`` is the
name the backend expects in its request body. Serialization is handled via
to_dict().
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional


def _serialize(value: Any) -> Any:
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, list):
        return [_serialize(v) for v in value]
    if isinstance(value, dict):
        return {k: _serialize(v) for k, v in value.items()}
    return value


@dataclass
class Option:
    value: Any
    label: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"value": _serialize(self.value)}
        if self.label is not None:
            data["label"] = self.label
        return data


@dataclass
class ParameterBase:
    type: str
    field: Optional[str] = None
    label: Optional[str] = None
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.type}
        if self.field is not None:
            data["field"] = self.field
        if self.label is not None:
            data["label"] = self.label
        if self.description is not None:
            data["description"] = self.description
        return data


@dataclass
class NumberParameter(ParameterBase):
    min: Optional[float] = None
    max: Optional[float] = None
    type: str = field(init=False, default="number")

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        if self.min is not None:
            data["min"] = self.min
        if self.max is not None:
            data["max"] = self.max
        return data


@dataclass
class IntegerParameter(NumberParameter):
    type: str = field(init=False, default="integer")


@dataclass
class StringParameter(ParameterBase):
    type: str = field(init=False, default="string")


@dataclass
class BooleanParameter(ParameterBase):
    type: str = field(init=False, default="boolean")


@dataclass
class ArrayParameter(ParameterBase):
    items: Optional[ParameterBase] = None
    max_items: Optional[int] = None
    type: str = field(init=False, default="array")

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        if self.items is not None:
            data["items"] = _serialize(self.items)
        if self.max_items is not None:
            data["max_items"] = self.max_items
        return data


@dataclass
class EnumParameter(ParameterBase):
    options: List[Option] = field(default_factory=list)
    type: str = field(init=False, default="enum")

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["options"] = [_serialize(o) for o in self.options]
        return data


@dataclass
class ObjectParameter(ParameterBase):
    properties: Mapping[str, ParameterBase] = field(default_factory=dict)
    required: List[str] = field(default_factory=list)
    type: str = field(init=False, default="object")

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        if self.properties:
            data["properties"] = {k: _serialize(v) for k, v in self.properties.items()}
        if self.required:
            data["required"] = list(self.required)
        return data


def serialize_parameter_mapping(mapping: Mapping[str, Any]) -> Dict[str, Any]:
    return {k: _serialize(v) for k, v in (mapping or {}).items()}
