"""Backend adapter base interface and registry.

Adapters encapsulate everything backend-specific: how a prompt becomes a
request body, which pydantic shapes chunks and responses decode into, how a
decoded chunk splits into per-choice deltas and how backend finish reasons
and usage fields map to the unified ones. There is one adapter per
``BackendKind``; the registry is keyed by that closed enum.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Type, Union

from pydantic import BaseModel

from modelbridge.core.config import Settings, get_settings_instance
from modelbridge.core.logging import get_logger
from modelbridge.llm.param_mapping import build_backend_params
from modelbridge.llm.prompt import Message, Prompt
from modelbridge.llm.types import (
    BackendKind,
    ChunkDelta,
    FinishReason,
    GenerationSet,
    InvocationRequest,
    StreamState,
    Usage,
)
from modelbridge.services.providers.parameter_definitions import serialize_parameter_mapping

logger = get_logger(__name__)


@dataclass
class BackendInformation:
    key: str
    display_name: str


@dataclass
class BackendCapabilities:
    completion: bool = True
    streaming: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "completion": {"value": self.completion, "label": "Supports Single-Shot Completion"},
            "streaming": {"value": self.streaming, "label": "Supports Streaming"},
        }


class BaseBackendAdapter:
    """Base class for backend adapters.

    Subclasses set ``kind``, ``chunk_shape`` and ``response_shape`` and
    override the request-building and normalization hooks.
    """

    kind: BackendKind
    chunk_shape: Type[BaseModel]
    response_shape: Type[BaseModel]

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings_instance()

    # GENERAL BACKEND SETTINGS
    def get_backend_information(self) -> BackendInformation:
        raise NotImplementedError("Function get_backend_information is not implemented.")

    def get_capabilities(self) -> BackendCapabilities:
        raise NotImplementedError("Function get_capabilities is not implemented.")

    def get_default_model(self) -> str:
        raise NotImplementedError("Function get_default_model is not implemented.")

    def get_parameter_mapping(self) -> Dict[str, Any]:
        return {}

    def get_parameter_defaults(self) -> Dict[str, Any]:
        return {
            "temperature": self.settings.llm_temperature_default,
            "max_tokens": self.settings.llm_max_tokens_default,
        }

    def get_finish_reason_mapping(self) -> Dict[str, FinishReason]:
        return {}

    # REQUEST BUILDING
    def build_request(self, prompt: Prompt, model: Optional[str] = None, stream: bool = False) -> InvocationRequest:
        """Serialize ``prompt`` into this backend's request body."""
        model = model or self.get_default_model()

        payload: Dict[str, Any] = {}
        payload = self.set_messages_in_payload(prompt.messages, payload)
        payload.update(
            build_backend_params(
                serialize_parameter_mapping(self.get_parameter_mapping()),
                self.get_parameter_defaults(),
                prompt.options.as_params(),
                prompt.options.extra,
            )
        )
        payload = self.inject_model_parameter(model, payload)
        payload = self.inject_streaming_parameter(stream, payload)

        logger.debug("Built %s request for model %s (stream=%s)", self.kind.value, model, stream)
        return InvocationRequest(
            backend=self.kind,
            model=model,
            body=json.dumps(payload).encode("utf-8"),
            stream=stream,
        )

    def set_messages_in_payload(self, messages: List[Message], payload: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError("Function set_messages_in_payload is not implemented.")

    def inject_model_parameter(self, model_value: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        payload["model"] = model_value
        return payload

    def inject_streaming_parameter(self, should_stream: bool, payload: Dict[str, Any]) -> Dict[str, Any]:
        payload["stream"] = should_stream
        return payload

    # RESPONSE HANDLERS
    def normalize_finish_reason(self, raw: Optional[str]) -> Optional[FinishReason]:
        if raw is None:
            return None
        mapped = self.get_finish_reason_mapping().get(raw)
        if mapped is None:
            logger.debug("Unmapped finish reason '%s' from %s", raw, self.kind.value)
            return FinishReason.OTHER
        return mapped

    def chunk_deltas(self, chunk: BaseModel, state: StreamState) -> List[ChunkDelta]:
        raise NotImplementedError("Function chunk_deltas is not implemented.")

    def chunk_response_id(self, chunk: BaseModel, state: StreamState) -> Optional[str]:
        return state.stream_id

    def chunk_usage(self, chunk: BaseModel) -> Optional[Usage]:
        """Usage reported by a chunk that carries no choice at all, if the backend sends one."""
        return None

    def normalize_completion(self, response: BaseModel) -> GenerationSet:
        raise NotImplementedError("Function normalize_completion is not implemented.")


# Registry mapping backend kind -> adapter class
_ADAPTERS: Dict[BackendKind, Type[BaseBackendAdapter]] = {}


def register_adapter(kind: BackendKind, cls: Type[BaseBackendAdapter]) -> None:
    _ADAPTERS[kind] = cls


def get_adapter(kind: Union[BackendKind, str], settings: Optional[Settings] = None) -> BaseBackendAdapter:
    kind = BackendKind(kind)
    if kind not in _ADAPTERS:
        registered = ", ".join(k.value for k in registered_backends()) or "none"
        raise KeyError(f"No adapter registered for backend '{kind.value}' (registered: {registered})")
    return _ADAPTERS[kind](settings)


def registered_backends() -> List[BackendKind]:
    return list(_ADAPTERS)
