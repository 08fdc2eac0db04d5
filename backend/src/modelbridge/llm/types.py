"""Value types shared by the transports, the stream bridge and the adapters."""

import uuid
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any


class BackendKind(str, Enum):
    """Closed set of supported backend/model families."""

    OPENAI_CHAT = "openai_chat"
    GATEWAY_COHERE = "gateway_cohere"
    GATEWAY_ANTHROPIC = "gateway_anthropic"


class EventKind(str, Enum):
    CHUNK = "chunk"
    ERROR = "error"
    COMPLETE = "complete"
    UNKNOWN = "unknown"


class FinishReason(str, Enum):
    """Normalized finish reasons across backends."""

    STOP = "stop"
    LENGTH = "length"
    TOOL_CALLS = "tool_calls"
    CONTENT_FILTER = "content_filter"
    ERROR = "error"
    OTHER = "other"


@dataclass(frozen=True)
class InvocationRequest:
    """Backend payload already serialized by a request builder."""

    backend: BackendKind
    model: str
    body: bytes
    stream: bool = False
    request_id: str = field(default_factory=lambda: uuid.uuid4().hex)


@dataclass(frozen=True)
class RawEvent:
    """One event as received from a backend transport, before decoding."""

    kind: EventKind
    payload: bytes = b""
    event_type: str | None = None


@dataclass(frozen=True)
class RawResponse:
    body: bytes
    headers: Mapping[str, str] = field(default_factory=dict)
    status_code: int = 200


@dataclass(frozen=True)
class Usage:
    """Token counts and latencies, independent of backend field names."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int | None = None
    first_byte_latency_ms: int | None = None
    invocation_latency_ms: int | None = None

    def __post_init__(self) -> None:
        if self.total_tokens is None:
            object.__setattr__(self, "total_tokens", self.prompt_tokens + self.completion_tokens)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "prompt_tokens": self.prompt_tokens,
            "completion_tokens": self.completion_tokens,
            "total_tokens": self.total_tokens,
        }
        if self.first_byte_latency_ms is not None:
            data["first_byte_latency_ms"] = self.first_byte_latency_ms
        if self.invocation_latency_ms is not None:
            data["invocation_latency_ms"] = self.invocation_latency_ms
        return data


@dataclass(frozen=True)
class RateLimit:
    """Rate-limit state reported by the HTTP chat API. Reset values are in seconds."""

    requests_limit: int | None = None
    requests_remaining: int | None = None
    requests_reset: float | None = None
    tokens_limit: int | None = None
    tokens_remaining: int | None = None
    tokens_reset: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {k: v for k, v in self.__dict__.items() if v is not None}


@dataclass(frozen=True)
class GenerationMetadata:
    """Completion metadata attached to the final Generation of a choice."""

    finish_reason: FinishReason
    raw_finish_reason: str | None = None
    usage: Usage | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"finish_reason": self.finish_reason.value}
        if self.raw_finish_reason is not None:
            data["raw_finish_reason"] = self.raw_finish_reason
        if self.usage is not None:
            data["usage"] = self.usage.to_dict()
        return data


@dataclass(frozen=True)
class Generation:
    text: str
    role: str | None = None
    index: int = 0
    metadata: GenerationMetadata | None = None

    @property
    def is_final(self) -> bool:
        return self.metadata is not None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"text": self.text, "role": self.role, "index": self.index}
        if self.metadata is not None:
            data["metadata"] = self.metadata.to_dict()
        return data


@dataclass(frozen=True)
class GenerationSet:
    """Ordered generations of one response, or of one streamed increment."""

    generations: tuple[Generation, ...] = ()
    response_id: str | None = None
    model: str | None = None
    usage: Usage | None = None
    rate_limit: RateLimit | None = None

    def __iter__(self) -> Iterator[Generation]:
        return iter(self.generations)

    def __len__(self) -> int:
        return len(self.generations)

    def __getitem__(self, index: int) -> Generation:
        return self.generations[index]

    def with_rate_limit(self, rate_limit: RateLimit | None) -> "GenerationSet":
        return replace(self, rate_limit=rate_limit)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.response_id,
            "model": self.model,
            "generations": [g.to_dict() for g in self.generations],
            "usage": self.usage.to_dict() if self.usage else None,
            "rate_limit": self.rate_limit.to_dict() if self.rate_limit else None,
        }


@dataclass(frozen=True)
class ChunkDelta:
    """One choice's worth of a decoded stream chunk."""

    stream_id: str
    text: str
    index: int = 0
    role: str | None = None
    finish_reason: FinishReason | None = None
    raw_finish_reason: str | None = None
    usage: Usage | None = None


@dataclass(frozen=True)
class AttributedChunk:
    """A ChunkDelta with its role resolved and, at most once per stream, completion metadata."""

    stream_id: str
    text: str
    role: str
    index: int = 0
    completion: GenerationMetadata | None = None


@dataclass
class StreamState:
    """Mutable state owned by exactly one streaming invocation.

    ``roles`` maps stream identifier to the first role observed for it.
    ``completed`` holds the (stream identifier, choice index) pairs that
    already produced their completion-tagged chunk. ``terminated`` is set once
    a terminal event was delivered or the consumer went away; any backend
    callback after that is dropped.
    """

    stream_id: str
    roles: dict[str, str] = field(default_factory=dict)
    completed: set[tuple[str, int]] = field(default_factory=set)
    terminated: bool = False

    def release(self) -> None:
        self.terminated = True
        self.roles.clear()
        self.completed.clear()
