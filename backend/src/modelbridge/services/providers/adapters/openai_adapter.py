from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from modelbridge.core.logging import get_logger
from modelbridge.llm.normalizer import completed_generation
from modelbridge.llm.prompt import Message
from modelbridge.llm.types import BackendKind, ChunkDelta, FinishReason, GenerationSet, StreamState, Usage
from ..adapter_base import (
    BackendCapabilities,
    BackendInformation,
    BaseBackendAdapter,
    register_adapter,
)
from ..parameter_definitions import ArrayParameter, IntegerParameter, NumberParameter, StringParameter

logger = get_logger(__name__)


class _Shape(BaseModel):
    model_config = ConfigDict(extra="ignore")


class OpenAIUsage(_Shape):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: Optional[int] = None


class OpenAIDelta(_Shape):
    role: Optional[str] = None
    content: Optional[str] = None


class OpenAIChunkChoice(_Shape):
    index: int = 0
    delta: OpenAIDelta = Field(default_factory=OpenAIDelta)
    finish_reason: Optional[str] = None


class OpenAIChatChunk(_Shape):
    """One ``chat.completion.chunk`` object of a streamed response."""

    id: str
    model: Optional[str] = None
    choices: List[OpenAIChunkChoice] = Field(default_factory=list)
    usage: Optional[OpenAIUsage] = None


class OpenAIMessage(_Shape):
    role: str = "assistant"
    content: Optional[str] = None


class OpenAIChoice(_Shape):
    index: int = 0
    message: OpenAIMessage
    finish_reason: Optional[str] = None


class OpenAIChatCompletion(_Shape):
    id: str
    model: Optional[str] = None
    choices: List[OpenAIChoice] = Field(default_factory=list)
    usage: Optional[OpenAIUsage] = None


def _usage(usage: Optional[OpenAIUsage]) -> Optional[Usage]:
    if usage is None:
        return None
    return Usage(
        prompt_tokens=usage.prompt_tokens,
        completion_tokens=usage.completion_tokens,
        total_tokens=usage.total_tokens,
    )


class OpenAIChatAdapter(BaseBackendAdapter):
    kind = BackendKind.OPENAI_CHAT
    chunk_shape = OpenAIChatChunk
    response_shape = OpenAIChatCompletion

    # General backend information
    def get_backend_information(self) -> BackendInformation:
        return BackendInformation(key=self.kind.value, display_name="OpenAI Chat Completions")

    def get_capabilities(self) -> BackendCapabilities:
        return BackendCapabilities(completion=True, streaming=True)

    def get_default_model(self) -> str:
        return self.settings.default_llm_model

    def get_parameter_mapping(self) -> Dict[str, Any]:
        return {
            "temperature": NumberParameter(min=0, max=2, label="Temperature"),
            "top_p": NumberParameter(min=0, max=1, label="Top P"),
            "max_tokens": IntegerParameter(min=1, label="Max Tokens"),
            "stop": ArrayParameter(items=StringParameter(), max_items=4, label="Stop Sequences"),
            "n": IntegerParameter(min=1, label="Choices"),
        }

    def get_finish_reason_mapping(self) -> Dict[str, FinishReason]:
        return {
            "stop": FinishReason.STOP,
            "length": FinishReason.LENGTH,
            "tool_calls": FinishReason.TOOL_CALLS,
            "function_call": FinishReason.TOOL_CALLS,
            "content_filter": FinishReason.CONTENT_FILTER,
        }

    def set_messages_in_payload(self, messages: List[Message], payload: Dict[str, Any]) -> Dict[str, Any]:
        payload["messages"] = [{"role": m.role, "content": m.content} for m in messages]
        return payload

    def inject_streaming_parameter(self, should_stream: bool, payload: Dict[str, Any]) -> Dict[str, Any]:
        payload["stream"] = should_stream
        if should_stream:
            payload["stream_options"] = {"include_usage": True}
        return payload

    # Response handlers
    def chunk_deltas(self, chunk: OpenAIChatChunk, state: StreamState) -> List[ChunkDelta]:
        usage = _usage(chunk.usage)
        if not chunk.choices:
            # The trailing usage-only chunk of ``include_usage`` streams carries no choice.
            logger.debug("Skipping choice-less chunk %s", chunk.id)
            return []

        return [
            ChunkDelta(
                stream_id=chunk.id,
                index=choice.index,
                text=choice.delta.content or "",
                role=choice.delta.role,
                finish_reason=self.normalize_finish_reason(choice.finish_reason),
                raw_finish_reason=choice.finish_reason,
                usage=usage if choice.finish_reason is not None else None,
            )
            for choice in chunk.choices
        ]

    def chunk_response_id(self, chunk: OpenAIChatChunk, state: StreamState) -> Optional[str]:
        return chunk.id

    def chunk_usage(self, chunk: OpenAIChatChunk) -> Optional[Usage]:
        return _usage(chunk.usage) if not chunk.choices else None

    def normalize_completion(self, response: OpenAIChatCompletion) -> GenerationSet:
        usage = _usage(response.usage)
        generations = tuple(
            completed_generation(
                text=choice.message.content,
                role=choice.message.role,
                index=choice.index,
                finish_reason=self.normalize_finish_reason(choice.finish_reason),
                raw_finish_reason=choice.finish_reason,
                usage=usage,
            )
            for choice in sorted(response.choices, key=lambda c: c.index)
        )
        return GenerationSet(generations=generations, response_id=response.id, model=response.model, usage=usage)


register_adapter(BackendKind.OPENAI_CHAT, OpenAIChatAdapter)
