from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from modelbridge.llm.normalizer import completed_generation
from modelbridge.llm.prompt import Message
from modelbridge.llm.types import BackendKind, ChunkDelta, FinishReason, GenerationSet, StreamState

from ..adapter_base import BackendInformation, register_adapter
from ..parameter_definitions import ArrayParameter, IntegerParameter, NumberParameter, StringParameter
from .gateway_adapter import GATEWAY_ROLE, INVOCATION_METRICS_FIELD, GatewayAdapter, InvocationMetrics, metrics_usage

ANTHROPIC_VERSION = "bedrock-2023-05-31"
DEFAULT_MAX_TOKENS_TO_SAMPLE = 300


class AnthropicStreamChunk(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    completion: str = ""
    stop_reason: Optional[str] = None
    stop: Optional[str] = None
    invocation_metrics: Optional[InvocationMetrics] = Field(None, alias=INVOCATION_METRICS_FIELD)


class AnthropicResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    completion: str = ""
    stop_reason: Optional[str] = None
    stop: Optional[str] = None


class AnthropicGatewayAdapter(GatewayAdapter):
    """Anthropic Claude text-completion models on the managed gateway."""

    kind = BackendKind.GATEWAY_ANTHROPIC
    chunk_shape = AnthropicStreamChunk
    response_shape = AnthropicResponse

    def get_backend_information(self) -> BackendInformation:
        return BackendInformation(key=self.kind.value, display_name="Anthropic Claude (gateway)")

    def get_parameter_mapping(self) -> Dict[str, Any]:
        return {
            "temperature": NumberParameter(min=0, max=1, label="Temperature"),
            "top_p": NumberParameter(min=0, max=1, label="Top P"),
            "top_k": IntegerParameter(min=0, label="Top K"),
            "max_tokens": IntegerParameter(field="max_tokens_to_sample", min=1, label="Max Tokens To Sample"),
            "stop": ArrayParameter(field="stop_sequences", items=StringParameter(), label="Stop Sequences"),
        }

    def get_parameter_defaults(self) -> Dict[str, Any]:
        defaults = super().get_parameter_defaults()
        if defaults.get("max_tokens") is None:
            defaults["max_tokens"] = DEFAULT_MAX_TOKENS_TO_SAMPLE
        return defaults

    def get_finish_reason_mapping(self) -> Dict[str, FinishReason]:
        return {
            "stop_sequence": FinishReason.STOP,
            "end_turn": FinishReason.STOP,
            "max_tokens": FinishReason.LENGTH,
        }

    def render_prompt(self, messages: List[Message]) -> str:
        text = super().render_prompt(messages)
        # Claude text completions expect every Human turn to start on a blank line.
        if not messages or messages[0].role != "system":
            text = "\n\n" + text
        return text

    def set_messages_in_payload(self, messages: List[Message], payload: Dict[str, Any]) -> Dict[str, Any]:
        payload = super().set_messages_in_payload(messages, payload)
        payload["anthropic_version"] = ANTHROPIC_VERSION
        return payload

    def inject_streaming_parameter(self, should_stream: bool, payload: Dict[str, Any]) -> Dict[str, Any]:
        # Streaming is selected by the gateway operation, not by a body field.
        return payload

    def chunk_deltas(self, chunk: AnthropicStreamChunk, state: StreamState) -> List[ChunkDelta]:
        return [
            ChunkDelta(
                stream_id=state.stream_id,
                text=chunk.completion,
                role=GATEWAY_ROLE,
                finish_reason=self.normalize_finish_reason(chunk.stop_reason),
                raw_finish_reason=chunk.stop_reason,
                usage=metrics_usage(chunk.invocation_metrics) if chunk.stop_reason else None,
            )
        ]

    def normalize_completion(self, response: AnthropicResponse) -> GenerationSet:
        generation = completed_generation(
            text=response.completion,
            role=GATEWAY_ROLE,
            index=0,
            finish_reason=self.normalize_finish_reason(response.stop_reason),
            raw_finish_reason=response.stop_reason,
        )
        return GenerationSet(generations=(generation,))


register_adapter(BackendKind.GATEWAY_ANTHROPIC, AnthropicGatewayAdapter)
