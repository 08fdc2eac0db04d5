"""Shared behaviour of adapters for models served through the managed gateway.

Gateway models take the model id outside of the request body and report no
role on their stream chunks. Every delta is attributed to the assistant and
the invocation's request id serves as the stream identifier. The gateway
appends its own invocation metrics to the final chunk of a stream.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from modelbridge.llm.prompt import Message, messages_to_text_prompt
from modelbridge.llm.types import Usage

from ..adapter_base import BackendCapabilities, BaseBackendAdapter

GATEWAY_ROLE = "assistant"
INVOCATION_METRICS_FIELD = "amazon-bedrock-invocationMetrics"


class InvocationMetrics(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    input_token_count: int = Field(0, alias="inputTokenCount")
    output_token_count: int = Field(0, alias="outputTokenCount")
    first_byte_latency: Optional[int] = Field(None, alias="firstByteLatency")
    invocation_latency: Optional[int] = Field(None, alias="invocationLatency")

    def to_usage(self) -> Usage:
        return Usage(
            prompt_tokens=self.input_token_count,
            completion_tokens=self.output_token_count,
            first_byte_latency_ms=self.first_byte_latency,
            invocation_latency_ms=self.invocation_latency,
        )


def metrics_usage(metrics: Optional[InvocationMetrics]) -> Optional[Usage]:
    return metrics.to_usage() if metrics is not None else None


class GatewayAdapter(BaseBackendAdapter):
    def get_capabilities(self) -> BackendCapabilities:
        return BackendCapabilities(completion=True, streaming=True)

    def get_default_model(self) -> str:
        return self.settings.gateway_default_model

    def render_prompt(self, messages: List[Message]) -> str:
        return messages_to_text_prompt(messages)

    def set_messages_in_payload(self, messages: List[Message], payload: Dict[str, Any]) -> Dict[str, Any]:
        payload["prompt"] = self.render_prompt(messages)
        return payload

    def inject_model_parameter(self, model_value: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        # The gateway takes the model id as a call argument, not a body field.
        return payload
