from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from modelbridge.llm.normalizer import completed_generation
from modelbridge.llm.types import BackendKind, ChunkDelta, FinishReason, GenerationSet, StreamState

from ..adapter_base import BackendInformation, register_adapter
from ..parameter_definitions import (
    ArrayParameter,
    EnumParameter,
    IntegerParameter,
    NumberParameter,
    ObjectParameter,
    Option,
    StringParameter,
)
from .gateway_adapter import GATEWAY_ROLE, INVOCATION_METRICS_FIELD, GatewayAdapter, InvocationMetrics, metrics_usage


class CohereStreamChunk(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    text: str = ""
    is_finished: bool = False
    finish_reason: Optional[str] = None
    index: int = 0
    invocation_metrics: Optional[InvocationMetrics] = Field(None, alias=INVOCATION_METRICS_FIELD)


class CohereGeneration(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    text: str = ""
    index: Optional[int] = None
    finish_reason: Optional[str] = None


class CohereResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    prompt: Optional[str] = None
    generations: List[CohereGeneration] = Field(default_factory=list)


class CohereGatewayAdapter(GatewayAdapter):
    """Cohere command models on the managed gateway."""

    kind = BackendKind.GATEWAY_COHERE
    chunk_shape = CohereStreamChunk
    response_shape = CohereResponse

    def get_backend_information(self) -> BackendInformation:
        return BackendInformation(key=self.kind.value, display_name="Cohere Command (gateway)")

    def get_parameter_mapping(self) -> Dict[str, Any]:
        return {
            "temperature": NumberParameter(min=0, max=5, label="Temperature"),
            "top_p": NumberParameter(field="p", min=0, max=1, label="Top P"),
            "top_k": IntegerParameter(field="k", min=0, max=500, label="Top K"),
            "max_tokens": IntegerParameter(min=1, label="Max Tokens"),
            "stop": ArrayParameter(field="stop_sequences", items=StringParameter(), label="Stop Sequences"),
            "n": IntegerParameter(field="num_generations", min=1, max=5, label="Generations"),
            "return_likelihoods": EnumParameter(
                options=[Option("GENERATION"), Option("ALL"), Option("NONE")],
                label="Return Likelihoods",
            ),
            "truncate": EnumParameter(
                options=[Option("NONE"), Option("START"), Option("END")],
                label="Truncate",
            ),
            # Bias applied to one token: {"token": ..., "bias": ...}
            "logit_bias": ObjectParameter(
                properties={"token": StringParameter(), "bias": NumberParameter(min=-10, max=10)},
                required=["token", "bias"],
                label="Logit Bias",
            ),
        }

    def get_finish_reason_mapping(self) -> Dict[str, FinishReason]:
        return {
            "COMPLETE": FinishReason.STOP,
            "MAX_TOKENS": FinishReason.LENGTH,
            "ERROR": FinishReason.ERROR,
            "ERROR_TOXIC": FinishReason.CONTENT_FILTER,
        }

    def chunk_deltas(self, chunk: CohereStreamChunk, state: StreamState) -> List[ChunkDelta]:
        if chunk.is_finished:
            # The closing chunk carries no text, only the finish reason and gateway metrics.
            raw = chunk.finish_reason or "COMPLETE"
            return [
                ChunkDelta(
                    stream_id=state.stream_id,
                    index=chunk.index,
                    text="",
                    role=GATEWAY_ROLE,
                    finish_reason=self.normalize_finish_reason(raw),
                    raw_finish_reason=raw,
                    usage=metrics_usage(chunk.invocation_metrics),
                )
            ]
        return [ChunkDelta(stream_id=state.stream_id, index=chunk.index, text=chunk.text, role=GATEWAY_ROLE)]

    def normalize_completion(self, response: CohereResponse) -> GenerationSet:
        generations = tuple(
            completed_generation(
                text=g.text,
                role=GATEWAY_ROLE,
                index=g.index if g.index is not None else position,
                finish_reason=self.normalize_finish_reason(g.finish_reason),
                raw_finish_reason=g.finish_reason,
            )
            for position, g in enumerate(response.generations)
        )
        return GenerationSet(generations=generations, response_id=response.id)


register_adapter(BackendKind.GATEWAY_COHERE, CohereGatewayAdapter)
