"""
Unified LLM client for modelbridge.

This module provides one interface for invoking any supported backend,
either as a single-shot call returning a complete GenerationSet or as a lazy
async stream of GenerationSet increments.
"""

import time
from contextlib import aclosing
from dataclasses import replace
from typing import AsyncIterator, Optional, Union

from ..core.config import Settings
from ..core.exceptions import LLMConfigurationError, LLMError, TransportError, UnsupportedOperationError
from ..core.logging import get_logger
from ..services.providers.adapter_base import BaseBackendAdapter, get_adapter
from ..transports.base import BackendTransport
from ..transports.http_transport import HTTPChatTransport
from .accumulator import DeltaAccumulator
from .bridge import StreamBridge
from .decoder import decode_response
from .normalizer import generation_set_from_chunks
from .prompt import Prompt
from .rate_limit import extract_rate_limit
from .types import BackendKind, GenerationSet, InvocationRequest, StreamState

logger = get_logger(__name__)

PromptInput = Union[Prompt, InvocationRequest, str]


class UnifiedLLMClient:
    """Backend-agnostic client pairing one backend adapter with one transport.

    The client keeps no state between calls; every streaming call owns its
    own StreamState.
    """

    def __init__(self, adapter: BaseBackendAdapter, transport: BackendTransport):
        self.adapter = adapter
        self.transport = transport

    @property
    def backend(self) -> BackendKind:
        return self.adapter.kind

    def _to_request(self, prompt: PromptInput, model: Optional[str], stream: bool) -> InvocationRequest:
        if isinstance(prompt, InvocationRequest):
            return prompt
        if isinstance(prompt, str):
            prompt = Prompt.from_text(prompt)
        return self.adapter.build_request(prompt, model=model, stream=stream)

    def _model_name(self, prompt: PromptInput, model: Optional[str]) -> str:
        if isinstance(prompt, InvocationRequest):
            return prompt.model
        return model or self.adapter.get_default_model()

    async def generate(self, prompt: PromptInput, model: Optional[str] = None) -> GenerationSet:
        """Run a single-shot completion and return every choice at once."""
        if not self.adapter.get_capabilities().completion:
            raise UnsupportedOperationError("Chat completion", self._model_name(prompt, model))

        request = self._to_request(prompt, model, stream=False)
        start_time = time.monotonic()
        try:
            response = await self.transport.invoke_single(request)
        except LLMError:
            raise
        except Exception as e:
            logger.error("Single-shot invocation %s failed: %s (type: %s)", request.request_id, e, type(e).__name__)
            raise TransportError(
                f"Single-shot invocation failed: {e}",
                details={"request_id": request.request_id, "error_type": type(e).__name__},
            ) from e
        elapsed_ms = int((time.monotonic() - start_time) * 1000)

        result = self.adapter.normalize_completion(decode_response(response, self.adapter.response_shape))
        if result.model is None:
            result = replace(result, model=request.model)

        logger.info(
            "LLM completion finished",
            extra={
                "backend": self.backend.value,
                "model": request.model,
                "request_id": request.request_id,
                "choices": len(result),
                "elapsed_ms": elapsed_ms,
            },
        )
        return result.with_rate_limit(extract_rate_limit(response.headers))

    async def generate_stream(self, prompt: PromptInput, model: Optional[str] = None) -> AsyncIterator[GenerationSet]:
        """Stream GenerationSet increments, one per backend chunk.

        Nothing is sent to the backend until the first item is requested. Any
        failure is raised from the iteration, after the increments that
        preceded it.
        """
        if not self.adapter.get_capabilities().streaming:
            raise UnsupportedOperationError("Streaming chat completion", self._model_name(prompt, model))

        request = self._to_request(prompt, model, stream=True)
        state = StreamState(stream_id=request.request_id)
        bridge = StreamBridge(self.transport, request, self.adapter.chunk_shape, state)
        accumulator = DeltaAccumulator(state)

        async with aclosing(bridge.stream()) as chunks:
            async for chunk in chunks:
                response_id = self.adapter.chunk_response_id(chunk, state)
                deltas = self.adapter.chunk_deltas(chunk, state)
                if not deltas:
                    usage = self.adapter.chunk_usage(chunk)
                    if usage is not None:
                        yield GenerationSet(response_id=response_id, model=request.model, usage=usage)
                    continue
                yield generation_set_from_chunks(accumulator.attribute_all(deltas), response_id, request.model)

    async def generate_text(self, prompt: PromptInput, model: Optional[str] = None) -> str:
        """Return the text of the first generation of a single-shot completion."""
        result = await self.generate(prompt, model=model)
        return result[0].text if len(result) else ""

    async def close(self) -> None:
        close = getattr(self.transport, "close", None)
        if close is not None:
            await close()

    async def __aenter__(self) -> "UnifiedLLMClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"<UnifiedLLMClient(backend={self.backend.value}, transport={type(self.transport).__name__})>"


def create_client(
    backend: Union[BackendKind, str],
    transport: Optional[BackendTransport] = None,
    settings: Optional[Settings] = None,
) -> UnifiedLLMClient:
    """Build a client for ``backend``.

    The HTTP chat backend gets an ``HTTPChatTransport`` from configuration when
    no transport is given; gateway backends need the caller's transport.
    """
    adapter = get_adapter(backend, settings)
    if transport is None:
        if adapter.kind is not BackendKind.OPENAI_CHAT:
            raise LLMConfigurationError(f"A gateway transport is required for backend '{adapter.kind.value}'")
        transport = HTTPChatTransport(settings=adapter.settings)
    return UnifiedLLMClient(adapter, transport)
