"""
LLM Integration Package for modelbridge.

This package provides the backend-agnostic invocation layer:
- Unified client with single-shot and streaming generation
- Stream bridge turning backend callbacks into async iteration
- Delta accumulation and generation normalization
- Prompt, option and generation value types
"""

from .client import UnifiedLLMClient, create_client
from .prompt import GenerationOptions, Message, Prompt
from .types import BackendKind, FinishReason, Generation, GenerationMetadata, GenerationSet, Usage

__all__ = [
    "UnifiedLLMClient",
    "create_client",
    "GenerationOptions",
    "Message",
    "Prompt",
    "BackendKind",
    "FinishReason",
    "Generation",
    "GenerationMetadata",
    "GenerationSet",
    "Usage",
]
