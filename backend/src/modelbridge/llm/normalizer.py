"""Generation normalizer.

Maps attributed stream chunks, or the choices of a complete response, into the
backend-agnostic Generation values. Backend-specific field handling stays in
the adapters; this module only assembles the unified shapes.
"""

from collections.abc import Iterable

from .types import AttributedChunk, FinishReason, Generation, GenerationMetadata, GenerationSet, Usage


def generation_from_chunk(chunk: AttributedChunk) -> Generation:
    return Generation(text=chunk.text, role=chunk.role, index=chunk.index, metadata=chunk.completion)


def generation_set_from_chunks(
    chunks: Iterable[AttributedChunk],
    response_id: str | None = None,
    model: str | None = None,
) -> GenerationSet:
    """Build one streamed increment. Usage is lifted from the completion-tagged chunk, if any."""
    generations = tuple(generation_from_chunk(c) for c in chunks)
    usage = next((g.metadata.usage for g in generations if g.metadata and g.metadata.usage), None)
    return GenerationSet(generations=generations, response_id=response_id, model=model, usage=usage)


def completed_generation(
    text: str | None,
    role: str | None,
    index: int,
    finish_reason: FinishReason | None,
    raw_finish_reason: str | None = None,
    usage: Usage | None = None,
) -> Generation:
    """Build the Generation of one choice of a complete response.

    Choices without any finish reason are reported as ``other`` so that every
    eagerly materialized Generation carries completion metadata.
    """
    return Generation(
        text=text or "",
        role=role,
        index=index,
        metadata=GenerationMetadata(
            finish_reason=finish_reason or FinishReason.OTHER,
            raw_finish_reason=raw_finish_reason,
            usage=usage,
        ),
    )
