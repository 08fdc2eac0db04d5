"""Delta accumulation across the chunks of one stream.

Backends report the role only on the first chunk of a stream and the finish
reason and usage only on the last one. ``DeltaAccumulator`` carries the role
forward so that every chunk is attributed, and tags the single chunk that
closes each logical stream with its completion metadata.
"""

from ..core.exceptions import UnattributedChunkError
from ..core.logging import get_logger
from .types import AttributedChunk, ChunkDelta, GenerationMetadata, StreamState

logger = get_logger(__name__)


class DeltaAccumulator:
    def __init__(self, state: StreamState) -> None:
        self._state = state

    def attribute(self, delta: ChunkDelta) -> AttributedChunk:
        """Resolve the role of ``delta`` and attach completion metadata when it finishes its stream.

        The first role seen for a stream identifier wins; a different role
        reported later for the same identifier is ignored.
        """
        roles = self._state.roles
        recorded = roles.get(delta.stream_id)

        if delta.role is not None:
            if recorded is None:
                roles[delta.stream_id] = delta.role
                recorded = delta.role
            elif recorded != delta.role:
                logger.debug(
                    "Ignoring role change for stream %s (%s -> %s)", delta.stream_id, recorded, delta.role
                )

        if recorded is None:
            raise UnattributedChunkError(delta.stream_id, details={"stream_id": delta.stream_id, "index": delta.index})

        completion = None
        if delta.finish_reason is not None:
            key = (delta.stream_id, delta.index)
            if key in self._state.completed:
                logger.warning("Stream %s choice %s reported a second finish reason; not tagging it", *key)
            else:
                self._state.completed.add(key)
                completion = GenerationMetadata(
                    finish_reason=delta.finish_reason,
                    raw_finish_reason=delta.raw_finish_reason,
                    usage=delta.usage,
                )

        return AttributedChunk(
            stream_id=delta.stream_id,
            text=delta.text,
            role=recorded,
            index=delta.index,
            completion=completion,
        )

    def attribute_all(self, deltas: list[ChunkDelta]) -> list[AttributedChunk]:
        return [self.attribute(delta) for delta in deltas]
