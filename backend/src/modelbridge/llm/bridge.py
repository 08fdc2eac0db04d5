"""Stream bridge between callback-driven backend streams and async iteration.

A backend transport pushes ``on_chunk``/``on_error``/``on_complete`` calls at
its own pace, possibly from its own I/O threads. ``StreamBridge.stream()``
turns those calls into an async iterator of decoded chunks that the consumer
pulls at its own pace:

- every callback is hopped onto the consumer's event loop, so all state below
  is only touched from one thread and chunks keep their callback order;
- decoded chunks pass through a single slot. A chunk that arrives while the
  previous one has not been taken fails the stream with
  ``StreamOverflowError`` instead of buffering it;
- the first terminal event (completion or error) wins, later callbacks are
  dropped;
- closing or cancelling the iterator detaches from the backend subscription
  and nothing further is surfaced.

Nothing here is retried and nothing here is time based.
"""

import asyncio
from collections.abc import AsyncIterator, Callable
from typing import Any, Generic, TypeVar

import pydantic

from ..core.exceptions import LLMError, StreamOverflowError, TransportError
from ..core.logging import get_logger
from ..transports.base import BackendTransport, Subscription
from .decoder import decode_chunk
from .types import InvocationRequest, RawEvent, StreamState

logger = get_logger(__name__)

ShapeT = TypeVar("ShapeT", bound=pydantic.BaseModel)

# Terminal marker for a clean completion
_COMPLETE = object()


class _BridgeHandler:
    """StreamHandler handed to the transport for one invocation."""

    def __init__(self, bridge: "StreamBridge[Any]", loop: asyncio.AbstractEventLoop) -> None:
        self._bridge = bridge
        self._loop = loop

    def _dispatch(self, callback: Callable[..., None], *args: Any) -> None:
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is self._loop:
            callback(*args)
            return

        try:
            self._loop.call_soon_threadsafe(callback, *args)
        except RuntimeError:
            # The consumer's loop is closed, so nobody is listening anymore.
            logger.debug("Dropping %s for request %s: event loop closed", callback.__name__, self._bridge.request_id)

    def on_chunk(self, event: RawEvent) -> None:
        self._dispatch(self._bridge._on_chunk, event)

    def on_error(self, error: BaseException) -> None:
        self._dispatch(self._bridge._on_error, error)

    def on_complete(self) -> None:
        self._dispatch(self._bridge._on_complete)

    async def ready(self) -> None:
        await self._bridge._wait_for_space()


class StreamBridge(Generic[ShapeT]):
    """One-shot adapter from a backend streaming call to an async iterator of ``ShapeT``."""

    def __init__(
        self,
        transport: BackendTransport,
        request: InvocationRequest,
        chunk_shape: type[ShapeT],
        state: StreamState,
    ) -> None:
        self._transport = transport
        self._request = request
        self._chunk_shape = chunk_shape
        self._state = state

        self._slot: ShapeT | None = None
        self._terminal: Any = None
        self._subscription: Subscription | None = None
        self._changed: asyncio.Event | None = None
        self._space: asyncio.Event | None = None
        self._started = False

    @property
    def request_id(self) -> str:
        return self._request.request_id

    async def stream(self) -> AsyncIterator[ShapeT]:
        """Invoke the backend and yield decoded chunks until a terminal event."""
        if self._started:
            raise RuntimeError("StreamBridge can only be consumed once")
        self._started = True

        loop = asyncio.get_running_loop()
        self._changed = asyncio.Event()
        self._space = asyncio.Event()
        self._space.set()

        try:
            logger.debug("Starting streaming invocation %s (model=%s)", self.request_id, self._request.model)
            try:
                self._subscription = self._transport.invoke_streaming(self._request, _BridgeHandler(self, loop))
            except LLMError:
                raise
            except Exception as e:
                raise TransportError(
                    f"Failed to start streaming invocation: {e}",
                    details={"request_id": self.request_id, "error_type": type(e).__name__},
                ) from e
            if self._terminal is not None and self._terminal is not _COMPLETE:
                # Failed while the transport was still starting up.
                self._detach()

            while True:
                if self._slot is not None:
                    chunk = self._slot
                    self._slot = None
                    self._space.set()
                    yield chunk
                    continue

                if self._terminal is not None:
                    if self._terminal is _COMPLETE:
                        logger.debug("Streaming invocation %s completed", self.request_id)
                        return
                    raise self._terminal

                self._changed.clear()
                await self._changed.wait()
        finally:
            self._close()

    # Callbacks below always run on the consumer's event loop.

    def _on_chunk(self, event: RawEvent) -> None:
        if self._state.terminated:
            logger.debug("Dropping chunk for request %s after terminal event", self.request_id)
            return

        try:
            chunk = decode_chunk(event, self._chunk_shape)
        except LLMError as e:
            logger.error("Failed to decode chunk for request %s: %s", self.request_id, e.message)
            self._fail(e)
            return

        if self._slot is not None:
            logger.warning("Consumer of request %s fell behind; failing stream on backpressure", self.request_id)
            self._fail(StreamOverflowError(details={"request_id": self.request_id}))
            return

        logger.debug("Received chunk for request %s", self.request_id)
        self._slot = chunk
        self._space.clear()
        self._changed.set()

    def _on_error(self, error: BaseException) -> None:
        if self._state.terminated:
            logger.debug("Dropping error for request %s after terminal event: %s", self.request_id, error)
            return

        if isinstance(error, LLMError):
            translated = error
        else:
            translated = TransportError(
                f"Error streaming response: {error}",
                details={"request_id": self.request_id, "error_type": type(error).__name__},
            )
            translated.__cause__ = error
        logger.error("Error streaming response for request %s: %s", self.request_id, translated.message)
        self._fail(translated)

    def _on_complete(self) -> None:
        if self._state.terminated:
            logger.debug("Dropping completion for request %s after terminal event", self.request_id)
            return
        self._state.terminated = True
        self._terminal = _COMPLETE
        self._space.set()
        self._changed.set()

    def _fail(self, error: LLMError) -> None:
        self._state.terminated = True
        self._terminal = error
        self._space.set()
        self._changed.set()
        self._detach()

    async def _wait_for_space(self) -> None:
        while self._slot is not None and not self._state.terminated:
            await self._space.wait()

    def _detach(self) -> None:
        if self._subscription is not None:
            self._subscription.cancel()

    def _close(self) -> None:
        self._detach()
        self._state.release()
        self._slot = None
        if self._space is not None:
            self._space.set()
