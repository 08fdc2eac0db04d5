"""Transport for models served through the managed invocation gateway.

The gateway's runtime client is blocking: a single-shot call returns the whole
body and a streaming call returns an iterator of event dicts such as
``{"chunk": {"bytes": b"..."}}`` or ``{"throttlingException": {...}}``.
Single-shot calls run in the default executor. Streaming calls iterate the
event stream on a dedicated worker thread that pushes every event to the
stream handler from that thread.
"""

import asyncio
import concurrent.futures
import json
import threading
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from ..core.exceptions import (
    LLMConfigurationError,
    LLMError,
    LLMRateLimitError,
    LLMTimeoutError,
    TransportError,
)
from ..core.logging import get_logger
from ..llm.types import EventKind, InvocationRequest, RawEvent, RawResponse
from .base import StreamHandler, Subscription

logger = get_logger(__name__)

SingleInvoker = Callable[[InvocationRequest], Any]
StreamOpener = Callable[[InvocationRequest], Iterable[Mapping[str, Any]]]

_READY_POLL_INTERVAL = 0.1

_EXCEPTION_EVENTS: dict[str, type[TransportError]] = {
    "throttlingException": LLMRateLimitError,
    "validationException": LLMConfigurationError,
    "modelTimeoutException": LLMTimeoutError,
}


def _read_body(body: Any) -> bytes:
    if hasattr(body, "read"):
        body = body.read()
    if isinstance(body, str):
        body = body.encode("utf-8")
    return bytes(body or b"")


def _exception_event_error(name: str, info: Any, model: str) -> TransportError:
    message = info.get("message") if isinstance(info, Mapping) else None
    details = {"event_type": name, "model": model, "backend_message": message}
    error_cls = _EXCEPTION_EVENTS.get(name, TransportError)
    return error_cls(f"Gateway stream reported {name}: {message or 'no message'}", details=details)


class _ThreadSubscription:
    """Cancellation flag shared with the worker thread of one streaming call."""

    def __init__(self) -> None:
        self._cancelled = threading.Event()
        self._lock = threading.Lock()
        self._stream: Any = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def attach(self, stream: Any) -> None:
        with self._lock:
            self._stream = stream
        if self.cancelled:
            self._close_stream()

    def cancel(self) -> None:
        if self._cancelled.is_set():
            return
        self._cancelled.set()
        self._close_stream()

    def _close_stream(self) -> None:
        with self._lock:
            stream, self._stream = self._stream, None
        close = getattr(stream, "close", None)
        if callable(close):
            try:
                close()
            except Exception as e:
                logger.debug("Ignoring error while closing gateway event stream: %s", e)


class EventStreamTransport:
    """BackendTransport over a blocking gateway runtime client.

    With ``honor_backpressure`` the worker thread waits for the handler to
    have room before pushing the next chunk, otherwise it pushes at the
    gateway's pace and a slow consumer overflows the stream.
    """

    def __init__(
        self,
        invoke_single: SingleInvoker,
        open_stream: StreamOpener,
        honor_backpressure: bool = True,
    ) -> None:
        self._invoke_single = invoke_single
        self._open_stream = open_stream
        self._honor_backpressure = honor_backpressure

    @classmethod
    def from_runtime_client(cls, client: Any, honor_backpressure: bool = True) -> "EventStreamTransport":
        """Wrap a boto-style runtime client exposing ``invoke_model`` and ``invoke_model_with_response_stream``."""

        def invoke_single(request: InvocationRequest) -> Any:
            return client.invoke_model(
                modelId=request.model,
                body=request.body,
                accept="application/json",
                contentType="application/json",
            )

        def open_stream(request: InvocationRequest) -> Iterable[Mapping[str, Any]]:
            response = client.invoke_model_with_response_stream(
                modelId=request.model,
                body=request.body,
                accept="application/json",
                contentType="application/json",
            )
            return response["body"]

        return cls(invoke_single, open_stream, honor_backpressure=honor_backpressure)

    async def invoke_single(self, request: InvocationRequest) -> RawResponse:
        loop = asyncio.get_running_loop()
        try:
            result = await loop.run_in_executor(None, self._invoke_single, request)
        except LLMError:
            raise
        except Exception as e:
            logger.error("Gateway invocation failed for model %s: %s", request.model, e)
            raise TransportError(
                f"Gateway invocation failed: {e}",
                details={"model": request.model, "error_type": type(e).__name__},
            ) from e

        if isinstance(result, Mapping):
            headers = result.get("ResponseMetadata", {}).get("HTTPHeaders", {})
            status_code = result.get("ResponseMetadata", {}).get("HTTPStatusCode", 200)
            return RawResponse(body=_read_body(result.get("body")), headers=dict(headers), status_code=status_code)
        return RawResponse(body=_read_body(result))

    def invoke_streaming(self, request: InvocationRequest, handler: StreamHandler) -> Subscription:
        """Start the worker thread; must be called from the consumer's running event loop."""
        loop = asyncio.get_running_loop()
        subscription = _ThreadSubscription()
        thread = threading.Thread(
            target=self._pump,
            args=(request, handler, subscription, loop),
            name=f"event-stream-{request.request_id}",
            daemon=True,
        )
        thread.start()
        return subscription

    def _wait_ready(
        self,
        handler: StreamHandler,
        subscription: _ThreadSubscription,
        loop: asyncio.AbstractEventLoop,
    ) -> bool:
        try:
            future = asyncio.run_coroutine_threadsafe(handler.ready(), loop)
        except RuntimeError:
            # Consumer loop is gone.
            return False
        while True:
            try:
                future.result(timeout=_READY_POLL_INTERVAL)
                return not subscription.cancelled
            except concurrent.futures.TimeoutError:
                if subscription.cancelled:
                    future.cancel()
                    return False
            except concurrent.futures.CancelledError:
                return False

    def _pump(
        self,
        request: InvocationRequest,
        handler: StreamHandler,
        subscription: _ThreadSubscription,
        loop: asyncio.AbstractEventLoop,
    ) -> None:
        try:
            stream = self._open_stream(request)
            subscription.attach(stream)
            for event in stream:
                if subscription.cancelled:
                    break

                if "chunk" in event:
                    if self._honor_backpressure and not self._wait_ready(handler, subscription, loop):
                        break
                    handler.on_chunk(RawEvent(EventKind.CHUNK, _read_body(event["chunk"].get("bytes"))))
                    continue

                name = next(iter(event), None)
                if name is not None and name.endswith("Exception"):
                    handler.on_error(_exception_event_error(name, event[name], request.model))
                    return

                handler.on_chunk(
                    RawEvent(EventKind.UNKNOWN, json.dumps(event, default=str).encode("utf-8"), event_type=name)
                )
                return
        except Exception as e:
            if subscription.cancelled:
                logger.debug("Gateway stream for %s failed after cancellation: %s", request.request_id, e)
                return
            logger.error("Gateway stream for %s failed: %s (type: %s)", request.request_id, e, type(e).__name__)
            handler.on_error(e)
            return

        if subscription.cancelled:
            logger.debug("Gateway stream for %s stopped after cancellation", request.request_id)
            return
        handler.on_complete()
