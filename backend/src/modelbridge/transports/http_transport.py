"""Transport for OpenAI-compatible HTTP chat completion APIs.

Single-shot calls are plain POSTs. Streaming calls read the Server-Sent
Events body on a task of the caller's event loop and push every event to the
stream handler, waiting on ``handler.ready()`` before each chunk so that a
slow consumer throttles the read instead of overflowing the bridge.
"""

import asyncio
from typing import Any, Dict, List, Optional, Tuple

import httpx

from ..core.config import Settings, get_settings_instance
from ..core.exceptions import (
    LLMAuthenticationError,
    LLMConfigurationError,
    LLMRateLimitError,
    LLMTimeoutError,
    TransportError,
)
from ..core.http_client import HTTPClientManager, resolve_api_key
from ..core.logging import get_logger
from ..llm.types import EventKind, InvocationRequest, RawEvent, RawResponse
from .base import StreamHandler, Subscription

logger = get_logger(__name__)

DONE_MARKER = "[DONE]"
CHAT_COMPLETIONS_ENDPOINT = "/chat/completions"

# SSE event names that carry regular data
_DATA_EVENTS = (None, "message")
# Comment lines parse to an empty field name
_IGNORED_FIELDS = ("", "id", "retry")


def _split_field(line: str) -> Tuple[str, str]:
    field, sep, value = line.partition(":")
    if sep and value.startswith(" "):
        value = value[1:]
    return field, value


class _TaskSubscription:
    def __init__(self, task: "asyncio.Task[None]") -> None:
        self._task = task

    def cancel(self) -> None:
        if not self._task.done():
            self._task.cancel()


def _extract_http_error_details(e: httpx.HTTPStatusError, model: str) -> Dict[str, Any]:
    """Normalize useful fields from an HTTP error response."""
    response = e.response
    details: Dict[str, Any] = {
        "status": response.status_code,
        "endpoint": str(e.request.url),
        "request_id": response.headers.get("x-request-id"),
        "model": model,
        "backend_message": None,
        "backend_error_type": None,
        "body": None,
    }
    try:
        body = response.json()
    except ValueError:
        details["body"] = response.text or None
        return details

    details["body"] = body
    if isinstance(body, dict):
        error_section = body.get("error")
        if isinstance(error_section, dict):
            details["backend_message"] = error_section.get("message")
            details["backend_error_type"] = error_section.get("type") or error_section.get("code")
        elif isinstance(error_section, str):
            details["backend_message"] = error_section
        if details["backend_message"] is None:
            details["backend_message"] = body.get("message") or body.get("detail")
    return details


def translate_http_error(error: httpx.HTTPError, model: str) -> TransportError:
    """Map an httpx failure onto the transport error hierarchy."""
    if isinstance(error, httpx.HTTPStatusError):
        details = _extract_http_error_details(error, model)
        status_code = details["status"]
        if status_code == 401:
            logger.error("LLM authentication error (request_id=%s)", details["request_id"])
            return LLMAuthenticationError("Invalid API key or authentication failed", details=details)
        if status_code == 429:
            logger.error("LLM rate limit exceeded (request_id=%s)", details["request_id"])
            return LLMRateLimitError("Rate limit exceeded", details=details)
        if status_code == 400:
            logger.error("LLM configuration error (400): %s", details["backend_message"] or str(error))
            return LLMConfigurationError("Backend rejected request (HTTP 400)", details=details)
        logger.error(
            "LLM upstream error: HTTP %s (request_id=%s, endpoint=%s)",
            status_code,
            details["request_id"],
            details["endpoint"],
        )
        return TransportError(f"HTTP error {status_code}", details=details)

    details = {"original_error": str(error), "error_type": type(error).__name__, "model": model}
    if isinstance(error, httpx.ReadTimeout):
        logger.error("Read timeout talking to backend: %s", error)
        return LLMTimeoutError("Backend stopped responding", details=details)
    if isinstance(error, httpx.ConnectTimeout):
        logger.error("Connect timeout talking to backend: %s", error)
        return LLMTimeoutError("Could not connect to backend", details=details)
    if isinstance(error, httpx.TimeoutException):
        logger.error("Timeout talking to backend: %s", error)
        return LLMTimeoutError("Request to backend timed out", details=details)
    if isinstance(error, httpx.RemoteProtocolError):
        logger.warning("Connection to backend closed early: %s", error)
        return TransportError("Connection to backend was interrupted", details=details)

    logger.error("HTTP error talking to backend: %s (type: %s)", error, type(error).__name__)
    return TransportError(f"Failed to reach backend: {error}", details=details)


class HTTPChatTransport:
    """BackendTransport for the HTTP chat API."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        settings: Optional[Settings] = None,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
        endpoint: str = CHAT_COMPLETIONS_ENDPOINT,
    ) -> None:
        self._settings = settings or get_settings_instance()
        if api_key is None:
            api_key = resolve_api_key(self._settings)
        headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        self._endpoint = endpoint
        self._manager = HTTPClientManager(
            base_url or self._settings.openai_api_base,
            headers=headers,
            settings=self._settings,
            transport=http_transport,
        )

    async def invoke_single(self, request: InvocationRequest) -> RawResponse:
        client = self._manager.get_client()
        logger.debug("llm.request endpoint=%s model=%s body=%s", self._endpoint, request.model, request.body[:4000])
        try:
            response = await client.post(
                self._endpoint,
                content=request.body,
                timeout=self._settings.llm_global_timeout,
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise translate_http_error(e, request.model) from e

        return RawResponse(body=response.content, headers=dict(response.headers), status_code=response.status_code)

    def invoke_streaming(self, request: InvocationRequest, handler: StreamHandler) -> Subscription:
        """Start reading the event stream; must be called from a running event loop."""
        task = asyncio.get_running_loop().create_task(self._pump(request, handler))
        return _TaskSubscription(task)

    async def _pump(self, request: InvocationRequest, handler: StreamHandler) -> None:
        client = self._manager.get_client()
        try:
            async with client.stream("POST", self._endpoint, content=request.body) as response:
                if response.is_error:
                    await response.aread()
                response.raise_for_status()

                event_name: Optional[str] = None
                data_lines: List[str] = []
                async for line in response.aiter_lines():
                    line = line.rstrip("\r\n")
                    if line:
                        field, value = _split_field(line)
                        if field == "data":
                            data_lines.append(value)
                        elif field == "event":
                            event_name = value or None
                        elif field not in _IGNORED_FIELDS:
                            logger.debug("Ignoring unknown SSE field '%s'", field)
                        continue

                    # A blank line dispatches the buffered event.
                    name, data = event_name, "\n".join(data_lines)
                    pending = bool(data_lines)
                    event_name, data_lines = None, []
                    if not pending:
                        continue
                    if name in _DATA_EVENTS and data == DONE_MARKER:
                        logger.debug("Streaming ended with DONE marker")
                        break
                    if not await self._dispatch(request, handler, name, data):
                        return
                else:
                    if data_lines:
                        logger.debug("Discarding unterminated SSE event at end of stream")

            handler.on_complete()
        except httpx.HTTPError as e:
            handler.on_error(translate_http_error(e, request.model))
        except Exception as e:
            logger.error("Encountered streaming error: %s (type: %s)", e, type(e).__name__, exc_info=True)
            handler.on_error(e)

    async def _dispatch(self, request: InvocationRequest, handler: StreamHandler, name: Optional[str], data: str) -> bool:
        """Push one SSE event to the handler. Returns False once the stream is terminated."""
        if name == "error":
            handler.on_error(
                TransportError(
                    "Backend reported a stream error",
                    details={"model": request.model, "body": data[:1000]},
                )
            )
            return False
        if name not in _DATA_EVENTS:
            handler.on_chunk(RawEvent(EventKind.UNKNOWN, data.encode("utf-8"), event_type=name))
            return False

        await handler.ready()
        handler.on_chunk(RawEvent(EventKind.CHUNK, data.encode("utf-8")))
        return True

    async def close(self) -> None:
        await self._manager.close()

    async def __aenter__(self) -> "HTTPChatTransport":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
