"""Custom exceptions for modelbridge.

Every failure of an invocation reaches the caller as one of the classes below,
either raised from ``generate`` or raised as the terminal element of a
``generate_stream`` iteration. None of them is retried internally.
"""

from typing import Any


class ModelBridgeException(Exception):
    """Base exception class for modelbridge."""

    def __init__(
        self,
        message: str,
        error_code: str,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(ModelBridgeException):
    """Raised when generation options fail validation."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            status_code=400,
            details=details,
        )


# LLM-specific exceptions
class LLMError(ModelBridgeException):
    """Base exception for LLM invocation errors.

    ``transient`` tells callers whether re-invoking may succeed: transport
    failures usually are, malformed payloads and protocol violations are not.
    """

    transient: bool = False


class DecodeError(LLMError):
    """Raised when a payload does not match the expected chunk or response shape."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=f"Decode error: {message}",
            error_code="LLM_DECODE_ERROR",
            status_code=502,
            details=details,
        )


class UnknownEventError(LLMError):
    """Raised when the backend emits an event kind that is not recognized."""

    def __init__(self, event_type: str | None, details: dict[str, Any] | None = None):
        super().__init__(
            message=f"Unknown or unhandled stream event: {event_type or 'unnamed'}",
            error_code="LLM_UNKNOWN_EVENT",
            status_code=502,
            details=details or {"event_type": event_type},
        )


class UnattributedChunkError(LLMError):
    """Raised when a chunk without a role arrives before any role was recorded for its stream."""

    def __init__(self, stream_id: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=f"Chunk for stream '{stream_id}' has no role and none was recorded",
            error_code="LLM_UNATTRIBUTED_CHUNK",
            status_code=502,
            details=details or {"stream_id": stream_id},
        )


class StreamOverflowError(LLMError):
    """Raised when the backend delivers a chunk while the previous one is still pending."""

    def __init__(self, message: str = "Stream consumer is too slow; pending chunk not yet consumed",
                 details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            error_code="LLM_STREAM_OVERFLOW",
            status_code=503,
            details=details,
        )


class UnsupportedOperationError(LLMError):
    """Raised when the selected backend does not implement the requested capability."""

    def __init__(self, operation: str, model: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=f"{operation} is not supported for this model: {model}",
            error_code="LLM_UNSUPPORTED_OPERATION",
            status_code=501,
            details=details or {"operation": operation, "model": model},
        )


class TransportError(LLMError):
    """Raised when the backend or the network fails."""

    transient = True

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        error_code: str = "LLM_TRANSPORT_ERROR",
        status_code: int = 502,
    ):
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=status_code,
            details=details,
        )


class LLMConfigurationError(TransportError):
    """Raised when the backend rejects the request as invalid."""

    transient = False

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=f"LLM configuration error: {message}",
            details=details,
            error_code="LLM_CONFIGURATION_ERROR",
            status_code=400,
        )


class LLMAuthenticationError(TransportError):
    """Raised when LLM authentication fails."""

    transient = False

    def __init__(self, message: str = "LLM authentication failed", details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            details=details,
            error_code="LLM_AUTHENTICATION_ERROR",
            status_code=401,
        )


class LLMRateLimitError(TransportError):
    """Raised when LLM rate limits are exceeded."""

    def __init__(self, message: str = "LLM rate limit exceeded", details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            details=details,
            error_code="LLM_RATE_LIMIT_ERROR",
            status_code=429,
        )


class LLMTimeoutError(TransportError):
    """Raised when LLM requests timeout."""

    def __init__(self, message: str = "LLM request timeout", details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            details=details,
            error_code="LLM_TIMEOUT_ERROR",
            status_code=504,
        )
