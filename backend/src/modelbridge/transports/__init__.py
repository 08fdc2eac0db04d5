from .base import BackendTransport, StreamHandler, Subscription
from .event_stream_transport import EventStreamTransport
from .http_transport import HTTPChatTransport

__all__ = [
    "BackendTransport",
    "EventStreamTransport",
    "HTTPChatTransport",
    "StreamHandler",
    "Subscription",
]
