"""Interfaces between the bridge and a backend transport."""

from typing import Protocol, runtime_checkable

from ..llm.types import InvocationRequest, RawEvent, RawResponse


class StreamHandler(Protocol):
    """Callbacks a transport invokes for one streaming invocation.

    Calls for one invocation must be serial among themselves but may come
    from any thread.
    """

    def on_chunk(self, event: RawEvent) -> None: ...

    def on_error(self, error: BaseException) -> None: ...

    def on_complete(self) -> None: ...

    async def ready(self) -> None:
        """Resolve once the handler can take another chunk without overflowing.

        Only meaningful for producers running on the consumer's event loop.
        """
        ...


@runtime_checkable
class Subscription(Protocol):
    def cancel(self) -> None:
        """Detach from the backend event stream. Idempotent."""
        ...


class BackendTransport(Protocol):
    async def invoke_single(self, request: InvocationRequest) -> RawResponse: ...

    def invoke_streaming(self, request: InvocationRequest, handler: StreamHandler) -> Subscription: ...
