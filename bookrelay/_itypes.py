"Interface, types, type alias, and related stuff"

from typing import Any, Awaitable, Callable, Literal, Protocol

# plain aliases, these are decoded by msgspec
FailureKind = Literal["missing_header", "decode", "persistence", "publish", "unexpected"]
AuditStatusKind = Literal["success", "failure", "unsupported"]

type RawPayload = str | bytes


class IQueue(Protocol):
    """
    the outbound side of a queue transport, fire-and-forget
    """

    async def send(self, queue_name: str, payload: str) -> None: ...


type MessageCallback = Callable[[RawPayload], Awaitable[Any]]
