from typing import TYPE_CHECKING, ClassVar

from ._itypes import FailureKind

if TYPE_CHECKING:
    from .messages.model import Message


class BookRelayError(Exception): ...


class MalformedEnvelopeError(BookRelayError):
    "raised to the caller, the only error that escapes `BookRelay.receive`"

    def __init__(self, reason: str):
        super().__init__(f"malformed envelope: {reason}")


class PipelineError(BookRelayError):
    """
    errors raised inside the per-message pipeline,
    caught by the relay and reported through the audit sink
    """

    kind: ClassVar[FailureKind]


class MissingHeaderError(PipelineError):
    kind = "missing_header"

    def __init__(self, header_name: str):
        self.header_name = header_name
        super().__init__(f"header `{header_name}` not found in message")


class DecodeFailureError(PipelineError):
    kind = "decode"


class InvalidFilterError(DecodeFailureError):
    def __init__(self, raw_filter: str):
        super().__init__(f"isbn filter `{raw_filter}` contains an empty value")


class InvalidBodyError(DecodeFailureError):
    """
    the envelope body is not a string,
    `message` keeps the readable headers so the failure can still be traced
    """

    def __init__(self, reason: str, message: "Message"):
        self.message = message
        super().__init__(f"invalid message body: {reason}")


class PersistenceFailureError(PipelineError):
    kind = "persistence"


class PublishFailureError(PipelineError):
    kind = "publish"

    def __init__(self, queue_name: str, reason: str):
        self.queue_name = queue_name
        super().__init__(f"failed to publish to `{queue_name}`: {reason}")


class TransportConnectionError(BookRelayError): ...
