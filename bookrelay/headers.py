"""
Header propagation across a hop.

Inbound trace headers are read once into typed values; every outbound
list is built from fresh values, so annotating a failure on the outbound
copy is never visible on the inbound envelope.
"""

from datetime import datetime
from typing import NamedTuple, Sequence

from msgspec import structs

from .errors import MissingHeaderError
from .messages.model import (
    ID_HEADER,
    QUEUE_HEADER,
    ContentHeader,
    Header,
    IdHeader,
    Message,
    QueueTrailHeader,
    header_from_wire,
)
from .utils import uuid_factory

ERROR_SUFFIX = " -Error (Book): "


class TraceHeaders(NamedTuple):
    id_header: IdHeader
    queue_header: QueueTrailHeader


def find_header[H: Header](message: Message, name: str, kind: type[H]) -> H | None:
    "first header carrying `name` wins, later duplicates are ignored"
    for wire in message.headers:
        if wire.name != name:
            continue
        header = header_from_wire(wire)
        return header if isinstance(header, kind) else None
    return None


def extract_trace_headers(message: Message) -> TraceHeaders:
    id_header = find_header(message, ID_HEADER, IdHeader)
    if id_header is None:
        raise MissingHeaderError(ID_HEADER)

    queue_header = find_header(message, QUEUE_HEADER, QueueTrailHeader)
    if queue_header is None:
        raise MissingHeaderError(QUEUE_HEADER)

    return TraceHeaders(id_header, queue_header)


def fallback_trace_headers(
    message: Message, received_at: datetime, queue_name: str
) -> TraceHeaders:
    """
    trace headers for auditing a message whose own headers could not be extracted
    """
    id_header = find_header(message, ID_HEADER, IdHeader)
    if id_header is None:
        id_header = IdHeader(guid=uuid_factory())

    queue_header = find_header(message, QUEUE_HEADER, QueueTrailHeader)
    if queue_header is None:
        queue_header = QueueTrailHeader(
            name=queue_name, timestamp=received_at.isoformat()
        )
    return TraceHeaders(id_header, queue_header)


def build_outbound_headers(
    id_header: IdHeader, queue_header: QueueTrailHeader
) -> list[Header]:
    return [
        IdHeader(guid=id_header.guid),
        QueueTrailHeader(name=queue_header.name, timestamp=queue_header.timestamp),
    ]


def error_trail(original: str, message: str) -> str:
    return f"{original}{ERROR_SUFFIX}{message}"


def annotate_error(
    headers: Sequence[Header], queue_header: QueueTrailHeader, message: str
) -> list[Header]:
    annotated: list[Header] = []
    found = False
    for header in headers:
        if isinstance(header, QueueTrailHeader) and not found:
            header = structs.replace(header, name=error_trail(header.name, message))
            found = True
        annotated.append(header)

    if not found:
        annotated.append(
            structs.replace(queue_header, name=error_trail(queue_header.name, message))
        )
    return annotated


def add_content_header(headers: Sequence[Header], label: str) -> list[Header]:
    "attach, or overwrite, the content-type descriptor"
    labelled: list[Header] = [h for h in headers if not isinstance(h, ContentHeader)]
    labelled.append(ContentHeader(content_type=label))
    return labelled
