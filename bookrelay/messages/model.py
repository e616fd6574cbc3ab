from datetime import date
from functools import singledispatch
from typing import Any, Final, Sequence

import msgspec
from msgspec import Struct
from msgspec import field as msgspec_field

from ..errors import DecodeFailureError, InvalidBodyError, MalformedEnvelopeError
from .._itypes import RawPayload

ID_HEADER: Final[str] = "id-header"
QUEUE_HEADER: Final[str] = "current-queue-header"
CONTENT_HEADER: Final[str] = "content-type-header"

BOOKS_CONTENT: Final[str] = "Books"


# Wire model


class MessageHeader(Struct, frozen=True, kw_only=True, rename="camel"):
    name: str
    fields: dict[str, str] = msgspec_field(default_factory=dict)


class Message(Struct, frozen=True, kw_only=True, rename="camel"):
    """
    the envelope carried across every hop

    {
        "headers": [
            {"name": "id-header", "fields": {"GUID": "..."}},
            {"name": "current-queue-header", "fields": {"Name": "...", "Timestamp": "..."}}
        ],
        "body": "<serialized command or result>"
    }
    """

    headers: list[MessageHeader]
    body: str | None = None


class _InboundHeader(Struct, frozen=True, kw_only=True):
    name: str
    fields: dict[str, Any] = msgspec_field(default_factory=dict)


class _InboundMessage(Struct, frozen=True, kw_only=True):
    "an inbound envelope before its header values and body are checked"

    headers: list[_InboundHeader]
    body: msgspec.Raw = msgspec.Raw(b"")


class Book(Struct, frozen=True, kw_only=True, rename="camel"):
    isbn: str | None = None
    title: str | None = None
    author: str | None = None
    publication_date: date | None = None
    price: str | None = None


class Command(Struct, frozen=True, kw_only=True, rename="camel"):
    action: str
    record: Book = msgspec_field(default_factory=Book)


# Typed headers, internal logic never looks headers up by string key


class IdHeader(Struct, frozen=True, kw_only=True):
    guid: str


class QueueTrailHeader(Struct, frozen=True, kw_only=True):
    name: str
    timestamp: str = ""


class ContentHeader(Struct, frozen=True, kw_only=True):
    content_type: str


type Header = IdHeader | QueueTrailHeader | ContentHeader


@singledispatch
def header_to_wire(header: object) -> MessageHeader:
    raise NotImplementedError(f"{type(header)} is not a header")


@header_to_wire.register
def _(header: IdHeader) -> MessageHeader:
    return MessageHeader(name=ID_HEADER, fields={"GUID": header.guid})


@header_to_wire.register
def _(header: QueueTrailHeader) -> MessageHeader:
    return MessageHeader(
        name=QUEUE_HEADER,
        fields={"Name": header.name, "Timestamp": header.timestamp},
    )


@header_to_wire.register
def _(header: ContentHeader) -> MessageHeader:
    return MessageHeader(
        name=CONTENT_HEADER, fields={"ContentType": header.content_type}
    )


def header_from_wire(header: MessageHeader) -> Header | None:
    """
    convert a known wire header into its typed form,
    returns None for unknown names or a known name missing its required field
    """
    fields = header.fields
    if header.name == ID_HEADER:
        if (guid := fields.get("GUID")) is None:
            return None
        return IdHeader(guid=guid)
    if header.name == QUEUE_HEADER:
        if (name := fields.get("Name")) is None:
            return None
        return QueueTrailHeader(name=name, timestamp=fields.get("Timestamp", ""))
    if header.name == CONTENT_HEADER:
        if (content_type := fields.get("ContentType")) is None:
            return None
        return ContentHeader(content_type=content_type)
    return None


def headers_to_wire(headers: Sequence[Header]) -> list[MessageHeader]:
    return [header_to_wire(h) for h in headers]


# Codec

_encoder = msgspec.json.Encoder()
_inbound_decoder = msgspec.json.Decoder(_InboundMessage)
_body_decoder = msgspec.json.Decoder(str | None)
_command_decoder = msgspec.json.Decoder(Command)


def encode(obj: object) -> str:
    return _encoder.encode(obj).decode("utf-8")


def encode_message(message: Message) -> str:
    return encode(message)


def _header_from_inbound(header: _InboundHeader) -> MessageHeader:
    "field values that are not strings are dropped, a known header missing them reads as absent"
    fields = {k: v for k, v in header.fields.items() if isinstance(v, str)}
    return MessageHeader(name=header.name, fields=fields)


def decode_message(raw: RawPayload) -> Message:
    """
    decode an inbound envelope in two stages, the envelope first and then its body,
    so that a body of the wrong type is still traceable through its headers.

    raises `MalformedEnvelopeError` when the payload is not json or carries no headers,
    `InvalidBodyError` when the body is neither a string nor null.
    """
    try:
        inbound = _inbound_decoder.decode(raw)
    except msgspec.DecodeError as exc:
        raise MalformedEnvelopeError(str(exc)) from exc

    headers = [_header_from_inbound(h) for h in inbound.headers]
    raw_body = bytes(inbound.body)
    if not raw_body:
        return Message(headers=headers)
    try:
        body = _body_decoder.decode(raw_body)
    except msgspec.DecodeError as exc:
        raise InvalidBodyError(str(exc), Message(headers=headers)) from exc
    return Message(headers=headers, body=body)


def decode_command(message: Message) -> Command:
    if not message.body:
        raise DecodeFailureError("message body is empty")
    try:
        return _command_decoder.decode(message.body)
    except msgspec.DecodeError as exc:
        raise DecodeFailureError(f"invalid command: {exc}") from exc
