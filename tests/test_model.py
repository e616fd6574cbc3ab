from datetime import date

import msgspec
import pytest

from bookrelay.errors import DecodeFailureError, InvalidBodyError, MalformedEnvelopeError
from bookrelay.messages import (
    Book,
    ContentHeader,
    IdHeader,
    Message,
    MessageHeader,
    QueueTrailHeader,
    decode_command,
    decode_message,
    encode,
    header_from_wire,
    header_to_wire,
)
from tests.conftest import (
    GUID,
    TIMESTAMP,
    TRAIL,
    command,
    envelope,
    id_header,
    queue_header,
)


def test_decode_envelope():
    message = decode_message(envelope(command("create", isbn="978-1")))

    assert [h.name for h in message.headers] == ["id-header", "current-queue-header"]
    assert message.headers[0].fields == {"GUID": GUID}

    cmd = decode_command(message)
    assert cmd.action == "create"
    assert cmd.record == Book(isbn="978-1")


def test_book_wire_casing():
    book = Book(
        isbn="978-1",
        title="T",
        author="A",
        publication_date=date(2001, 2, 3),
        price="9.99",
    )
    wire = msgspec.json.decode(encode(book))
    assert wire == {
        "isbn": "978-1",
        "title": "T",
        "author": "A",
        "publicationDate": "2001-02-03",
        "price": "9.99",
    }


def test_typed_headers_to_wire():
    assert header_to_wire(IdHeader(guid=GUID)) == MessageHeader(
        name="id-header", fields={"GUID": GUID}
    )
    assert header_to_wire(
        QueueTrailHeader(name=TRAIL, timestamp=TIMESTAMP)
    ) == MessageHeader(
        name="current-queue-header",
        fields={"Name": TRAIL, "Timestamp": TIMESTAMP},
    )
    assert header_to_wire(ContentHeader(content_type="Books")) == MessageHeader(
        name="content-type-header", fields={"ContentType": "Books"}
    )


def test_header_from_wire():
    assert header_from_wire(MessageHeader(name="id-header", fields={"GUID": "1"})) == (
        IdHeader(guid="1")
    )
    assert header_from_wire(
        MessageHeader(name="current-queue-header", fields={"Name": "q"})
    ) == QueueTrailHeader(name="q", timestamp="")


def test_header_from_wire_ignores_unknown_and_incomplete():
    assert header_from_wire(MessageHeader(name="x-custom", fields={"a": "b"})) is None
    assert header_from_wire(MessageHeader(name="id-header", fields={})) is None


@pytest.mark.parametrize("raw", ["not json", "{}", '{"headers": null, "body": ""}'])
def test_malformed_envelope(raw: str):
    with pytest.raises(MalformedEnvelopeError):
        decode_message(raw)


def test_decode_command_without_body():
    with pytest.raises(DecodeFailureError):
        decode_command(Message(headers=[]))


def test_decode_command_with_invalid_body():
    with pytest.raises(DecodeFailureError):
        decode_command(Message(headers=[], body='{"record": {}}'))

    with pytest.raises(DecodeFailureError):
        decode_command(Message(headers=[], body="{not json"))


def test_null_body_decodes_to_none():
    raw = msgspec.json.encode({"headers": [id_header()], "body": None})
    assert decode_message(raw).body is None
    assert decode_message('{"headers": []}').body is None


def test_body_of_wrong_type_keeps_headers():
    raw = msgspec.json.encode(
        {"headers": [id_header(), queue_header()], "body": command("create")}
    )

    with pytest.raises(InvalidBodyError) as exc_info:
        decode_message(raw)

    assert isinstance(exc_info.value, DecodeFailureError)
    assert [h.name for h in exc_info.value.message.headers] == [
        "id-header",
        "current-queue-header",
    ]


def test_non_string_header_values_are_dropped():
    headers = [
        {"name": "x-retry", "fields": {"count": 3, "reason": "timeout"}},
        {"name": "id-header", "fields": {"GUID": 42}},
    ]
    message = decode_message(envelope(command("list"), headers))

    assert message.headers[0].fields == {"reason": "timeout"}
    assert header_from_wire(message.headers[1]) is None
