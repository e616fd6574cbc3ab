from asyncio.queues import Queue
from datetime import datetime
from typing import Protocol, Sequence

import msgspec
from loguru import logger
from msgspec import Struct

from .._itypes import AuditStatusKind, FailureKind, IQueue
from ..messages.model import (
    Header,
    Message,
    MessageHeader,
    encode,
    encode_message,
    headers_to_wire,
)
from ..utils import put_dropping_oldest


class AuditStatus(Struct, frozen=True, kw_only=True, rename="camel"):
    "body of a log envelope, what happened to the message"

    status: AuditStatusKind
    action: str | None = None
    kind: FailureKind | None = None
    detail: str | None = None


class AuditRecord(AuditStatus, frozen=True, kw_only=True, rename="camel"):
    "an `AuditStatus` stamped with its timing"

    received_at: datetime
    elapsed_millis: float


class AuditEntry(Struct, frozen=True, kw_only=True):
    headers: list[MessageHeader]
    record: AuditRecord


def log_envelope(headers: Sequence[Header], status: AuditStatus) -> Message:
    return Message(headers=headers_to_wire(headers), body=encode(status))


def audit_entry(
    envelope: Message, received_at: datetime, elapsed_ms: float
) -> AuditEntry:
    status = msgspec.json.decode(envelope.body or "{}", type=AuditStatus)
    record = AuditRecord(
        **msgspec.structs.asdict(status),
        received_at=received_at,
        elapsed_millis=elapsed_ms,
    )
    return AuditEntry(headers=list(envelope.headers), record=record)


class IAuditSink(Protocol):
    async def report(
        self, log_envelope: Message, received_at: datetime, elapsed_ms: float
    ) -> None:
        """
        report the outcome of one inbound message,
        called exactly once per message
        """


class InMemoryAuditSink(IAuditSink):
    "keeps the latest `volume` entries, reporting never waits on a reader"

    def __init__(self, volume: int = 100):
        self._queue = Queue[AuditEntry](volume)

    @property
    def queue(self) -> Queue[AuditEntry]:
        return self._queue

    async def report(
        self, log_envelope: Message, received_at: datetime, elapsed_ms: float
    ) -> None:
        entry = audit_entry(log_envelope, received_at, elapsed_ms)
        if put_dropping_oldest(self._queue, entry) is not None:
            logger.warning(
                f"audit sink is full at {self._queue.maxsize} entries, oldest entry dropped"
            )

    def entries(self) -> list[AuditEntry]:
        entries: list[AuditEntry] = []
        while not self._queue.empty():
            entries.append(self._queue.get_nowait())
        return entries


class QueueAuditSink(IAuditSink):
    "send audit records onto a log queue"

    def __init__(self, queue: IQueue, queue_name: str = "log"):
        self._queue = queue
        self._queue_name = queue_name

    async def report(
        self, log_envelope: Message, received_at: datetime, elapsed_ms: float
    ) -> None:
        entry = audit_entry(log_envelope, received_at, elapsed_ms)
        message = Message(headers=entry.headers, body=encode(entry.record))
        await self._queue.send(self._queue_name, encode_message(message))
        logger.debug(
            f"audit record sent to `{self._queue_name}`, took {elapsed_ms:.3f}ms"
        )
