import typing as ty
from pathlib import Path

import msgspec
import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from bookrelay import (
    BookRelay,
    BookRepository,
    CommandDispatcher,
    InMemoryAuditSink,
    InMemoryQueue,
    ResponsePublisher,
)
from bookrelay.messages import Book, create_tables

GUID = "5d6f1c1e-6a1e-4c0e-9f51-3f1d2a7b9c11"
TRAIL = "ms-books"
TIMESTAMP = "2024-05-01T10:00:00Z"


def id_header(guid: str = GUID) -> dict[str, ty.Any]:
    return {"name": "id-header", "fields": {"GUID": guid}}


def queue_header(name: str = TRAIL, timestamp: str = TIMESTAMP) -> dict[str, ty.Any]:
    return {
        "name": "current-queue-header",
        "fields": {"Name": name, "Timestamp": timestamp},
    }


def envelope(
    body: ty.Any,
    headers: list[dict[str, ty.Any]] | None = None,
) -> str:
    "build an inbound payload the way an upstream service would"
    if headers is None:
        headers = [id_header(), queue_header()]
    if not isinstance(body, str):
        body = msgspec.json.encode(body).decode()
    return msgspec.json.encode({"headers": headers, "body": body}).decode()


def command(action: str, **record: ty.Any) -> dict[str, ty.Any]:
    return {"action": action, "record": record}


class SpyRepository:
    def __init__(self, books: list[Book] | None = None):
        self.calls: list[tuple[str, ty.Any]] = []
        self._books = books or []

    async def upsert(self, book: Book) -> None:
        self.calls.append(("upsert", book))

    async def delete(self, isbn: str) -> int:
        self.calls.append(("delete", isbn))
        return 0

    async def list_books(self, isbn_filter: str | None = None) -> list[Book]:
        self.calls.append(("list", isbn_filter))
        return self._books


class FailingQueue:
    async def send(self, queue_name: str, payload: str) -> None:
        raise ConnectionError("queue is unreachable")


@pytest.fixture
async def engine(tmp_path: Path) -> ty.AsyncGenerator[AsyncEngine, None]:
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'books.db'}")
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
async def bare_engine(tmp_path: Path) -> ty.AsyncGenerator[AsyncEngine, None]:
    "an engine whose database has no tables"
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'empty.db'}")
    yield engine
    await engine.dispose()


@pytest.fixture
def repo(engine: AsyncEngine) -> BookRepository:
    return BookRepository(engine)


@pytest.fixture
def queue() -> InMemoryQueue:
    return InMemoryQueue()


@pytest.fixture
def sink() -> InMemoryAuditSink:
    return InMemoryAuditSink()


@pytest.fixture
def relay(
    repo: BookRepository, queue: InMemoryQueue, sink: InMemoryAuditSink
) -> BookRelay:
    return BookRelay(CommandDispatcher(repo), ResponsePublisher(queue), sink)
