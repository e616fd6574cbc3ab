from contextlib import asynccontextmanager
from decimal import Decimal, InvalidOperation
from typing import Any, AsyncGenerator

import sqlalchemy as sa
from loguru import logger
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

from .config import Settings
from .errors import DecodeFailureError, InvalidFilterError, PersistenceFailureError
from .messages.model import Book
from .messages.table import books_table

UPSERT_DIALECTS = {"sqlite": sqlite.insert, "postgresql": postgresql.insert}


def engine_factory(settings: Settings) -> AsyncEngine:
    return create_async_engine(settings.sqldb_connection, echo=settings.sqldb_echo)


def parse_isbn_filter(raw: str | None) -> list[str] | None:
    """
    "978-1, 978-2" -> ["978-1", "978-2"]

    None or "" means no filter, an empty value in between commas is rejected.
    """
    if not raw:
        return None

    isbns = [isbn.strip() for isbn in raw.split(",")]
    if not all(isbns):
        raise InvalidFilterError(raw)
    return isbns


def parse_price(price: str | None) -> Decimal | None:
    if price is None:
        return None
    try:
        value = Decimal(price)
    except InvalidOperation:
        raise DecodeFailureError(f"price `{price}` is not a decimal") from None
    if not value.is_finite():
        raise DecodeFailureError(f"price `{price}` is not a decimal")
    return value


def row_to_book(row: sa.Row[Any]) -> Book:
    isbn, title, author, publication_date, price = row
    return Book(
        isbn=isbn,
        title=title,
        author=author,
        publication_date=publication_date,
        price=None if price is None else str(price),
    )


class BookRepository:
    def __init__(self, engine: AsyncEngine):
        self._engine = engine

    @asynccontextmanager
    async def _transaction(self) -> AsyncGenerator[AsyncConnection, None]:
        "a scoped connection, released on every exit path"
        try:
            async with self._engine.begin() as conn:
                yield conn
        except SQLAlchemyError as exc:
            reason = str(exc).splitlines()[0] if str(exc) else type(exc).__name__
            raise PersistenceFailureError(reason) from exc

    def _upsert_stmt(self, values: dict[str, Any]):
        dialect = self._engine.dialect.name
        try:
            insert = UPSERT_DIALECTS[dialect]
        except KeyError:
            raise PersistenceFailureError(f"upsert is not supported on `{dialect}`")

        stmt = insert(books_table).values(**values)
        updates: dict[Any, Any] = {
            books_table.c[key]: stmt.excluded[key] for key in values if key != "isbn"
        }
        return stmt.on_conflict_do_update(
            index_elements=[books_table.c.isbn], set_=updates
        )

    async def upsert(self, book: Book) -> None:
        if not book.isbn:
            raise DecodeFailureError("isbn is required to create a book")

        stmt = self._upsert_stmt(
            dict(
                isbn=book.isbn,
                title=book.title,
                author=book.author,
                publication_date=book.publication_date,
                price=parse_price(book.price),
            )
        )
        async with self._transaction() as conn:
            await conn.execute(stmt)
        logger.debug(f"book {book.isbn} upserted")

    async def delete(self, isbn: str) -> int:
        stmt = sa.delete(books_table).where(books_table.c.isbn == isbn)
        async with self._transaction() as conn:
            result = await conn.execute(stmt)
            affected = result.rowcount
        logger.debug(f"book {isbn} deleted, {affected} row(s) affected")
        return affected

    async def list_books(self, isbn_filter: str | None = None) -> list[Book]:
        isbns = parse_isbn_filter(isbn_filter)
        c = books_table.c
        stmt = sa.select(c.isbn, c.title, c.author, c.publication_date, c.price)
        if isbns:
            params = [sa.bindparam(f"isbn_{i}", isbn) for i, isbn in enumerate(isbns)]
            stmt = stmt.where(c.isbn.in_(params))
        stmt = stmt.order_by(c.isbn)

        async with self._transaction() as conn:
            result = await conn.execute(stmt)
            rows = result.all()
        return [row_to_book(row) for row in rows]
