from typing import Awaitable, Callable

from loguru import logger

from ._ds import Completed, DispatchOutcome, Unsupported
from .errors import DecodeFailureError
from .messages.model import BOOKS_CONTENT, Book, Message, decode_command, encode
from .repository import BookRepository

type ActionHandler = Callable[[Book], Awaitable[Completed]]


def require_isbn(action: str, book: Book) -> str:
    if not book.isbn:
        raise DecodeFailureError(f"isbn is required to {action} a book")
    return book.isbn


class CommandDispatcher:
    """
    decodes the envelope body into a command and routes it by action keyword

    - create: upsert the record, respond with the echoed record
    - delete: delete by isbn, respond with the echoed record
    - list: list records, `record.isbn` is an optional comma separated filter

    any other action is logged and left unhandled.
    """

    def __init__(self, repository: BookRepository):
        self._repo = repository
        self._routes: dict[str, ActionHandler] = {
            "create": self.create,
            "delete": self.delete,
            "list": self.list_books,
        }

    @property
    def actions(self) -> list[str]:
        return list(self._routes)

    async def dispatch(self, message: Message) -> DispatchOutcome:
        command = decode_command(message)
        try:
            handler = self._routes[command.action]
        except KeyError:
            logger.error(f"Command {command.action} not supported")
            return Unsupported(action=command.action)
        return await handler(command.record)

    async def create(self, book: Book) -> Completed:
        require_isbn("create", book)
        await self._repo.upsert(book)
        return Completed(action="create", body=encode(book))

    async def delete(self, book: Book) -> Completed:
        isbn = require_isbn("delete", book)
        await self._repo.delete(isbn)
        return Completed(action="delete", body=encode(book))

    async def list_books(self, book: Book) -> Completed:
        books = await self._repo.list_books(book.isbn)
        return Completed(action="list", body=encode(books), content_label=BOOKS_CONTENT)
