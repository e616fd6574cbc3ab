"""
wire model of the book envelope protocol and the books table
"""

from .model import BOOKS_CONTENT as BOOKS_CONTENT
from .model import Book as Book
from .model import Command as Command
from .model import ContentHeader as ContentHeader
from .model import Header as Header
from .model import IdHeader as IdHeader
from .model import Message as Message
from .model import MessageHeader as MessageHeader
from .model import QueueTrailHeader as QueueTrailHeader
from .model import decode_command as decode_command
from .model import decode_message as decode_message
from .model import encode as encode
from .model import encode_message as encode_message
from .model import header_from_wire as header_from_wire
from .model import header_to_wire as header_to_wire
from .model import headers_to_wire as headers_to_wire
from .table import Books as Books
from .table import create_tables as create_tables
