VERSION = "0.1.0"


from ._ds import Completed as Completed
from ._ds import DispatchOutcome as DispatchOutcome
from ._ds import Failed as Failed
from ._ds import Unsupported as Unsupported
from .config import Settings as Settings
from .dispatcher import CommandDispatcher as CommandDispatcher
from .publisher import ResponsePublisher as ResponsePublisher
from .relay import BookRelay as BookRelay
from .repository import BookRepository as BookRepository
from .sink import IAuditSink as IAuditSink
from .sink import InMemoryAuditSink as InMemoryAuditSink
from .sink import QueueAuditSink as QueueAuditSink
from .transport import InMemoryQueue as InMemoryQueue
