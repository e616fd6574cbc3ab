import time
from asyncio import Queue
from datetime import UTC, datetime
from uuid import uuid4


def uuid_factory() -> str:
    return str(uuid4())


def utc_now() -> datetime:
    return datetime.now(UTC)


class Stopwatch:
    """
    monotonic timer, started on creation

    ```py
    watch = Stopwatch()
    await work()
    watch.elapsed_ms
    ```
    """

    __slots__ = ("_started",)

    def __init__(self):
        self._started = time.perf_counter()

    @property
    def elapsed_ms(self) -> float:
        return (time.perf_counter() - self._started) * 1000


def put_dropping_oldest[T](queue: Queue[T], item: T) -> T | None:
    """
    put `item` without ever waiting, a full queue gives up its oldest item,
    which is returned.
    """
    dropped: T | None = None
    if queue.full():
        dropped = queue.get_nowait()
    queue.put_nowait(item)
    return dropped
