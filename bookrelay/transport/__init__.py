"""
Queue transports.

The relay only ever needs the outbound `send` side of a queue,
delivery and redelivery of inbound messages belong to the transport.
"""

from asyncio import Queue
from collections import defaultdict

from loguru import logger

from .._itypes import IQueue as IQueue
from ..utils import put_dropping_oldest


class InMemoryQueue(IQueue):
    "keeps the latest `volume` payloads per queue, `send` never waits on a reader"

    def __init__(self, volume: int = 100):
        self._volume = volume
        self._queues: defaultdict[str, Queue[str]] = defaultdict(self._new_queue)

    def _new_queue(self) -> Queue[str]:
        return Queue[str](self._volume)

    def queue(self, queue_name: str) -> Queue[str]:
        return self._queues[queue_name]

    async def send(self, queue_name: str, payload: str) -> None:
        queue = self._queues[queue_name]
        if put_dropping_oldest(queue, payload) is not None:
            logger.warning(
                f"queue `{queue_name}` is full at {queue.maxsize} messages, oldest message dropped"
            )

    def drain(self, queue_name: str) -> list[str]:
        queue = self._queues[queue_name]
        payloads: list[str] = []
        while not queue.empty():
            payloads.append(queue.get_nowait())
        return payloads
