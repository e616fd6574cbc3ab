from typing import Sequence

from loguru import logger

from ._itypes import IQueue
from .errors import PublishFailureError
from .messages.model import Header, Message, encode_message, headers_to_wire


class ResponsePublisher:
    def __init__(self, queue: IQueue):
        self._queue = queue

    async def publish(
        self, queue_name: str, headers: Sequence[Header], body: str
    ) -> Message:
        message = Message(headers=headers_to_wire(headers), body=body)
        try:
            await self._queue.send(queue_name, encode_message(message))
        except Exception as exc:
            raise PublishFailureError(queue_name, str(exc) or type(exc).__name__) from exc
        logger.debug(f"message published to `{queue_name}`")
        return message
