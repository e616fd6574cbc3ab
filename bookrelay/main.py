"""
Wiring, and the long running consumer of the inbound queue.

python -m bookrelay.main
"""

import asyncio
import sys

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncEngine

from ._itypes import IQueue
from .config import Settings
from .dispatcher import CommandDispatcher
from .publisher import ResponsePublisher
from .relay import BookRelay
from .repository import BookRepository, engine_factory
from .sink import QueueAuditSink
from .transport.amqp import AmqpConnection, AmqpQueue


def configure_logging(settings: Settings) -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level.upper(),
        format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra} | {message}",
    )


def relay_factory(settings: Settings, engine: AsyncEngine, queue: IQueue) -> BookRelay:
    return BookRelay(
        CommandDispatcher(BookRepository(engine)),
        ResponsePublisher(queue),
        QueueAuditSink(queue, settings.audit_queue),
        router_queue=settings.router_queue,
        inbound_queue=settings.inbound_queue,
        report_unsupported=settings.report_unsupported,
    )


async def serve(settings: Settings) -> None:
    engine = engine_factory(settings)
    try:
        async with AmqpConnection(settings.amqp_url) as connection:
            queue = AmqpQueue(connection)
            relay = relay_factory(settings, engine, queue)
            await queue.consume(
                settings.inbound_queue,
                relay.receive,
                prefetch_count=settings.prefetch_count,
            )
            await asyncio.Future()
    finally:
        await engine.dispose()


def run() -> None:
    settings = Settings()
    configure_logging(settings)
    logger.info(f"bookrelay serving `{settings.inbound_queue}`")
    try:
        asyncio.run(serve(settings))
    except KeyboardInterrupt:
        logger.info("bookrelay stopped")


if __name__ == "__main__":
    run()
