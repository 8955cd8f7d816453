"""
Best-effort in-memory queue for writes attempted while offline
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional

from app.core.errors import AppError, ErrorType

logger = logging.getLogger(__name__)

OFFLINE_MESSAGE = "You are currently offline. This operation will be retried when connection is restored."


@dataclass
class QueuedOperation:
    operation: Callable[[], Awaitable[Any]]
    future: asyncio.Future
    max_retries: int
    retry_count: int = 0
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    timestamp: float = field(default_factory=time.time)


def _consume_result(future: asyncio.Future) -> None:
    # callers that were told "offline" may never await the future
    if not future.cancelled():
        future.exception()


class OfflineQueue:
    """Queues operations while offline and replays them in order once online.

    Nothing is persisted. Each item is retried up to ``max_retries`` times,
    with ``retry_delay`` seconds between passes over the queue. Operations
    queued while a drain is running are picked up by its next pass.

    While offline, the oldest queued operation is retried every
    ``retry_delay`` seconds; its first success marks the queue online and
    drains the rest.
    """

    def __init__(
        self,
        max_retries: int = 3,
        retry_delay: float = 5.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.sleep = sleep
        self.queue: List[QueuedOperation] = []
        self.is_online = True
        self.is_processing = False
        self._drain_task: Optional[asyncio.Task] = None
        self._reconnect_task: Optional[asyncio.Task] = None

    def set_online(self, online: bool) -> None:
        was_online = self.is_online
        self.is_online = online
        if online and not was_online:
            logger.info("Connection restored, processing queued operations")
            self._schedule_drain()
        elif not online and was_online:
            logger.warning("Application went offline. Operations will be queued.")
            self._schedule_reconnect()

    def _schedule_drain(self) -> None:
        if not self.queue or self.is_processing:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._drain_task = loop.create_task(self.process_queue())

    def _schedule_reconnect(self) -> None:
        if self._reconnect_task is not None and not self._reconnect_task.done():
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._reconnect_task = loop.create_task(self._retry_oldest())

    async def _retry_oldest(self) -> None:
        """Retry the oldest queued operation every ``retry_delay`` seconds until one succeeds."""
        while not self.is_online and self.queue:
            await self.sleep(self.retry_delay)
            if self.is_online or not self.queue:
                return

            item = self.queue[0]
            try:
                result = await item.operation()
            except Exception as e:
                logger.info(f"Still offline, queued operation {item.id} failed: {e!r}")
                continue

            # a queue drain may already have taken the item
            if item in self.queue:
                self.queue.remove(item)
                if not item.future.done():
                    item.future.set_result(result)
            self.set_online(True)

    def queue_operation(self, operation: Callable[[], Awaitable[Any]]) -> asyncio.Future:
        """Add ``operation`` to the queue; the returned future resolves with its eventual result."""
        future = asyncio.get_running_loop().create_future()
        future.add_done_callback(_consume_result)
        self.queue.append(QueuedOperation(operation=operation, future=future, max_retries=self.max_retries))

        if self.is_online:
            self._schedule_drain()
        else:
            self._schedule_reconnect()
        return future

    async def process_queue(self) -> None:
        if self.is_processing or not self.queue:
            return

        self.is_processing = True
        try:
            while self.queue and self.is_online:
                items, self.queue = self.queue, []
                logger.info(f"Processing {len(items)} queued operations...")

                for item in items:
                    try:
                        result = await item.operation()
                    except Exception as e:
                        item.retry_count += 1
                        if item.retry_count < item.max_retries:
                            self.queue.append(item)
                            logger.warning(
                                f"Queued operation {item.id} failed, will retry "
                                f"({item.retry_count}/{item.max_retries})"
                            )
                        else:
                            logger.error(
                                f"Queued operation {item.id} failed permanently after "
                                f"{item.max_retries} retries: {e!r}"
                            )
                            if not item.future.done():
                                item.future.set_exception(e)
                    else:
                        logger.info(f"Successfully processed queued operation {item.id}")
                        if not item.future.done():
                            item.future.set_result(result)

                if self.queue and self.is_online:
                    await self.sleep(self.retry_delay)
        finally:
            self.is_processing = False

    async def with_offline_support(self, operation: Callable[[], Awaitable[Any]]) -> Any:
        """Run ``operation`` now, or queue it and raise ``NETWORK_ERROR`` when offline."""
        if not self.is_online:
            self.queue_operation(operation)
            raise AppError(ErrorType.NETWORK_ERROR, OFFLINE_MESSAGE)

        try:
            return await operation()
        except AppError as e:
            if e.error_type is ErrorType.NETWORK_ERROR and not self.is_online:
                self.queue_operation(operation)
                raise AppError(ErrorType.NETWORK_ERROR, OFFLINE_MESSAGE) from e
            raise

    def status(self) -> Dict[str, Any]:
        return {
            "queue_length": len(self.queue),
            "is_processing": self.is_processing,
            "oldest_item": self.queue[0].timestamp if self.queue else None,
        }

    def clear(self) -> None:
        self.queue = []
