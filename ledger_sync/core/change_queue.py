"""Bounded hand-off channel between the change poller and the persistence writer."""

import asyncio
import logging

from ledger_sync.models.dtos import QueueItem

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_MAXSIZE = 100


class ChangeQueue:
    """
    FIFO queue of ``QueueItem`` with a fixed capacity.

    ``put`` suspends the producer while the queue is full; that backpressure
    is the only coordination between poller and writer.
    """

    def __init__(self, maxsize: int = DEFAULT_QUEUE_MAXSIZE):
        if maxsize < 1:
            raise ValueError(f"Queue capacity must be at least 1, got {maxsize}")
        self._queue: "asyncio.Queue[QueueItem]" = asyncio.Queue(maxsize=maxsize)

    @property
    def maxsize(self) -> int:
        return self._queue.maxsize

    def qsize(self) -> int:
        return self._queue.qsize()

    def full(self) -> bool:
        return self._queue.full()

    async def put(self, item: QueueItem) -> None:
        if self._queue.full():
            logger.info(f"Change queue full ({self.maxsize} items); waiting for writer")
        await self._queue.put(item)

    async def get(self) -> QueueItem:
        return await self._queue.get()

    def task_done(self) -> None:
        self._queue.task_done()

    async def join(self) -> None:
        await self._queue.join()
