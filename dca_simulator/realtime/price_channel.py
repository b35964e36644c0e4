"""
Price update channel from tick ingestion to any consumer.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from dca_simulator.domain.models import PriceUpdate

logger = logging.getLogger(__name__)

PriceUpdateHandler = Callable[[PriceUpdate], Awaitable[None]]


class PriceUpdateChannel:
    def __init__(self, maxsize: int = 1000):
        self._queue: asyncio.Queue[PriceUpdate] = asyncio.Queue(maxsize=maxsize)

    async def publish(self, update: PriceUpdate) -> None:
        await self._queue.put(update)

    def publish_nowait(self, update: PriceUpdate) -> bool:
        """Drop the update when the channel is full"""
        try:
            self._queue.put_nowait(update)
            return True
        except asyncio.QueueFull:
            logger.warning("Price channel full, dropping update for %s", update.symbol)
            return False

    async def get(self) -> PriceUpdate:
        return await self._queue.get()

    def size(self) -> int:
        return self._queue.qsize()

    async def join(self) -> None:
        await self._queue.join()

    def task_done(self) -> None:
        self._queue.task_done()


class PriceUpdateWorker:
    def __init__(self, channel: PriceUpdateChannel, handler: PriceUpdateHandler):
        self._channel = channel
        self._handler = handler
        self._task: Optional[asyncio.Task] = None
        self._stop = asyncio.Event()

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        self._stop.set()
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                return

    async def _run(self) -> None:
        while not self._stop.is_set():
            update = await self._channel.get()
            try:
                await self._handler(update)
            except Exception as exc:
                logger.warning("Price update handler failed for %s: %s", update.symbol, exc)
            finally:
                self._channel.task_done()
