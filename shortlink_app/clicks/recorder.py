"""
Fire-and-forget click recording.

The redirect handler submits clicks to a bounded in-process queue and
returns immediately; a small pool of worker tasks drains the queue and
persists each click through a handler coroutine.

Delivery is at-most-once:
- a full queue drops the click (warning logged)
- a failing handler is logged and the click is not retried
- clicks still queued when the drain timeout expires at shutdown are lost
"""

import asyncio
import logging
from typing import Awaitable, Callable, List

from shortlink_app.clicks.models import ClickMessage

logger = logging.getLogger(__name__)

ClickHandler = Callable[[ClickMessage], Awaitable[None]]


class ClickRecorder:
    def __init__(self, handler: ClickHandler, workers: int = 4, maxsize: int = 1000):
        self.handler = handler
        self.workers = max(1, workers)
        self.queue: "asyncio.Queue[ClickMessage]" = asyncio.Queue(maxsize=maxsize)
        self._tasks: List[asyncio.Task] = []
        self.processed_count = 0
        self.failed_count = 0
        self.dropped_count = 0

    @property
    def running(self) -> bool:
        return bool(self._tasks)

    def start(self) -> None:
        """Spawn the worker tasks on the running event loop."""
        if self._tasks:
            return
        self._tasks = [
            asyncio.create_task(self._worker(i), name=f"click-worker-{i}")
            for i in range(self.workers)
        ]
        logger.info(
            "Click recorder started",
            extra={"workers": self.workers, "queue_size": self.queue.maxsize},
        )

    def submit(self, message: ClickMessage) -> bool:
        """Enqueue a click without waiting. Returns False if it was dropped."""
        try:
            self.queue.put_nowait(message)
        except asyncio.QueueFull:
            self.dropped_count += 1
            logger.warning("Click queue full, dropping click", extra={"alias": message.alias})
            return False
        return True

    async def _worker(self, number: int) -> None:
        while True:
            message = await self.queue.get()
            try:
                await self.handler(message)
                self.processed_count += 1
            except Exception:
                self.failed_count += 1
                logger.exception(
                    "Failed to record click",
                    extra={"alias": message.alias, "worker": number},
                )
            finally:
                self.queue.task_done()

    async def stop(self, timeout: float = 5.0) -> None:
        """Give queued clicks `timeout` seconds to drain, then cancel the workers."""
        if not self._tasks:
            return

        try:
            await asyncio.wait_for(self.queue.join(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "Click queue not drained before shutdown",
                extra={"pending": self.queue.qsize()},
            )

        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []

        logger.info(
            "Click recorder stopped",
            extra={
                "processed": self.processed_count,
                "failed": self.failed_count,
                "dropped": self.dropped_count,
            },
        )
