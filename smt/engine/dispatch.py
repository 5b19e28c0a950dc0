"""Background dispatch of evidence validation jobs."""

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

ValidationHandler = Callable[[str], Awaitable[object]]


class ValidationDispatcher:
    """
    Queue of evaluation ids consumed by a fixed pool of asyncio workers.

    enqueue() never blocks the caller. An id already waiting in the queue is
    not queued twice; the job re-reads the evaluation when it runs anyway.
    There is no cancellation: stale results are rejected on arrival.
    """

    def __init__(self, handler: ValidationHandler, workers: int = 2):
        self.handler = handler
        self.workers = max(1, workers)
        self._queue: asyncio.Queue[str] = asyncio.Queue()
        self._pending: set[str] = set()
        self._tasks: list[asyncio.Task] = []

    @property
    def running(self) -> bool:
        return bool(self._tasks)

    def start(self) -> None:
        if self._tasks:
            return
        self._tasks = [
            asyncio.create_task(self._worker(n), name=f"validation-worker-{n}")
            for n in range(self.workers)
        ]
        logger.info("Started %d validation workers", self.workers)

    async def stop(self) -> None:
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    def enqueue(self, evaluation_id: str) -> bool:
        """Queue a validation job. Returns False if one is already waiting."""
        if evaluation_id in self._pending:
            return False
        self._pending.add(evaluation_id)
        self._queue.put_nowait(evaluation_id)
        logger.info("Queued validation for evaluation %s", evaluation_id)
        return True

    async def join(self) -> None:
        """Wait until every queued job has been processed."""
        await self._queue.join()

    async def _worker(self, n: int) -> None:
        while True:
            evaluation_id = await self._queue.get()
            self._pending.discard(evaluation_id)
            try:
                await self.handler(evaluation_id)
            except Exception:
                logger.exception(
                    "Validation worker %d failed for evaluation %s", n, evaluation_id
                )
            finally:
                self._queue.task_done()
