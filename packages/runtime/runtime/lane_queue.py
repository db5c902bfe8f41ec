import asyncio
import inspect
import logging
from typing import Awaitable, Callable, Dict, Tuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LaneQueue:
    """Per-session FIFO lanes.

    Work submitted on the same lane runs one item at a time in submission
    order; different lanes may overlap up to ``max_concurrency``.
    """

    def __init__(self, max_concurrency: int = 4) -> None:
        self._lanes: Dict[str, asyncio.Queue[Tuple[Callable[[], Awaitable[T] | T], asyncio.Future[T]]]] = {}
        self._workers: Dict[str, asyncio.Task[None]] = {}
        self._active: Dict[str, int] = {}
        self._state_lock = asyncio.Lock()
        self._global_semaphore = asyncio.Semaphore(max_concurrency)

    async def submit(self, lane_key: str, fn: Callable[[], Awaitable[T] | T]) -> T:
        loop = asyncio.get_running_loop()
        future: asyncio.Future[T] = loop.create_future()

        async with self._state_lock:
            queue = self._lanes.get(lane_key)
            if queue is None:
                queue = asyncio.Queue()
                self._lanes[lane_key] = queue
                self._workers[lane_key] = asyncio.create_task(self._lane_worker(lane_key))
            self._active[lane_key] = self._active.get(lane_key, 0) + 1

        if self._active[lane_key] > 1:
            logger.info("lane %s busy, queued behind %d item(s)", lane_key, self._active[lane_key] - 1)
        await queue.put((fn, future))
        return await future

    def is_busy(self, lane_key: str) -> bool:
        return self._active.get(lane_key, 0) > 0

    def pending(self, lane_key: str) -> int:
        return self._active.get(lane_key, 0)

    async def close(self) -> None:
        """Stop all lane workers. Work still queued is cancelled."""
        async with self._state_lock:
            workers = list(self._workers.values())
            lanes = list(self._lanes.values())
            self._workers.clear()
            self._lanes.clear()
            self._active.clear()
        for worker in workers:
            worker.cancel()
        for queue in lanes:
            while not queue.empty():
                _, future = queue.get_nowait()
                if not future.done():
                    future.cancel()
        await asyncio.gather(*workers, return_exceptions=True)

    async def _lane_worker(self, lane_key: str) -> None:
        queue = self._lanes[lane_key]
        while True:
            fn, future = await queue.get()
            try:
                async with self._global_semaphore:
                    result = fn()
                    if inspect.isawaitable(result):
                        result = await result
                if not future.cancelled():
                    future.set_result(result)
            except asyncio.CancelledError:
                if not future.done():
                    future.cancel()
                raise
            except Exception as exc:
                if not future.cancelled():
                    future.set_exception(exc)
            finally:
                self._active[lane_key] = max(self._active.get(lane_key, 1) - 1, 0)
                queue.task_done()
