import asyncio
from typing import List

import pytest

from runtime.lane_queue import LaneQueue


def test_session_messages_wait_their_turn() -> None:
    async def run_test() -> None:
        queue = LaneQueue(max_concurrency=3)
        gates = {name: asyncio.Event() for name in ("first", "second", "third")}
        handled: List[str] = []

        async def handle(name: str) -> str:
            await gates[name].wait()
            handled.append(name)
            return f"{name} handled"

        tasks = [
            asyncio.create_task(queue.submit("session-a", lambda name=name: handle(name)))
            for name in ("first", "second", "third")
        ]
        await asyncio.sleep(0.01)
        assert queue.pending("session-a") == 3

        # Releasing a later message first must not let it jump the queue
        gates["third"].set()
        gates["second"].set()
        await asyncio.sleep(0.01)
        assert handled == []

        gates["first"].set()
        results = await asyncio.gather(*tasks)

        assert handled == ["first", "second", "third"]
        assert results == ["first handled", "second handled", "third handled"]
        assert not queue.is_busy("session-a")
        await queue.close()

    asyncio.run(run_test())


def test_busy_session_does_not_block_another() -> None:
    async def run_test() -> None:
        queue = LaneQueue(max_concurrency=2)
        release = asyncio.Event()

        async def slow() -> str:
            await release.wait()
            return "slow"

        blocked = asyncio.create_task(queue.submit("session-a", slow))
        await asyncio.sleep(0)

        assert await queue.submit("session-b", lambda: "fast") == "fast"
        assert queue.is_busy("session-a")
        assert not queue.is_busy("session-b")

        release.set()
        assert await blocked == "slow"
        await queue.close()

    asyncio.run(run_test())


def test_is_busy_tracks_in_flight_work() -> None:
    async def run_test() -> None:
        queue = LaneQueue()
        release = asyncio.Event()

        async def task() -> str:
            await release.wait()
            return "done"

        pending = asyncio.create_task(queue.submit("session-a", task))
        await asyncio.sleep(0)
        await asyncio.sleep(0)

        assert queue.is_busy("session-a")
        assert queue.pending("session-a") == 1
        assert not queue.is_busy("session-b")

        release.set()
        assert await pending == "done"
        assert not queue.is_busy("session-a")
        await queue.close()

    asyncio.run(run_test())


def test_errors_reach_the_submitter_and_lane_continues() -> None:
    async def run_test() -> None:
        queue = LaneQueue()

        def boom() -> None:
            raise RuntimeError("step failed")

        with pytest.raises(RuntimeError, match="step failed"):
            await queue.submit("session-a", boom)

        assert await queue.submit("session-a", lambda: "next") == "next"
        await queue.close()

    asyncio.run(run_test())


def test_close_cancels_queued_work() -> None:
    async def run_test() -> None:
        queue = LaneQueue()
        release = asyncio.Event()

        async def blocker() -> None:
            await release.wait()

        first = asyncio.create_task(queue.submit("session-a", blocker))
        second = asyncio.create_task(queue.submit("session-a", lambda: "never"))
        await asyncio.sleep(0.01)

        await queue.close()

        results = await asyncio.gather(first, second, return_exceptions=True)
        assert all(isinstance(result, asyncio.CancelledError) for result in results)

    asyncio.run(run_test())
