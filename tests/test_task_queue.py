from __future__ import annotations

import asyncio
import unittest

from task_queue import BatchCompleted, BatchStopped, QueueState, TaskProgress, TaskQueue


class TestTaskQueue(unittest.IsolatedAsyncioTestCase):
    async def test_runs_in_order_with_progress_before_each_task(self) -> None:
        log: list[str] = []
        completed = []
        q = TaskQueue(
            on_progress=lambda pos, total, meta: log.append(f"progress {pos}/{total} {meta}"),
            on_complete=completed.append,
        )
        for name in ("a", "b", "c"):

            async def work(name: str = name) -> None:
                await asyncio.sleep(0)
                log.append(f"run {name}")

            q.add_task(work, metadata=name)

        result = await q.start()

        self.assertEqual(
            log,
            [
                "progress 1/3 a",
                "run a",
                "progress 2/3 b",
                "run b",
                "progress 3/3 c",
                "run c",
            ],
        )
        self.assertEqual((result.success, result.fail), (3, 0))
        self.assertEqual(completed, [result])
        self.assertIs(q.state, QueueState.IDLE)

    async def test_failures_are_recorded_not_propagated(self) -> None:
        q = TaskQueue()
        ran: list[int] = []

        def make(i: int):
            async def work() -> None:
                ran.append(i)
                if i in (1, 3):
                    raise RuntimeError(f"item {i} broke")

            return work

        for i in range(5):
            q.add_task(make(i), metadata={"i": i})

        result = await q.start()

        self.assertEqual(ran, [0, 1, 2, 3, 4])
        self.assertEqual((result.success, result.fail), (3, 2))
        self.assertEqual([e.metadata["i"] for e in result.errors], [1, 3])
        self.assertEqual(result.errors[0].message, "item 1 broke")

    async def test_sync_work_is_supported(self) -> None:
        q = TaskQueue()
        q.add_task(lambda: None)
        q.add_task(lambda: 1 / 0)
        result = await q.start()
        self.assertEqual((result.success, result.fail), (1, 1))

    async def test_empty_queue_is_a_noop(self) -> None:
        completed = []
        q = TaskQueue(on_complete=completed.append)
        self.assertIsNone(await q.start())
        self.assertEqual(completed, [])
        self.assertIs(q.state, QueueState.IDLE)

    async def test_stop_lets_in_flight_task_finish(self) -> None:
        ran: list[int] = []
        stops: list[None] = []
        completed = []
        q = TaskQueue(on_stop=lambda: stops.append(None), on_complete=completed.append)

        def make(i: int):
            async def work() -> None:
                if i == 1:
                    self.assertTrue(q.stop())
                    self.assertFalse(q.stop())
                await asyncio.sleep(0)
                ran.append(i)

            return work

        for i in range(4):
            q.add_task(make(i))

        result = await q.start()

        self.assertEqual(ran, [0, 1])
        self.assertEqual(len(stops), 1)
        self.assertEqual(completed, [])
        self.assertEqual(result.success, 2)
        self.assertIs(q.state, QueueState.STOPPED)

        # Uncleared stopped queue: start() does nothing.
        self.assertIsNone(await q.start())
        self.assertEqual(ran, [0, 1])

        q.clear()
        self.assertIs(q.state, QueueState.IDLE)
        self.assertEqual(len(q), 0)

    async def test_stop_when_idle_is_ignored(self) -> None:
        stops: list[None] = []
        q = TaskQueue(on_stop=lambda: stops.append(None))
        q.add_task(lambda: None)
        self.assertFalse(q.stop())
        self.assertEqual(stops, [])
        result = await q.start()
        self.assertEqual(result.success, 1)

    async def test_tasks_added_during_run_are_executed(self) -> None:
        ran: list[str] = []
        totals: list[int] = []
        q = TaskQueue(on_progress=lambda pos, total, meta: totals.append(total))

        def first() -> None:
            ran.append("first")
            q.add_task(lambda: ran.append("late"))

        q.add_task(first)
        await q.start()

        self.assertEqual(ran, ["first", "late"])
        self.assertEqual(totals, [1, 2])

    async def test_event_stream(self) -> None:
        q = TaskQueue()
        q.add_task(lambda: None, metadata="x")
        q.add_task(lambda: None, metadata="y")

        events = [e async for e in q.run()]

        self.assertEqual(
            [type(e) for e in events], [TaskProgress, TaskProgress, BatchCompleted]
        )
        self.assertEqual([(e.position, e.total, e.metadata) for e in events[:2]], [(1, 2, "x"), (2, 2, "y")])
        self.assertEqual(events[-1].result.success, 2)

    async def test_event_stream_ends_with_stopped(self) -> None:
        q = TaskQueue()
        q.add_task(lambda: None)
        q.add_task(lambda: None)

        events = []
        async for e in q.run():
            events.append(e)
            if isinstance(e, TaskProgress) and e.position == 1:
                q.stop()

        self.assertEqual([type(e) for e in events], [TaskProgress, BatchStopped])
        self.assertEqual(events[-1].result.success, 1)


if __name__ == "__main__":
    unittest.main()
