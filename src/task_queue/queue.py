from __future__ import annotations

import inspect
import logging
from typing import Any, AsyncIterator, Callable

from .contracts import (
    BatchCompleted,
    BatchError,
    BatchResult,
    BatchStopped,
    QueueEvent,
    QueueState,
    Task,
    TaskProgress,
    TaskWork,
)

logger = logging.getLogger(__name__)

ProgressHandler = Callable[[int, int, Any], None]
CompleteHandler = Callable[[BatchResult], None]
StopHandler = Callable[[], None]


class TaskQueue:
    """
    Serial, cooperatively cancellable run loop.

    Tasks run one at a time in insertion order. A failing task is recorded in
    the BatchResult and the run continues. stop() is checked only between
    tasks: the task in flight always runs to completion (an external process
    it started is not killed).

    Consume `run()` for an event stream, or call `start()` to have events
    dispatched to the optional handlers.
    """

    def __init__(
        self,
        *,
        on_progress: ProgressHandler | None = None,
        on_complete: CompleteHandler | None = None,
        on_stop: StopHandler | None = None,
    ) -> None:
        self.on_progress = on_progress
        self.on_complete = on_complete
        self.on_stop = on_stop
        self._tasks: list[Task] = []
        self._index = 0
        self._cancelled = False
        self._state = QueueState.IDLE

    @property
    def state(self) -> QueueState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is QueueState.RUNNING

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def tasks(self) -> tuple[Task, ...]:
        return tuple(self._tasks)

    def __len__(self) -> int:
        return len(self._tasks)

    def add_task(self, work: TaskWork, metadata: Any = None) -> None:
        """
        Append a task. Added during a run, it executes later in the same run.
        """

        self._tasks.append(Task(work=work, metadata=metadata))

    def clear(self) -> None:
        """
        Drop all tasks and return to IDLE. Must not be called while running.
        """

        if self._state is QueueState.RUNNING:
            logger.warning("clear() called on a running queue")
        self._tasks = []
        self._index = 0
        self._cancelled = False
        self._state = QueueState.IDLE

    def stop(self) -> bool:
        """
        Request cancellation. Returns False (and does nothing) when not running.
        """

        if self._state is not QueueState.RUNNING:
            return False
        self._cancelled = True
        self._state = QueueState.STOPPED
        logger.info("queue stop requested at task %d/%d", self._index + 1, len(self._tasks))
        if self.on_stop is not None:
            self.on_stop()
        return True

    async def run(self) -> AsyncIterator[QueueEvent]:
        """
        Execute the queue, yielding TaskProgress before each task and a final
        BatchCompleted or BatchStopped. Yields nothing when the queue is empty
        or not IDLE.
        """

        if self._state is not QueueState.IDLE or not self._tasks:
            return

        self._state = QueueState.RUNNING
        self._cancelled = False
        self._index = 0
        result = BatchResult()

        try:
            i = 0
            # len() is re-read each pass so tasks added mid-run are picked up.
            while i < len(self._tasks):
                if self._cancelled:
                    break
                self._index = i
                task = self._tasks[i]
                yield TaskProgress(position=i + 1, total=len(self._tasks), metadata=task.metadata)

                try:
                    outcome = task.work()
                    if inspect.isawaitable(outcome):
                        await outcome
                    result.success += 1
                except Exception as e:
                    result.fail += 1
                    result.errors.append(BatchError(metadata=task.metadata, message=str(e)))
                    logger.warning("task %d/%d failed: %s", i + 1, len(self._tasks), e, exc_info=True)
                i += 1

            if self._cancelled:
                yield BatchStopped(result=result)
                return

            self._state = QueueState.IDLE
            logger.info("queue finished: %d succeeded, %d failed", result.success, result.fail)
            yield BatchCompleted(result=result)
        finally:
            # Consumer abandoned the stream mid-run.
            if self._state is QueueState.RUNNING:
                self._state = QueueState.IDLE

    async def start(self) -> BatchResult | None:
        """
        Run the queue dispatching to the handlers. Returns the (possibly
        partial) result, or None when the call was a no-op.

        on_complete fires only on natural completion; on_stop has already
        fired inside stop().
        """

        result: BatchResult | None = None
        async for event in self.run():
            if isinstance(event, TaskProgress):
                if self.on_progress is not None:
                    self.on_progress(event.position, event.total, event.metadata)
            elif isinstance(event, BatchCompleted):
                result = event.result
                if self.on_complete is not None:
                    self.on_complete(result)
            elif isinstance(event, BatchStopped):
                result = event.result
        return result
