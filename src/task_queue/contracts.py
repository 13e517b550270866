from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Union


class QueueState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    # Cancelled by stop(); only clear() returns the queue to IDLE.
    STOPPED = "stopped"


TaskWork = Callable[[], Union[Awaitable[Any], Any]]


@dataclass(frozen=True, slots=True)
class Task:
    work: TaskWork
    metadata: Any = None  # opaque; only echoed back in events and errors


@dataclass(frozen=True, slots=True)
class BatchError:
    metadata: Any
    message: str


@dataclass(slots=True)
class BatchResult:
    success: int = 0
    fail: int = 0
    errors: list[BatchError] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "fail": self.fail,
            "errors": [{"metadata": e.metadata, "message": e.message} for e in self.errors],
        }


@dataclass(frozen=True, slots=True)
class TaskProgress:
    """
    Emitted before a task starts ("now processing"), position is 1-based.
    """

    position: int
    total: int
    metadata: Any


@dataclass(frozen=True, slots=True)
class BatchCompleted:
    result: BatchResult


@dataclass(frozen=True, slots=True)
class BatchStopped:
    """
    Emitted once the task in flight at stop() time has finished; `result`
    includes that task's outcome.
    """

    result: BatchResult


QueueEvent = Union[TaskProgress, BatchCompleted, BatchStopped]
