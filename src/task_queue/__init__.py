"""
Serial, cancellable task queue for batch conversion.

Guarantees:
- strict insertion order, one task at a time
- progress reported before each task, positions 1..N without gaps
- per-task failure isolation (recorded, never propagated)
- cooperative cancellation between tasks only
"""

from .contracts import (
    BatchCompleted,
    BatchError,
    BatchResult,
    BatchStopped,
    QueueEvent,
    QueueState,
    Task,
    TaskProgress,
)
from .queue import TaskQueue

__all__ = [
    "BatchCompleted",
    "BatchError",
    "BatchResult",
    "BatchStopped",
    "QueueEvent",
    "QueueState",
    "Task",
    "TaskProgress",
    "TaskQueue",
]
