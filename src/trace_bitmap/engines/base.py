from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from ..contracts import TraceParameters


@dataclass(frozen=True, slots=True)
class EngineTraceRun:
    returncode: int
    stdout: str
    stderr: str


class TraceEngine(ABC):
    """
    Interface for bitmap tracing engines.

    Engines must:
    - Write the vector output to exactly `output_file`
    - Raise `contracts.ProcessSpawnError` / `ProcessExitError` /
      `TraceTimeoutError` rather than returning partial results
    - Perform NO preprocessing of the bitmap
    """

    @abstractmethod
    def backend_id(self) -> str:
        raise NotImplementedError

    @abstractmethod
    async def trace(
        self,
        *,
        bitmap_file: Path,
        output_file: Path,
        params: TraceParameters,
        timeout_s: float | None,
    ) -> EngineTraceRun:
        raise NotImplementedError
