from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from contracts import ProcessExitError, ProcessSpawnError, TraceTimeoutError

from ..contracts import TraceParameters
from .base import EngineTraceRun, TraceEngine

logger = logging.getLogger(__name__)


def build_potrace_args(params: TraceParameters, *, bitmap_file: Path, output_file: Path) -> list[str]:
    """
    Command-line arguments (without the executable).

    Order is fixed: output format, optional flags, `-o <output>`, and the
    bitmap path last.
    """

    args = ["--svg"]
    if params.invert:
        args.append("-i")
    if params.blacklevel is not None:
        args.extend(["-k", str(params.blacklevel)])
    if params.alphamax is not None:
        args.extend(["-a", str(params.alphamax)])
    if params.opttolerance is not None:
        args.extend(["-O", str(params.opttolerance)])
    if params.turdsize is not None:
        args.extend(["-t", str(params.turdsize)])
    if params.tight:
        args.append("--tight")
    if params.group:
        args.append("--group")
    if not params.optcurve:
        args.append("-n")
    args.extend(["-o", str(output_file)])
    args.append(str(bitmap_file))
    return args


class PotraceCliEngine(TraceEngine):
    """
    potrace via its command-line executable.

    The process is awaited to completion; nothing here kills it except the
    optional watchdog timeout.
    """

    def __init__(self, executable: Path) -> None:
        self.executable = executable

    def backend_id(self) -> str:
        return "potrace"

    async def trace(
        self,
        *,
        bitmap_file: Path,
        output_file: Path,
        params: TraceParameters,
        timeout_s: float | None,
    ) -> EngineTraceRun:
        cmd = [str(self.executable), *build_potrace_args(params, bitmap_file=bitmap_file, output_file=output_file)]
        logger.debug("exec: %s", " ".join(cmd))

        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ProcessSpawnError(
                "potrace could not be started",
                detail={"executable": str(self.executable), "error": repr(e)},
            ) from e

        try:
            if timeout_s is None:
                out, err = await proc.communicate()
            else:
                out, err = await asyncio.wait_for(proc.communicate(), timeout=timeout_s)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            raise TraceTimeoutError("potrace timed out", detail={"timeout_s": timeout_s}) from None

        stdout = out.decode("utf-8", errors="replace")
        stderr = err.decode("utf-8", errors="replace")
        returncode = proc.returncode if proc.returncode is not None else -1

        if returncode != 0:
            raise ProcessExitError(
                f"potrace exited with code {returncode}",
                returncode=returncode,
                stderr=stderr,
            )
        return EngineTraceRun(returncode=returncode, stdout=stdout, stderr=stderr)
