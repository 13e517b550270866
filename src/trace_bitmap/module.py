from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from contracts import EmptyOutputError
from contracts.cleanup import remove_advisory

from .binaries import resolve_binary
from .contracts import TraceConfig, TraceEngineName, TraceParameters, VectorArtifact
from .engines import PotraceCliEngine, TraceEngine

logger = logging.getLogger(__name__)


def _get_engine(config: TraceConfig) -> TraceEngine:
    if config.engine == TraceEngineName.POTRACE_CLI:
        executable = resolve_binary("potrace", bin_root=config.bin_root, explicit=config.potrace_path)
        return PotraceCliEngine(executable)
    raise ValueError(f"Unsupported trace engine: {config.engine}")


def _require_output(output_file: Path) -> int:
    try:
        size = output_file.stat().st_size
    except FileNotFoundError:
        size = 0
    if size == 0:
        raise EmptyOutputError(
            "Tracer reported success but produced no output",
            detail={"output_file": str(output_file)},
        )
    return size


def _transient_output_for(bitmap_file: Path) -> Path:
    fd, name = tempfile.mkstemp(prefix=f"{bitmap_file.stem}.preview.", suffix=".svg", dir=bitmap_file.parent)
    os.close(fd)
    return Path(name)


async def trace_bitmap(
    *,
    config: TraceConfig,
    bitmap_file: Path,
    params: TraceParameters | None = None,
    output_file: Path | None = None,
) -> VectorArtifact:
    """
    Trace a normalized bitmap into SVG.

    With `output_file`, the SVG is left on disk and the artifact points at it.
    Without it (preview), the tracer writes a transient file beside the
    bitmap; its content is read back into memory and the file is removed
    under the advisory cleanup policy.
    """

    params = params or TraceParameters()
    engine = _get_engine(config)

    if output_file is not None:
        output_file.parent.mkdir(parents=True, exist_ok=True)
        # A file left by an earlier run must not pass as fresh output.
        remove_advisory(output_file)
        run = await engine.trace(
            bitmap_file=bitmap_file, output_file=output_file, params=params, timeout_s=config.timeout_s
        )
        size = _require_output(output_file)
        logger.info("traced %s -> %s with %s (%d bytes)", bitmap_file.name, output_file, engine.backend_id(), size)
        return VectorArtifact(svg_content=None, path=output_file, size_bytes=size, stderr=run.stderr)

    transient = _transient_output_for(bitmap_file)
    try:
        run = await engine.trace(
            bitmap_file=bitmap_file, output_file=transient, params=params, timeout_s=config.timeout_s
        )
        size = _require_output(transient)
        content = transient.read_text(encoding="utf-8")
    finally:
        remove_advisory(transient)

    logger.debug("traced %s in memory (%d bytes)", bitmap_file.name, size)
    return VectorArtifact(svg_content=content, path=None, size_bytes=size, stderr=run.stderr)
