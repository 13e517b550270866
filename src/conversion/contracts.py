from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from contracts import ErrorRecord
from normalize_image import ImageStats, NormalizedBitmap, NormalizeImageConfig
from trace_bitmap import TraceConfig, TraceParameters

SUPPORTED_INPUT_SUFFIXES = (".png", ".jpg", ".jpeg", ".gif", ".tif", ".tiff", ".bmp", ".pbm", ".pgm", ".ppm", ".pnm")


def is_supported_format(path: Path) -> bool:
    return path.suffix.lower() in SUPPORTED_INPUT_SUFFIXES


@dataclass(frozen=True, slots=True)
class PipelineConfig:
    """
    Everything the two stages need, passed explicitly (no environment reads).

    `work_root` is the parent of the per-source working directories; None
    uses `<system temp>/raster-trace`.
    """

    normalize: NormalizeImageConfig = field(default_factory=NormalizeImageConfig)
    trace: TraceConfig = field(default_factory=TraceConfig)
    work_root: Path | None = None


@dataclass(frozen=True, slots=True)
class PreprocessResult:
    """
    State needed to re-trace a source any number of times.
    """

    bitmap_path: Path
    working_dir: Path
    stats: ImageStats
    bitmap: NormalizedBitmap


@dataclass(frozen=True, slots=True)
class ConversionOptions:
    params: TraceParameters = field(default_factory=TraceParameters)
    keep_temp: bool = False  # keep the intermediate .pgm after a successful run
    output_file: Path | None = None  # default: <working_dir>/<stem>.svg


@dataclass(frozen=True, slots=True)
class ConversionResult:
    """
    Outcome of convert_one. On failure the working directory is retained for
    post-mortem inspection and `errors` holds the cause. On success
    `working_dir` is None when nothing was left in it and it was removed.

    Times are in seconds.
    """

    ok: bool
    source_path: Path
    working_dir: Path | None
    output_path: Path | None
    duration: float
    preprocess_time: float | None = None
    trace_time: float | None = None
    output_size: int | None = None
    stats: ImageStats | None = None
    errors: list[ErrorRecord] = field(default_factory=list)

    @property
    def error_message(self) -> str | None:
        return self.errors[0].message if self.errors else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "source_path": str(self.source_path),
            "working_dir": None if self.working_dir is None else str(self.working_dir),
            "output_path": None if self.output_path is None else str(self.output_path),
            "duration": self.duration,
            "preprocess_time": self.preprocess_time,
            "trace_time": self.trace_time,
            "output_size": self.output_size,
            "stats": None if self.stats is None else self.stats.to_dict(),
            "errors": [e.to_dict() for e in self.errors],
        }
