from __future__ import annotations

import math
from dataclasses import asdict, dataclass, fields, replace
from enum import Enum
from pathlib import Path
from typing import Any, Mapping

from contracts import ValidationError

ALPHAMAX_RANGE = (0.0, 1.3334)
BLACKLEVEL_RANGE = (0.0, 1.0)


class TraceEngineName(str, Enum):
    """
    Tracing backends supported by this module.

    The tracer owns curve fitting; this module only prepares arguments and
    collects its output.
    """

    POTRACE_CLI = "potrace_cli"


def _check_number(name: str, value: Any, *, lo: float | None = None, hi: float | None = None) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or math.isnan(value):
        raise ValidationError(f"{name} must be a number", detail={"field": name, "value": repr(value)})
    if (lo is not None and value < lo) or (hi is not None and value > hi):
        raise ValidationError(
            f"{name} must be within [{lo}, {hi}]",
            detail={"field": name, "value": value, "min": lo, "max": hi},
        )


@dataclass(frozen=True, slots=True)
class TraceParameters:
    """
    Tracer settings, validated once at construction.

    Numeric fields set to None are omitted from the command line so the
    tracer's built-in default applies. Defaults suit clean logos and icons.
    """

    invert: bool = False  # -i; normalized bitmaps are already dark-on-white
    blacklevel: float | None = 0.3  # -k, threshold in [0, 1]
    alphamax: float | None = 0.5  # -a, corner threshold; 0 gives polygons
    opttolerance: float | None = 0.2  # -O, curve optimization tolerance
    turdsize: int | None = 10  # -t, suppress speckles up to this many pixels
    tight: bool = True  # --tight
    group: bool = False  # --group
    optcurve: bool = True  # -n when False

    def __post_init__(self) -> None:
        for name in ("invert", "tight", "group", "optcurve"):
            if not isinstance(getattr(self, name), bool):
                raise ValidationError(f"{name} must be a bool", detail={"field": name})
        if self.blacklevel is not None:
            _check_number("blacklevel", self.blacklevel, lo=BLACKLEVEL_RANGE[0], hi=BLACKLEVEL_RANGE[1])
        if self.alphamax is not None:
            _check_number("alphamax", self.alphamax, lo=ALPHAMAX_RANGE[0], hi=ALPHAMAX_RANGE[1])
        if self.opttolerance is not None:
            _check_number("opttolerance", self.opttolerance, lo=0.0)
        if self.turdsize is not None:
            if isinstance(self.turdsize, bool) or not isinstance(self.turdsize, int):
                raise ValidationError("turdsize must be an integer", detail={"field": "turdsize"})
            _check_number("turdsize", self.turdsize, lo=0)

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any], *, base: "TraceParameters | None" = None) -> "TraceParameters":
        """
        Overlay a partial mapping (preset, saved settings, UI state) on `base`.
        Unknown keys are rejected rather than silently ignored.
        """

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ValidationError("unknown trace parameters", detail={"unknown": unknown})
        return replace(base or cls(), **dict(values))

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class TraceConfig:
    """
    Tracer invocation settings.

    `timeout_s=None` waits for the tracer indefinitely; a positive value is a
    watchdog after which the process is killed.
    """

    engine: TraceEngineName = TraceEngineName.POTRACE_CLI
    potrace_path: Path | None = None  # explicit executable; else bundled, else PATH
    bin_root: Path | None = None  # directory holding bin/<platform>-<arch>/
    timeout_s: float | None = None

    def __post_init__(self) -> None:
        if self.timeout_s is not None and self.timeout_s <= 0:
            raise ValueError("timeout_s must be > 0 when set")


@dataclass(frozen=True, slots=True)
class VectorArtifact:
    """
    Tracer output: in-memory SVG (preview) or a file on disk. The caller owns it.
    """

    svg_content: str | None
    path: Path | None
    size_bytes: int
    stderr: str = ""

    def read_text(self) -> str:
        if self.svg_content is not None:
            return self.svg_content
        if self.path is None:
            raise ValueError("VectorArtifact has neither content nor path")
        return self.path.read_text(encoding="utf-8")
