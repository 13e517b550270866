from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path
from typing import Any

from contracts import RasterTraceError

from .binaries import check_binaries
from .contracts import TraceConfig, TraceParameters
from .module import trace_bitmap
from .presets import DEFAULT_PRESET_ID, PRESETS, get_preset


def add_trace_parameter_args(p: argparse.ArgumentParser) -> None:
    """
    Tracer flags shared by every CLI that traces. Unset flags keep the preset value.
    """

    p.add_argument("--preset", choices=sorted(PRESETS), default=DEFAULT_PRESET_ID, help="Parameter preset.")
    p.add_argument("--blacklevel", type=float, default=None, help="Black level threshold (0..1).")
    p.add_argument("--alphamax", type=float, default=None, help="Corner threshold (0 = polygons).")
    p.add_argument("--opttolerance", type=float, default=None, help="Curve optimization tolerance.")
    p.add_argument("--turdsize", type=int, default=None, help="Suppress speckles up to this many pixels.")
    p.add_argument("--invert", action="store_true", default=None, help="Invert the bitmap before tracing.")
    p.add_argument("--no-tight", dest="tight", action="store_false", default=None, help="Keep surrounding margin.")
    p.add_argument("--group", action="store_true", default=None, help="Group related paths.")
    p.add_argument("--potrace", type=Path, default=None, help="Explicit potrace executable.")
    p.add_argument("--bin-root", type=Path, default=None, help="Directory containing bin/<platform>-<arch>/.")
    p.add_argument("--timeout-s", type=float, default=None, help="Kill the tracer after this many seconds.")


def trace_parameters_from_args(args: argparse.Namespace) -> TraceParameters:
    overrides: dict[str, Any] = {}
    for name in ("blacklevel", "alphamax", "opttolerance", "turdsize", "invert", "tight", "group"):
        value = getattr(args, name)
        if value is not None:
            overrides[name] = value
    return TraceParameters.from_mapping(overrides, base=get_preset(args.preset).params)


def trace_config_from_args(args: argparse.Namespace) -> TraceConfig:
    return TraceConfig(potrace_path=args.potrace, bin_root=args.bin_root, timeout_s=args.timeout_s)


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="raster-trace-trace",
        description="Trace a normalized PGM bitmap into SVG with potrace.",
    )
    p.add_argument("--bitmap", type=Path, help="Input normalized bitmap (.pgm).")
    p.add_argument("--out", type=Path, default=None, help="Output .svg file (default: print SVG to stdout).")
    p.add_argument("--check-binaries", action="store_true", help="Report tracer availability and exit.")
    p.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING).")
    add_trace_parameter_args(p)
    return p


def main(argv: list[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    if args.check_binaries:
        checks = check_binaries(bin_root=args.bin_root)
        print(json.dumps([c.to_dict() for c in checks], sort_keys=True, separators=(",", ":"), ensure_ascii=False))
        return 0 if all(c.ok for c in checks) else 2

    if args.bitmap is None:
        parser.error("--bitmap is required unless --check-binaries is given")

    try:
        params = trace_parameters_from_args(args)
        artifact = asyncio.run(
            trace_bitmap(
                config=trace_config_from_args(args),
                bitmap_file=args.bitmap,
                params=params,
                output_file=args.out,
            )
        )
    except RasterTraceError as e:
        logging.getLogger(__name__).error("%s: %s", e.code, e.message)
        return 2

    if artifact.svg_content is not None:
        print(artifact.svg_content, end="")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
