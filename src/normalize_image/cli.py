from __future__ import annotations

import argparse
import logging
from pathlib import Path

from contracts import ErrorRecord, RasterTraceError

from .artifacts import write_normalize_manifest_json
from .contracts import NormalizedBitmap, NormalizeImageConfig
from .module import run_normalize_image_file


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="raster-trace-normalize",
        description="Normalize a raster image into a white-background P5 PGM ready for tracing.",
    )
    p.add_argument("--source", required=True, type=Path, help="Input image (PNG/JPEG/BMP/GIF/TIFF).")
    p.add_argument("--out", required=True, type=Path, help="Output .pgm file.")
    p.add_argument("--out-manifest", type=Path, default=None, help="Optional JSON manifest file.")
    p.add_argument("--target-size", type=int, default=2048, help="Upscale target for the longest side.")
    p.add_argument("--max-upscale", type=float, default=8.0, help="Upper bound for the upscale factor.")
    p.add_argument(
        "--compute-source-sha256",
        action="store_true",
        help="Include SHA-256 of the source image in the manifest for auditing.",
    )
    p.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING).")
    return p


def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    config = NormalizeImageConfig(
        target_size=args.target_size,
        max_upscale=args.max_upscale,
        compute_source_sha256=args.compute_source_sha256,
    )

    bitmap: NormalizedBitmap | None = None
    errors: list[ErrorRecord] = []
    try:
        bitmap = run_normalize_image_file(config=config, source_file=args.source, out_file=args.out)
    except RasterTraceError as e:
        errors.append(e.to_record())
        logging.getLogger(__name__).error("%s: %s", e.code, e.message)

    if args.out_manifest is not None:
        write_normalize_manifest_json(bitmap=bitmap, errors=errors, out_manifest=args.out_manifest)

    return 0 if bitmap is not None else 2


if __name__ == "__main__":
    raise SystemExit(main())
