from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path
from typing import Any

from contracts import RasterTraceError
from normalize_image import NormalizeImageConfig
from task_queue import BatchResult
from trace_bitmap import check_binaries
from trace_bitmap.cli import add_trace_parameter_args, trace_config_from_args, trace_parameters_from_args

from .artifacts import write_conversion_report_json
from .contracts import ConversionOptions, ConversionResult, PipelineConfig, is_supported_format
from .importers import DEFAULT_TAGS, DirectoryImporter
from .pipeline import ConversionPipeline
from .session import ConversionSession

logger = logging.getLogger(__name__)


def collect_sources(paths: list[Path]) -> list[Path]:
    """
    Expand directories (non-recursive, sorted) and drop unsupported formats.
    """

    sources: list[Path] = []
    for path in paths:
        if path.is_dir():
            sources.extend(p for p in sorted(path.iterdir()) if p.is_file() and is_supported_format(p))
        elif is_supported_format(path):
            sources.append(path)
        else:
            logger.warning("skipping unsupported input %s", path)
    return sources


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="raster-trace-convert",
        description="Convert raster images into SVG (normalize + potrace), one by one.",
    )
    p.add_argument("sources", nargs="*", type=Path, help="Input images or directories of images.")
    p.add_argument("--out-dir", type=Path, default=None, help="Write <stem>.svg here (default: working dir).")
    p.add_argument("--import-dir", type=Path, default=None, help="Import results into this directory library.")
    p.add_argument("--folder-id", default=None, help="Library folder for imported vectors.")
    p.add_argument("--tag", dest="tags", action="append", default=None, help="Library tag (repeatable).")
    p.add_argument("--annotation", default=None, help="Library annotation for imported vectors.")
    p.add_argument("--keep-temp", action="store_true", help="Keep the intermediate .pgm files.")
    p.add_argument("--work-root", type=Path, default=None, help="Parent of per-source working directories.")
    p.add_argument("--target-size", type=int, default=2048, help="Upscale target for the longest side.")
    p.add_argument("--max-upscale", type=float, default=8.0, help="Upper bound for the upscale factor.")
    p.add_argument("--out-manifest", type=Path, default=None, help="Optional JSON report file.")
    p.add_argument("--check-binaries", action="store_true", help="Report tracer availability and exit.")
    p.add_argument("--log-level", default="INFO", help="Logging level (default: INFO).")
    add_trace_parameter_args(p)
    return p


async def _run_batch(
    args: argparse.Namespace, sources: list[Path]
) -> tuple[BatchResult | None, list[ConversionResult]]:
    pipeline = ConversionPipeline(
        PipelineConfig(
            normalize=NormalizeImageConfig(target_size=args.target_size, max_upscale=args.max_upscale),
            trace=trace_config_from_args(args),
            work_root=args.work_root,
        )
    )
    importer = DirectoryImporter(args.import_dir) if args.import_dir is not None else None
    options = ConversionOptions(params=trace_parameters_from_args(args), keep_temp=args.keep_temp)

    def on_progress(position: int, total: int, metadata: Any) -> None:
        logger.info("[%d/%d] %s", position, total, metadata["source"])

    results: list[ConversionResult] = []
    async with ConversionSession(pipeline, importer=importer) as session:
        queue = session.build_batch_queue(
            sources,
            options,
            output_dir=args.out_dir,
            tags=tuple(args.tags) if args.tags else DEFAULT_TAGS,
            folder_id=args.folder_id,
            annotation=args.annotation,
            results=results,
            on_progress=on_progress,
        )
        batch = await queue.start()
    return batch, results


def main(argv: list[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    if args.check_binaries:
        checks = check_binaries(bin_root=args.bin_root)
        print(json.dumps([c.to_dict() for c in checks], sort_keys=True, separators=(",", ":"), ensure_ascii=False))
        return 0 if all(c.ok for c in checks) else 2

    sources = collect_sources(args.sources)
    if not sources:
        parser.error("no supported input images given")

    try:
        batch, results = asyncio.run(_run_batch(args, sources))
    except RasterTraceError as e:
        logger.error("%s: %s", e.code, e.message)
        return 2

    if batch is not None:
        logger.info("done: %d succeeded, %d failed", batch.success, batch.fail)
        for err in batch.errors:
            logger.warning("%s: %s", err.metadata["source"], err.message)

    if args.out_manifest is not None:
        write_conversion_report_json(results=results, batch=batch, out_manifest=args.out_manifest)

    return 0 if batch is not None and batch.fail == 0 else 2


if __name__ == "__main__":
    raise SystemExit(main())
