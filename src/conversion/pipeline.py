from __future__ import annotations

import logging
import tempfile
import time
from pathlib import Path

from contracts import error_record_from_exception, remove_advisory
from normalize_image import normalize_image
from normalize_image.data_access import safe_stem
from trace_bitmap import TraceParameters, VectorArtifact, trace_bitmap

from .contracts import ConversionOptions, ConversionResult, PipelineConfig, PreprocessResult

logger = logging.getLogger(__name__)


class ConversionPipeline:
    """
    Two independent stages plus an end-to-end wrapper.

    preprocess() is the expensive, parameter-independent step (decode,
    analyze, resample, encode); trace() is cheap and parameter-dependent.
    The pipeline itself caches nothing: interactive callers keep the
    PreprocessResult (see ConversionSession) and call trace() repeatedly.
    """

    def __init__(self, config: PipelineConfig | None = None) -> None:
        self.config = config or PipelineConfig()

    def work_root(self) -> Path:
        return self.config.work_root or Path(tempfile.gettempdir()) / "raster-trace"

    def create_working_dir(self, source_file: Path) -> Path:
        """
        Fresh, unique directory for one source, e.g. `<work_root>/logo-k3j9x2`.
        """

        root = self.work_root()
        root.mkdir(parents=True, exist_ok=True)
        working_dir = Path(tempfile.mkdtemp(prefix=f"{safe_stem(source_file)}-", dir=root))
        logger.debug("working dir for %s: %s", source_file, working_dir)
        return working_dir

    async def preprocess(self, source_file: Path, *, working_dir: Path | None = None) -> PreprocessResult:
        """
        Normalize `source_file` into `<working_dir>/<stem>.pgm`. Always
        re-normalizes.
        """

        if working_dir is None:
            working_dir = self.create_working_dir(source_file)
        else:
            working_dir.mkdir(parents=True, exist_ok=True)

        bitmap = await normalize_image(
            config=self.config.normalize,
            source_file=source_file,
            out_file=working_dir / f"{safe_stem(source_file)}.pgm",
        )
        return PreprocessResult(
            bitmap_path=bitmap.path,
            working_dir=working_dir,
            stats=bitmap.stats,
            bitmap=bitmap,
        )

    async def trace(
        self,
        bitmap_path: Path,
        params: TraceParameters | None = None,
        output_file: Path | None = None,
    ) -> VectorArtifact:
        """
        Without `output_file` the SVG comes back in memory (preview).
        """

        return await trace_bitmap(
            config=self.config.trace,
            bitmap_file=bitmap_path,
            params=params,
            output_file=output_file,
        )

    async def convert_one(self, source_file: Path, options: ConversionOptions | None = None) -> ConversionResult:
        """
        preprocess + trace end-to-end. Never raises for conversion failures:
        the cause is returned in the result and the working directory is kept.
        """

        options = options or ConversionOptions()
        started = time.perf_counter()
        working_dir: Path | None = None
        preprocess_time: float | None = None
        stats = None

        logger.info("convert %s", source_file)
        try:
            working_dir = self.create_working_dir(source_file)

            t0 = time.perf_counter()
            pre = await self.preprocess(source_file, working_dir=working_dir)
            preprocess_time = time.perf_counter() - t0
            stats = pre.stats

            output_file = options.output_file or working_dir / f"{safe_stem(source_file)}.svg"
            t1 = time.perf_counter()
            artifact = await self.trace(pre.bitmap_path, options.params, output_file)
            trace_time = time.perf_counter() - t1
        except Exception as e:
            record = error_record_from_exception(e)
            logger.error("convert %s failed (%s): %s; kept %s", source_file, record.code, record.message, working_dir)
            return ConversionResult(
                ok=False,
                source_path=source_file,
                working_dir=working_dir,
                output_path=None,
                duration=time.perf_counter() - started,
                preprocess_time=preprocess_time,
                stats=stats,
                errors=[record],
            )

        if not options.keep_temp:
            remove_advisory(pre.bitmap_path)
            # Output written elsewhere leaves the working dir empty.
            if not any(working_dir.iterdir()) and remove_advisory(working_dir):
                working_dir = None

        duration = time.perf_counter() - started
        logger.info(
            "converted %s in %.3fs (preprocess %.3fs, trace %.3fs)",
            source_file.name,
            duration,
            preprocess_time,
            trace_time,
        )
        return ConversionResult(
            ok=True,
            source_path=source_file,
            working_dir=working_dir,
            output_path=artifact.path,
            duration=duration,
            preprocess_time=preprocess_time,
            trace_time=trace_time,
            output_size=artifact.size_bytes,
            stats=stats,
        )
