from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, Iterable, Sequence

from contracts import ConversionFailedError, LibraryImportError, remove_advisory
from normalize_image.data_access import safe_stem
from task_queue import TaskQueue
from task_queue.queue import CompleteHandler, ProgressHandler, StopHandler
from trace_bitmap import TraceParameters

from .cache import InMemoryPipelineCache, PipelineCache, PipelineCacheEntry, cache_key
from .contracts import ConversionOptions, ConversionResult
from .importers import DEFAULT_TAGS, ImportResult, LibraryImporter, vector_name
from .pipeline import ConversionPipeline

logger = logging.getLogger(__name__)


def unique_output_name(stem: str, used: set[str]) -> str:
    """
    `<stem>.svg`, or `<stem>-N.svg` when that name is already in `used`.
    Names are compared case-insensitively; the chosen one is added to `used`.
    """

    name = f"{stem}.svg"
    n = 1
    while name.casefold() in used:
        n += 1
        name = f"{stem}-{n}.svg"
    used.add(name.casefold())
    return name


class ConversionSession:
    """
    Orchestrates interactive preview and batch conversion for one user session.

    The session owns the preview cache: the first preview of a source
    normalizes it, later previews (parameter changes) only re-trace. Batch
    runs never consult the cache and always run both stages. close() clears
    the cache and removes the working directories it created.
    """

    def __init__(
        self,
        pipeline: ConversionPipeline | None = None,
        *,
        cache: PipelineCache | None = None,
        importer: LibraryImporter | None = None,
    ) -> None:
        self.pipeline = pipeline or ConversionPipeline()
        self.cache: PipelineCache = cache if cache is not None else InMemoryPipelineCache()
        self.importer = importer
        self._owned_dirs: list[Path] = []

    async def __aenter__(self) -> "ConversionSession":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self.cache.clear()
        for working_dir in self._owned_dirs:
            remove_advisory(working_dir)
        self._owned_dirs.clear()

    async def prepare(self, source_file: Path) -> PipelineCacheEntry:
        """
        Cached preprocess: normalize once per source path for this session.
        """

        key = cache_key(source_file)
        entry = self.cache.get(key)
        if entry is not None:
            logger.debug("cache hit for %s", source_file)
            return entry

        pre = await self.pipeline.preprocess(source_file)
        self._owned_dirs.append(pre.working_dir)
        entry = PipelineCacheEntry(bitmap_path=pre.bitmap_path, working_dir=pre.working_dir, stats=pre.stats)
        self.cache.set(key, entry)
        return entry

    async def preview(self, source_file: Path, params: TraceParameters | None = None) -> str:
        """
        SVG markup for `source_file` with `params`; cheap after the first call.
        """

        entry = await self.prepare(source_file)
        artifact = await self.pipeline.trace(entry.bitmap_path, params, None)
        return artifact.read_text()

    async def save(
        self,
        source_file: Path,
        params: TraceParameters | None = None,
        *,
        tags: Sequence[str] = DEFAULT_TAGS,
        folder_id: str | None = None,
        annotation: str | None = None,
    ) -> ImportResult:
        """
        Trace the cached bitmap to a file and hand it to the importer.
        """

        if self.importer is None:
            raise LibraryImportError("no library importer configured")

        entry = await self.prepare(source_file)
        output_file = entry.working_dir / f"{safe_stem(source_file)}_final.svg"
        await self.pipeline.trace(entry.bitmap_path, params, output_file)
        return await self.importer.add_vector(
            output_file,
            name=vector_name(source_file),
            tags=tags,
            folder_id=folder_id,
            annotation=annotation,
        )

    def _batch_work(
        self,
        source_file: Path,
        options: ConversionOptions,
        *,
        tags: Sequence[str],
        folder_id: str | None,
        annotation: str | None,
        results: list[ConversionResult],
    ):
        async def work() -> None:
            result = await self.pipeline.convert_one(source_file, options)
            results.append(result)
            if not result.ok:
                raise ConversionFailedError.from_record(result.errors[0])
            if self.importer is None or result.output_path is None:
                return
            imported = await self.importer.add_vector(
                result.output_path,
                name=vector_name(source_file),
                tags=tags,
                folder_id=folder_id,
                annotation=annotation,
            )
            if not imported.ok:
                raise LibraryImportError(imported.error or "import failed", detail={"source": str(source_file)})

        return work

    def build_batch_queue(
        self,
        sources: Iterable[Path],
        options: ConversionOptions | None = None,
        *,
        output_dir: Path | None = None,
        tags: Sequence[str] = DEFAULT_TAGS,
        folder_id: str | None = None,
        annotation: str | None = None,
        results: list[ConversionResult] | None = None,
        on_progress: ProgressHandler | None = None,
        on_complete: CompleteHandler | None = None,
        on_stop: StopHandler | None = None,
    ) -> TaskQueue:
        """
        One task per source: convert_one, then import when an importer is
        configured. With `output_dir` each source writes `<output_dir>/<stem>.svg`;
        stems that collide within the batch get `-2`, `-3`, ... appended.
        Per-item ConversionResults are appended to `results` when given.
        """

        options = options or ConversionOptions()
        sink = results if results is not None else []
        queue = TaskQueue(on_progress=on_progress, on_complete=on_complete, on_stop=on_stop)
        used_names: set[str] = set()
        for source_file in sources:
            item_options = options
            if output_dir is not None:
                name = unique_output_name(safe_stem(source_file), used_names)
                item_options = replace(options, output_file=output_dir / name)
            queue.add_task(
                self._batch_work(
                    source_file,
                    item_options,
                    tags=tags,
                    folder_id=folder_id,
                    annotation=annotation,
                    results=sink,
                ),
                metadata={"source": str(source_file)},
            )
        return queue
