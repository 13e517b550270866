"""
Conversion orchestration: normalize + trace for single files, interactive
previews and serial batches.

- `ConversionPipeline` exposes the two stages separately and end-to-end.
- `ConversionSession` owns the per-session preview cache and builds batch
  queues (batches never use the cache).
- Library import goes through the `LibraryImporter` protocol.
"""

from .cache import InMemoryPipelineCache, PipelineCache, PipelineCacheEntry, cache_key
from .contracts import (
    SUPPORTED_INPUT_SUFFIXES,
    ConversionOptions,
    ConversionResult,
    PipelineConfig,
    PreprocessResult,
    is_supported_format,
)
from .importers import DirectoryImporter, ImportResult, LibraryImporter, vector_name
from .pipeline import ConversionPipeline
from .session import ConversionSession

__all__ = [
    "SUPPORTED_INPUT_SUFFIXES",
    "ConversionOptions",
    "ConversionPipeline",
    "ConversionResult",
    "ConversionSession",
    "DirectoryImporter",
    "ImportResult",
    "InMemoryPipelineCache",
    "LibraryImporter",
    "PipelineCache",
    "PipelineCacheEntry",
    "PipelineConfig",
    "PreprocessResult",
    "cache_key",
    "is_supported_format",
    "vector_name",
]
