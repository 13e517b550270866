"""
Canonical contracts shared by every stage.

Stage packages raise the exceptions defined here and report failures through
`ErrorRecord` (never ad-hoc dicts), so that single-file runs, batch runs and
JSON artifacts all describe a failure the same way.
"""

from .cleanup import remove_advisory
from .errors import (
    ConversionFailedError,
    DecodeError,
    EmptyOutputError,
    EncodeError,
    ErrorRecord,
    LibraryImportError,
    ProcessExitError,
    ProcessSpawnError,
    RasterTraceError,
    TraceTimeoutError,
    ValidationError,
    error_record_from_exception,
)

__all__ = [
    "ConversionFailedError",
    "DecodeError",
    "EmptyOutputError",
    "EncodeError",
    "ErrorRecord",
    "LibraryImportError",
    "ProcessExitError",
    "ProcessSpawnError",
    "RasterTraceError",
    "TraceTimeoutError",
    "ValidationError",
    "error_record_from_exception",
    "remove_advisory",
]
