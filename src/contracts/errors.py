from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class ErrorRecord:
    """
    Machine-readable failure description carried by result objects and JSON
    artifacts. `detail` is diagnostic only and never parsed by callers.
    """

    code: str
    message: str
    detail: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "detail": None if self.detail is None else dict(self.detail),
        }


class RasterTraceError(Exception):
    """
    Base class for every failure raised by the normalization and tracing stages.

    Subclasses pin a stable `code`; callers that need to persist or report the
    failure should use `to_record()` rather than formatting the exception.
    """

    code = "RASTER_TRACE_ERROR"

    def __init__(self, message: str, *, detail: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_record(self) -> ErrorRecord:
        return ErrorRecord(code=self.code, message=self.message, detail=self.detail)


class DecodeError(RasterTraceError):
    """Source image is missing, unreadable or corrupt."""

    code = "NORMALIZE_DECODE_FAILED"


class EncodeError(RasterTraceError):
    """Normalized bitmap could not be written (disk full, permissions, ...)."""

    code = "NORMALIZE_ENCODE_FAILED"


class ProcessSpawnError(RasterTraceError):
    """The tracer executable is missing or cannot be executed."""

    code = "TRACE_BACKEND_NOT_INSTALLED"


class ProcessExitError(RasterTraceError):
    """The tracer ran but exited with a non-zero status."""

    code = "TRACE_BACKEND_ERROR"

    def __init__(self, message: str, *, returncode: int, stderr: str) -> None:
        # Truncate for artifact stability.
        super().__init__(message, detail={"returncode": returncode, "stderr": stderr[-4000:]})
        self.returncode = returncode
        self.stderr = stderr


class EmptyOutputError(RasterTraceError):
    """The tracer reported success but its output file is missing or empty."""

    code = "TRACE_OUTPUT_EMPTY"


class TraceTimeoutError(RasterTraceError):
    code = "TRACE_TIMEOUT"


class ValidationError(RasterTraceError, ValueError):
    """Trace parameters outside their declared range."""

    code = "TRACE_PARAMS_INVALID"


class ConversionFailedError(RasterTraceError):
    """A batch item failed; carries the record produced by the pipeline."""

    code = "CONVERSION_FAILED"

    @classmethod
    def from_record(cls, record: ErrorRecord) -> "ConversionFailedError":
        return cls(record.message, detail={"cause": record.to_dict()})


class LibraryImportError(RasterTraceError):
    code = "LIBRARY_IMPORT_FAILED"


def error_record_from_exception(exc: BaseException) -> ErrorRecord:
    if isinstance(exc, RasterTraceError):
        return exc.to_record()
    return ErrorRecord(code="UNEXPECTED_ERROR", message=str(exc), detail={"error": repr(exc)})
