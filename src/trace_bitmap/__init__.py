"""
Bitmap tracing (normalized PGM -> SVG) through an external tracer process.

Contract:
- Input: a normalized bitmap on disk plus TraceParameters
- Output: SVG content (preview) or an SVG file
- The tracer is opaque: stderr is kept for diagnostics only, never parsed
"""

from .binaries import BinaryCheck, check_binaries, resolve_binary, verify_binary
from .contracts import TraceConfig, TraceEngineName, TraceParameters, VectorArtifact
from .engines import build_potrace_args
from .module import trace_bitmap
from .presets import DEFAULT_PRESET_ID, PRESETS, TracePreset, get_preset

__all__ = [
    "BinaryCheck",
    "DEFAULT_PRESET_ID",
    "PRESETS",
    "TraceConfig",
    "TraceEngineName",
    "TraceParameters",
    "TracePreset",
    "VectorArtifact",
    "build_potrace_args",
    "check_binaries",
    "get_preset",
    "resolve_binary",
    "trace_bitmap",
    "verify_binary",
]
