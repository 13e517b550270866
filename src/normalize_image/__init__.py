"""
Image normalization (raster image -> canonical P5 grayscale bitmap).

This package is intentionally limited to format normalization:
- It decodes the source, decides polarity, upscales small inputs and
  encodes a white-background / dark-ink PGM.
- It performs NO tracing, thresholding or curve fitting.
- It never reads environment variables; configuration is passed explicitly.
"""

from .analysis import analyze_pixels
from .contracts import (
    DecoderEngineName,
    ImageStats,
    NormalizedBitmap,
    NormalizeImageConfig,
    RawImage,
)
from .module import compute_scale, normalize_image, run_normalize_image_file
from .pgm import encode_pgm, parse_pgm_header, read_pgm, to_gray

__all__ = [
    "DecoderEngineName",
    "ImageStats",
    "NormalizedBitmap",
    "NormalizeImageConfig",
    "RawImage",
    "analyze_pixels",
    "compute_scale",
    "encode_pgm",
    "normalize_image",
    "parse_pgm_header",
    "read_pgm",
    "run_normalize_image_file",
    "to_gray",
]
