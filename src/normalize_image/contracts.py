from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

import numpy as np


class DecoderEngineName(str, Enum):
    """
    Image decoding backend identifiers.
    """

    PILLOW = "pillow"


@dataclass(frozen=True, slots=True)
class RawImage:
    """
    Decoded RGBA8 pixel buffer, shape (height, width, 4).

    Owned by a single normalization call and discarded after encoding.
    """

    pixels: np.ndarray

    def __post_init__(self) -> None:
        if self.pixels.ndim != 3 or self.pixels.shape[2] != 4:
            raise ValueError(f"RawImage expects (height, width, 4) pixels, got {self.pixels.shape}")
        if self.pixels.dtype != np.uint8:
            raise ValueError(f"RawImage expects uint8 pixels, got {self.pixels.dtype}")

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])


@dataclass(frozen=True, slots=True)
class ImageStats:
    has_transparency: bool
    # True when foreground must be inverted to reach dark ink on white paper.
    is_light_content: bool
    transparent_ratio: float
    mean_luma: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "has_transparency": self.has_transparency,
            "is_light_content": self.is_light_content,
            "transparent_ratio": self.transparent_ratio,
            "mean_luma": self.mean_luma,
        }


@dataclass(frozen=True, slots=True)
class NormalizedBitmap:
    """
    A P5 (binary PGM) file on disk: white (255) background, dark foreground.
    """

    path: Path
    width: int
    height: int
    scale: float
    source_width: int
    source_height: int
    stats: ImageStats
    source_sha256: str | None = None
    decoder: str | None = None
    decoder_version: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": str(self.path),
            "width": self.width,
            "height": self.height,
            "scale": self.scale,
            "source_width": self.source_width,
            "source_height": self.source_height,
            "stats": self.stats.to_dict(),
            "source_sha256": self.source_sha256,
            "decoder": self.decoder,
            "decoder_version": self.decoder_version,
        }


@dataclass(frozen=True, slots=True)
class NormalizeImageConfig:
    """
    Normalization parameters.

    Defaults reproduce the reference behavior exactly; they are exposed only so
    tests and callers can state them explicitly. No environment reads.
    """

    engine: DecoderEngineName = DecoderEngineName.PILLOW
    target_size: int = 2048  # upscale until the longest side reaches this
    max_upscale: float = 8.0
    alpha_threshold: int = 10  # alpha below this counts as transparent
    transparency_ratio: float = 0.05
    compute_source_sha256: bool = False

    def __post_init__(self) -> None:
        if self.target_size <= 0:
            raise ValueError("target_size must be a positive integer")
        if self.max_upscale < 1.0:
            raise ValueError("max_upscale must be >= 1.0")
        if not (0 <= self.alpha_threshold <= 255):
            raise ValueError("alpha_threshold must be within [0, 255]")
        if not (0.0 <= self.transparency_ratio <= 1.0):
            raise ValueError("transparency_ratio must be within [0.0, 1.0]")
