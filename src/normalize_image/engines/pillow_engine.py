from __future__ import annotations

from pathlib import Path

import numpy as np
from PIL import Image, UnidentifiedImageError

from contracts import DecodeError

from ..contracts import RawImage
from .base import ImageDecoderEngine


class PillowEngine(ImageDecoderEngine):
    def backend_id(self) -> str:
        return "pillow"

    def backend_version(self) -> str | None:
        import PIL

        return getattr(PIL, "__version__", None)

    def decode(self, *, source_file: Path) -> RawImage:
        try:
            with Image.open(source_file) as image:
                # Always RGBA so palette/gray/CMYK sources analyze the same way.
                rgba = image.convert("RGBA")
        except FileNotFoundError as e:
            raise DecodeError("Input image not found", detail={"source": str(source_file)}) from e
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
            raise DecodeError(
                "Failed to decode input image",
                detail={"source": str(source_file), "error": repr(e)},
            ) from e
        return RawImage(pixels=np.asarray(rgba, dtype=np.uint8).copy())

    def resample(self, *, raw: RawImage, width: int, height: int) -> RawImage:
        if (width, height) == (raw.width, raw.height):
            return raw
        image = Image.fromarray(raw.pixels)
        resized = image.resize((width, height), Image.Resampling.BICUBIC)
        return RawImage(pixels=np.asarray(resized, dtype=np.uint8).copy())
