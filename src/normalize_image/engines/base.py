from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from ..contracts import RawImage


class ImageDecoderEngine(ABC):
    """
    Decoding backend abstraction.

    Engines must:
    - Decode any supported source format into RGBA8 pixels
    - Resample with a smoothing (bicubic or better) filter
    - Perform NO polarity analysis, thresholding or encoding
    """

    @abstractmethod
    def backend_id(self) -> str:
        raise NotImplementedError

    def backend_version(self) -> str | None:
        return None

    @abstractmethod
    def decode(self, *, source_file: Path) -> RawImage:
        """
        Raise `contracts.DecodeError` when the source cannot be read.
        """

        raise NotImplementedError

    @abstractmethod
    def resample(self, *, raw: RawImage, width: int, height: int) -> RawImage:
        raise NotImplementedError
