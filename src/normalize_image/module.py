from __future__ import annotations

import asyncio
import logging
import math
from pathlib import Path

from .analysis import analyze_pixels
from .contracts import DecoderEngineName, NormalizedBitmap, NormalizeImageConfig
from .data_access import sha256_file
from .engines import ImageDecoderEngine, PillowEngine
from .pgm import encode_pgm, to_gray, write_pgm_atomic

logger = logging.getLogger(__name__)


def _round_half_up(x: float, ndigits: int = 0) -> float:
    factor = 10**ndigits
    return math.floor(x * factor + 0.5) / factor


def compute_scale(width: int, height: int, *, target_size: int = 2048, max_upscale: float = 8.0) -> float:
    """
    Upscale factor for tracing: bring the longest side up to `target_size`,
    never by more than `max_upscale`, never downscale. Rounded to 2 decimals.
    """

    max_dim = max(width, height)
    if max_dim <= 0:
        raise ValueError(f"invalid image dimensions {width}x{height}")
    if max_dim < target_size:
        return _round_half_up(min(target_size / max_dim, max_upscale), 2)
    return 1.0


def scaled_size(width: int, height: int, scale: float) -> tuple[int, int]:
    return (
        max(1, int(_round_half_up(width * scale))),
        max(1, int(_round_half_up(height * scale))),
    )


def _get_engine(engine: DecoderEngineName) -> ImageDecoderEngine:
    if engine == DecoderEngineName.PILLOW:
        return PillowEngine()
    raise ValueError(f"Unsupported decoder engine: {engine}")


def run_normalize_image_file(
    *, config: NormalizeImageConfig, source_file: Path, out_file: Path
) -> NormalizedBitmap:
    """
    Decode -> analyze -> upscale -> encode one image into a P5 bitmap.

    Polarity is decided on the undistorted source, before any resampling, so
    interpolation never skews the statistics.

    Raises `contracts.DecodeError` / `contracts.EncodeError`; no partial file
    is left at `out_file` on failure.
    """

    engine = _get_engine(config.engine)
    raw = engine.decode(source_file=source_file)

    stats = analyze_pixels(
        raw,
        alpha_threshold=config.alpha_threshold,
        transparency_ratio=config.transparency_ratio,
    )

    scale = compute_scale(
        raw.width, raw.height, target_size=config.target_size, max_upscale=config.max_upscale
    )
    width, height = scaled_size(raw.width, raw.height, scale)
    logger.info(
        "normalize %s: %dx%d -> %dx%d (scale=%.2f, transparency=%s, invert=%s)",
        source_file.name,
        raw.width,
        raw.height,
        width,
        height,
        scale,
        stats.has_transparency,
        stats.is_light_content,
    )

    resampled = raw if scale == 1.0 else engine.resample(raw=raw, width=width, height=height)
    gray = to_gray(resampled, is_light_content=stats.is_light_content, alpha_threshold=config.alpha_threshold)
    write_pgm_atomic(out_file, encode_pgm(gray))

    source_sha256: str | None = None
    if config.compute_source_sha256:
        try:
            source_sha256 = sha256_file(source_file)
        except OSError as e:
            # Audit metadata only; never fails normalization.
            logger.warning("source hash failed for %s: %s", source_file, e)

    return NormalizedBitmap(
        path=out_file,
        width=resampled.width,
        height=resampled.height,
        scale=scale,
        source_width=raw.width,
        source_height=raw.height,
        stats=stats,
        source_sha256=source_sha256,
        decoder=engine.backend_id(),
        decoder_version=engine.backend_version(),
    )


async def normalize_image(
    *, config: NormalizeImageConfig, source_file: Path, out_file: Path
) -> NormalizedBitmap:
    """
    Async entrypoint: the CPU-bound work runs in a worker thread so the event
    loop stays responsive while large images are decoded and resampled.
    """

    return await asyncio.to_thread(
        run_normalize_image_file, config=config, source_file=source_file, out_file=out_file
    )
