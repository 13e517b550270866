from __future__ import annotations

import numpy as np

from .contracts import ImageStats, RawImage

ALPHA_TRANSPARENT_BELOW = 10
TRANSPARENCY_RATIO = 0.05
MID_LUMA = 128.0

# Rec. 601 weights in thousandths; integer math keeps the 128 boundary exact.
_LUMA_WEIGHTS = np.array([299, 587, 114], dtype=np.int64)


def luma_milli(rgb: np.ndarray) -> np.ndarray:
    """
    1000 * (0.299 R + 0.587 G + 0.114 B) for an (..., 3) array, as int64.
    """

    return rgb[..., :3].astype(np.int64) @ _LUMA_WEIGHTS


def luma_u8(rgb: np.ndarray) -> np.ndarray:
    """
    Luma rounded half-up to an integer in [0, 255], as uint8.
    """

    return ((luma_milli(rgb) + 500) // 1000).clip(0, 255).astype(np.uint8)


def analyze_pixels(
    raw: RawImage,
    *,
    alpha_threshold: int = ALPHA_TRANSPARENT_BELOW,
    transparency_ratio: float = TRANSPARENCY_RATIO,
) -> ImageStats:
    """
    Decide transparency and polarity for a decoded image.

    Transparent background: content is "light" when the mean luma of the
    visible pixels is strictly above 128 (light ink on nothing).
    Opaque image: content is "light" when the mean luma is strictly below 128
    (light ink on a dark background).

    The two branches use different comparisons on purpose; exactly 128 never
    inverts. A fully transparent image has no visible pixels, its mean luma is
    defined as 0 and it is never inverted.
    """

    pixels = raw.pixels
    total = int(pixels.shape[0] * pixels.shape[1])
    if total == 0:
        return ImageStats(has_transparency=False, is_light_content=False, transparent_ratio=0.0, mean_luma=0.0)

    transparent = pixels[..., 3] < alpha_threshold
    transparent_count = int(np.count_nonzero(transparent))
    ratio = transparent_count / total
    has_transparency = ratio > transparency_ratio

    # Mean over visible pixels only; in the opaque branch that is at least 95% of the image.
    visible = luma_milli(pixels)[~transparent]
    mean = float(int(visible.sum()) / (visible.size * 1000)) if visible.size else 0.0

    if has_transparency:
        is_light = mean > MID_LUMA
    else:
        is_light = mean < MID_LUMA

    return ImageStats(
        has_transparency=has_transparency,
        is_light_content=is_light,
        transparent_ratio=ratio,
        mean_luma=mean,
    )
