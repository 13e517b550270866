from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

import numpy as np

from contracts import EncodeError
from contracts.cleanup import remove_advisory

from .analysis import ALPHA_TRANSPARENT_BELOW, luma_u8
from .contracts import RawImage

PGM_MAGIC = b"P5"
PGM_MAXVAL = 255


@dataclass(frozen=True, slots=True)
class PgmHeader:
    width: int
    height: int
    maxval: int
    data_offset: int  # byte offset of the first pixel sample


def pgm_header(width: int, height: int) -> bytes:
    return b"%s\n%d %d\n%d\n" % (PGM_MAGIC, width, height, PGM_MAXVAL)


def to_gray(raw: RawImage, *, is_light_content: bool, alpha_threshold: int = ALPHA_TRANSPARENT_BELOW) -> np.ndarray:
    """
    Map RGBA to the canonical single-channel form: transparent pixels become
    paper (255) whatever the polarity; visible pixels keep their luma, or
    `255 - luma` when the content is light.
    """

    gray = luma_u8(raw.pixels)
    if is_light_content:
        gray = 255 - gray
    gray = np.where(raw.pixels[..., 3] < alpha_threshold, np.uint8(255), gray)
    return gray.astype(np.uint8)


def encode_pgm(gray: np.ndarray) -> bytes:
    """
    Serialize a (height, width) uint8 array as P5: header then row-major
    samples, no padding.
    """

    if gray.ndim != 2 or gray.dtype != np.uint8:
        raise ValueError(f"encode_pgm expects a 2-D uint8 array, got {gray.dtype} {gray.shape}")
    height, width = gray.shape
    return pgm_header(width, height) + np.ascontiguousarray(gray).tobytes()


def _next_token(data: bytes, pos: int) -> tuple[bytes, int]:
    n = len(data)
    while pos < n:
        c = data[pos : pos + 1]
        if c == b"#":
            while pos < n and data[pos : pos + 1] not in (b"\n", b"\r"):
                pos += 1
        elif c.isspace():
            pos += 1
        else:
            break
    start = pos
    while pos < n and not data[pos : pos + 1].isspace() and data[pos : pos + 1] != b"#":
        pos += 1
    if start == pos:
        raise ValueError("truncated PGM header")
    return data[start:pos], pos


def parse_pgm_header(data: bytes) -> PgmHeader:
    """
    Parse a P5 header (comments allowed). The single whitespace byte after
    maxval is consumed, so `data_offset` points at the first sample.
    """

    magic, pos = _next_token(data, 0)
    if magic != PGM_MAGIC:
        raise ValueError(f"not a P5 PGM (magic={magic!r})")
    w_tok, pos = _next_token(data, pos)
    h_tok, pos = _next_token(data, pos)
    m_tok, pos = _next_token(data, pos)
    width, height, maxval = int(w_tok), int(h_tok), int(m_tok)
    if width <= 0 or height <= 0:
        raise ValueError(f"invalid PGM dimensions {width}x{height}")
    if not (0 < maxval < 256):
        raise ValueError(f"unsupported PGM maxval {maxval}")
    if pos >= len(data) or not data[pos : pos + 1].isspace():
        raise ValueError("missing whitespace after PGM maxval")
    return PgmHeader(width=width, height=height, maxval=maxval, data_offset=pos + 1)


def read_pgm(path: Path) -> np.ndarray:
    data = path.read_bytes()
    header = parse_pgm_header(data)
    body = data[header.data_offset : header.data_offset + header.width * header.height]
    if len(body) != header.width * header.height:
        raise ValueError(f"PGM body is {len(body)} bytes, expected {header.width * header.height}")
    return np.frombuffer(body, dtype=np.uint8).reshape(header.height, header.width)


def write_pgm_atomic(path: Path, payload: bytes) -> None:
    """
    Write `payload` to `path` all-or-nothing: a sibling temporary file is
    written and fsynced, then renamed over the target. On failure the target
    is untouched and the temporary file is removed.
    """

    tmp_name: str | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".part", dir=path.parent)
        with os.fdopen(fd, "wb") as f:
            f.write(payload)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
        tmp_name = None
    except OSError as e:
        raise EncodeError(
            "Failed to write normalized bitmap",
            detail={"path": str(path), "error": repr(e)},
        ) from e
    finally:
        if tmp_name is not None:
            remove_advisory(Path(tmp_name))
