from __future__ import annotations

import hashlib
import re
from pathlib import Path


def safe_stem(source: str | Path) -> str:
    """
    Deterministic, filesystem-safe stem for working directories and outputs.
    """

    s = str(source).replace("\\", "/").split("/")[-1]
    if "." in s:
        s = s.rsplit(".", 1)[0]
    s = re.sub(r"[^A-Za-z0-9._-]+", "_", s)
    s = re.sub(r"_+", "_", s).strip("_")
    return s or "image"


def sha256_file(path: Path) -> str:
    h = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(1024 * 1024), b""):
            h.update(chunk)
    return h.hexdigest()
