from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from contracts import ErrorRecord

from .contracts import NormalizedBitmap


def serialize_normalize_manifest(*, bitmap: NormalizedBitmap | None, errors: list[ErrorRecord]) -> str:
    payload: dict[str, Any] = {
        "ok": bitmap is not None and not errors,
        "bitmap": None if bitmap is None else bitmap.to_dict(),
        "errors": [e.to_dict() for e in errors],
    }
    return json.dumps(payload, ensure_ascii=False, sort_keys=True, indent=2) + "\n"


def write_normalize_manifest_json(
    *, bitmap: NormalizedBitmap | None, errors: list[ErrorRecord], out_manifest: Path
) -> None:
    out_manifest.parent.mkdir(parents=True, exist_ok=True)
    out_manifest.write_text(serialize_normalize_manifest(bitmap=bitmap, errors=errors), encoding="utf-8")
