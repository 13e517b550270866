from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from task_queue import BatchResult

from .contracts import ConversionResult


def serialize_conversion_report(
    *, results: list[ConversionResult], batch: BatchResult | None, stopped: bool = False
) -> str:
    """
    JSON report for a convert run; per-item results in processing order.
    """

    payload: dict[str, Any] = {
        "ok": batch is not None and batch.fail == 0 and not stopped,
        "stopped": stopped,
        "batch": None if batch is None else batch.to_dict(),
        "results": [r.to_dict() for r in results],
    }
    return json.dumps(payload, ensure_ascii=False, sort_keys=True, indent=2) + "\n"


def write_conversion_report_json(
    *,
    results: list[ConversionResult],
    batch: BatchResult | None,
    out_manifest: Path,
    stopped: bool = False,
) -> None:
    out_manifest.parent.mkdir(parents=True, exist_ok=True)
    out_manifest.write_text(
        serialize_conversion_report(results=results, batch=batch, stopped=stopped), encoding="utf-8"
    )
