from __future__ import annotations

import asyncio
import hashlib
import json
import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, Sequence

from normalize_image.data_access import safe_stem

logger = logging.getLogger(__name__)

DEFAULT_TAGS = ("vectorized", "potrace")


@dataclass(frozen=True, slots=True)
class ImportResult:
    ok: bool
    item_id: str | None = None
    error: str | None = None


def vector_name(source: Path) -> str:
    """
    Library item name for the vector made from `source`: "logo.png" -> "logo-vector".
    """

    return f"{source.stem}-vector"


class LibraryImporter(Protocol):
    """
    Asset-library collaborator: takes an SVG file plus metadata and reports
    the identifier it assigned. Failures are returned, not raised.
    """

    async def add_vector(
        self,
        svg_path: Path,
        *,
        name: str,
        tags: Sequence[str],
        folder_id: str | None,
        annotation: str | None,
    ) -> ImportResult: ...


class DirectoryImporter:
    """
    LibraryImporter backed by a plain directory:
    `<root>/<folder_id>/<item_id>.svg` plus a `<item_id>.json` sidecar.

    Item ids are derived from the name and SVG bytes, so re-importing the
    same output is idempotent.
    """

    def __init__(self, root: Path) -> None:
        self.root = root

    def import_vector(
        self,
        svg_path: Path,
        *,
        name: str,
        tags: Sequence[str] = DEFAULT_TAGS,
        folder_id: str | None = None,
        annotation: str | None = None,
    ) -> ImportResult:
        try:
            digest = hashlib.sha256(svg_path.read_bytes()).hexdigest()
            item_id = f"{safe_stem(name)}_{digest[:12]}"
            folder = self.root / safe_stem(folder_id) if folder_id else self.root
            folder.mkdir(parents=True, exist_ok=True)

            shutil.copyfile(svg_path, folder / f"{item_id}.svg")
            sidecar = {
                "item_id": item_id,
                "name": name,
                "tags": list(tags),
                "folder_id": folder_id,
                "annotation": annotation,
                "source_svg": str(svg_path),
            }
            (folder / f"{item_id}.json").write_text(
                json.dumps(sidecar, ensure_ascii=False, sort_keys=True, indent=2) + "\n", encoding="utf-8"
            )
        except OSError as e:
            logger.error("import of %s failed: %s", svg_path, e)
            return ImportResult(ok=False, error=str(e))

        logger.info("imported %s as %s", svg_path.name, item_id)
        return ImportResult(ok=True, item_id=item_id)

    async def add_vector(
        self,
        svg_path: Path,
        *,
        name: str,
        tags: Sequence[str] = DEFAULT_TAGS,
        folder_id: str | None = None,
        annotation: str | None = None,
    ) -> ImportResult:
        """
        Async entrypoint: the file copies run in a worker thread.
        """

        return await asyncio.to_thread(
            self.import_vector, svg_path, name=name, tags=tags, folder_id=folder_id, annotation=annotation
        )
