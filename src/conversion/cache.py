from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from normalize_image import ImageStats


@dataclass(frozen=True, slots=True)
class PipelineCacheEntry:
    bitmap_path: Path
    working_dir: Path
    stats: ImageStats


def cache_key(source: Path) -> str:
    return str(source.expanduser().resolve())


class PipelineCache(Protocol):
    """
    Source path -> normalized bitmap. Entries are never evicted implicitly;
    the owner decides when to clear.
    """

    def get(self, key: str) -> PipelineCacheEntry | None: ...

    def set(self, key: str, entry: PipelineCacheEntry) -> None: ...

    def clear(self) -> None: ...


class InMemoryPipelineCache:
    """
    Unbounded dict-backed cache, for the lifetime of its owner.
    """

    def __init__(self) -> None:
        self._entries: dict[str, PipelineCacheEntry] = {}

    def get(self, key: str) -> PipelineCacheEntry | None:
        return self._entries.get(key)

    def set(self, key: str, entry: PipelineCacheEntry) -> None:
        self._entries[key] = entry

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
