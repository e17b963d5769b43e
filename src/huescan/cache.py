"""
Swatch collection caches.

A cache entry maps ``swatches:{s}:{l}`` to the complete hue-sorted list of
colors found by a successful discovery. Entries are only ever replaced
wholesale. Stores raise ``StorageError`` on failure; ``SwatchService`` treats
that as a miss on read and a no-op on write.
"""

from __future__ import annotations

import asyncio
import json
import re
from collections import defaultdict
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Sequence

from .errors import StorageError
from .interfaces import ColorPoint


def swatches_key(saturation: int, lightness: int) -> str:
    """Cache key for a saturation/lightness pair, e.g. ``swatches:100:50``."""
    return f"swatches:{saturation}:{lightness}"


class SwatchCache(Protocol):
    async def get(self, key: str) -> Optional[List[ColorPoint]]: ...

    async def set(self, key: str, swatches: Sequence[ColorPoint]) -> None: ...

    async def remove(self, key: str) -> None: ...


class MemoryCache:
    """Process-local cache; last writer wins per key."""

    def __init__(self) -> None:
        self._entries: Dict[str, tuple[ColorPoint, ...]] = {}

    async def get(self, key: str) -> Optional[List[ColorPoint]]:
        entry = self._entries.get(key)
        return list(entry) if entry is not None else None

    async def set(self, key: str, swatches: Sequence[ColorPoint]) -> None:
        self._entries[key] = tuple(swatches)

    async def remove(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class DiskCache:
    """
    JSON-file cache, one file per key.

    File I/O runs in worker threads; operations on the same key are
    serialized with an asyncio lock, and writes go through a temp file so a
    reader never sees a partial entry.
    """

    def __init__(self, cache_dir: str) -> None:
        self.cache_dir = Path(cache_dir)
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def _path_for(self, key: str) -> Path:
        safe = re.sub(r"[^A-Za-z0-9_.-]", "_", key)
        return self.cache_dir / f"{safe}.json"

    async def get(self, key: str) -> Optional[List[ColorPoint]]:
        path = self._path_for(key)
        async with self._locks[key]:
            return await asyncio.to_thread(self._read_entry, path, key)

    async def set(self, key: str, swatches: Sequence[ColorPoint]) -> None:
        path = self._path_for(key)
        record = {"key": key, "swatches": [swatch.to_dict() for swatch in swatches]}
        async with self._locks[key]:
            await asyncio.to_thread(self._write_entry, path, key, record)

    async def remove(self, key: str) -> None:
        path = self._path_for(key)
        async with self._locks[key]:
            try:
                await asyncio.to_thread(path.unlink, missing_ok=True)
            except OSError as exc:
                raise StorageError(f"Failed to remove cache entry {key}: {exc}", key=key) from exc

    def clear(self) -> None:
        """Remove all cached entries (useful for tests)."""
        if not self.cache_dir.exists():
            return
        for path in self.cache_dir.glob("*.json"):
            path.unlink()

    def _read_entry(self, path: Path, key: str) -> Optional[List[ColorPoint]]:
        try:
            if not path.exists():
                return None
            with path.open("r", encoding="utf-8") as handle:
                record = json.load(handle)
            return [ColorPoint.from_dict(item) for item in record["swatches"]]
        except OSError as exc:
            raise StorageError(f"Failed to read cache entry {key}: {exc}", key=key) from exc
        except (ValueError, KeyError, TypeError) as exc:
            raise StorageError(f"Corrupt cache entry {key}: {exc!r}", key=key) from exc

    def _write_entry(self, path: Path, key: str, record: Dict[str, object]) -> None:
        temp_path = path.with_suffix(".tmp")
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            with temp_path.open("w", encoding="utf-8") as handle:
                json.dump(record, handle)
            temp_path.replace(path)
        except OSError as exc:
            raise StorageError(f"Failed to write cache entry {key}: {exc}", key=key) from exc
