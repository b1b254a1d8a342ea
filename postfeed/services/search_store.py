"""Async key-value stores for the persisted search text."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Protocol

from postfeed.config import SearchSettings
from postfeed.services.exceptions import SearchStoreError


class SearchStore(Protocol):
    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...


class MemorySearchStore:
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.values: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self.values.get(key)

    async def set(self, key: str, value: str) -> None:
        self.values[key] = value


class JsonFileSearchStore:
    """Keeps all keys in one small JSON object on disk.

    File access runs in a worker thread; the lock serializes read-modify-write
    cycles issued from the event loop.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> str | None:
        async with self._lock:
            data = await asyncio.to_thread(self._read)
        value = data.get(key)
        return value if isinstance(value, str) else None

    async def set(self, key: str, value: str) -> None:
        async with self._lock:
            data = await asyncio.to_thread(self._read)
            data[key] = value
            await asyncio.to_thread(self._write, data)

    def _read(self) -> dict[str, object]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as fp:
                data = json.load(fp)
        except (OSError, json.JSONDecodeError) as exc:
            raise SearchStoreError(f"Cannot read search store {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise SearchStoreError(f"Search store {self.path} does not hold a JSON object")
        return data

    def _write(self, data: dict[str, object]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            with tmp_path.open("w", encoding="utf-8") as fp:
                json.dump(data, fp, ensure_ascii=False)
            tmp_path.replace(self.path)
        except OSError as exc:
            raise SearchStoreError(f"Cannot write search store {self.path}: {exc}") from exc


def build_search_store(settings: SearchSettings) -> SearchStore:
    if settings.store_path is None:
        return MemorySearchStore()
    return JsonFileSearchStore(settings.store_path)


__all__ = [
    "JsonFileSearchStore",
    "MemorySearchStore",
    "SearchStore",
    "build_search_store",
]
