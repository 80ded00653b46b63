"""
JSON file key-value backend.

Persists every key in a single JSON document (``~/.dialogue_store/store.json``
by default). Suitable for single-process desktop or CLI use.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path

from dialogue_store.errors import StorageError
from dialogue_store.storage.base import KeyValueStore

logger = logging.getLogger(__name__)


class JsonFileKeyValueStore(KeyValueStore):
    """Store keys in one JSON object on disk.

    Operations on one instance run one at a time, so each read-modify-write
    of the document sees the previous write.
    """

    backend_name = "file"

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).expanduser()
        self._lock = asyncio.Lock()

    async def initialize(self) -> None:
        await self._run("initialize", None, self._ensure_dir)

    async def get(self, key: str) -> str | None:
        data = await self._run("get", key, self._load)
        value = data.get(key)
        if value is not None and not isinstance(value, str):
            raise StorageError(
                f"Stored value for {key} is not text", operation="get", key=key
            )
        return value

    async def set(self, key: str, value: str) -> None:
        def _set() -> None:
            data = self._load()
            data[key] = value
            self._save(data)

        await self._run("set", key, _set)

    async def remove(self, key: str) -> None:
        def _remove() -> None:
            data = self._load()
            if key in data:
                del data[key]
                self._save(data)

        await self._run("remove", key, _remove)

    async def clear(self) -> None:
        def _clear() -> None:
            if self.path.exists():
                self.path.unlink()

        await self._run("clear", None, _clear)

    def _ensure_dir(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True, mode=0o700)

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        with open(self.path, "r", encoding="utf-8") as handle:
            data = json.load(handle)
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} does not contain a JSON object")
        return data

    def _save(self, data: dict[str, str]) -> None:
        self._ensure_dir()
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=self.path.parent,
            prefix=f".{self.path.name}.",
            suffix=".tmp",
            delete=False,
        ) as handle:
            json.dump(data, handle, ensure_ascii=False)
        try:
            os.replace(handle.name, self.path)
        except OSError:
            Path(handle.name).unlink(missing_ok=True)
            raise

    async def _run(self, operation: str, key: str | None, func):
        async with self._lock:
            try:
                return await asyncio.to_thread(func)
            except (OSError, ValueError) as e:
                logger.error(
                    f"File store {operation} failed: {e}",
                    extra={"operation": operation, "key": key, "path": str(self.path)},
                )
                raise StorageError(str(e), operation=operation, key=key) from e
