"""Process-local key-value backend."""

from __future__ import annotations

from dialogue_store.storage.base import KeyValueStore


class InMemoryKeyValueStore(KeyValueStore):
    """Dict-backed store used for tests and ephemeral sessions."""

    backend_name = "memory"

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        self.data[key] = value

    async def remove(self, key: str) -> None:
        self.data.pop(key, None)

    async def clear(self) -> None:
        self.data.clear()
