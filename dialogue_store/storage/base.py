"""
Base Key-Value Store

Abstract interface every persistence backend implements. Values are opaque
UTF-8 JSON text; the store never interprets them.
"""

from abc import ABC, abstractmethod


class KeyValueStore(ABC):
    """
    Abstract async key-value backend.

    Every operation is fallible: implementations raise
    :class:`dialogue_store.errors.StorageError` for any backend failure so
    callers only have one error type to handle.
    """

    backend_name: str = "abstract"

    async def initialize(self) -> None:
        """Prepare backend resources (pools, tables, directories)."""
        return None

    async def close(self) -> None:
        """Release backend resources."""
        return None

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the stored value or None when the key is absent."""
        pass  # pragma: no cover - abstract method

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""
        pass  # pragma: no cover - abstract method

    @abstractmethod
    async def remove(self, key: str) -> None:
        """Remove ``key``; removing an absent key is not an error."""
        pass  # pragma: no cover - abstract method

    @abstractmethod
    async def clear(self) -> None:
        """Remove every key held by this backend."""
        pass  # pragma: no cover - abstract method
