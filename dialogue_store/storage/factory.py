"""
Key-Value Store Factory

Creates the configured persistence backend from StorageSettings.
"""

import logging

from dialogue_store.config import StorageSettings
from dialogue_store.storage.base import KeyValueStore
from dialogue_store.storage.file import JsonFileKeyValueStore
from dialogue_store.storage.memory import InMemoryKeyValueStore
from dialogue_store.storage.postgres import PostgresKeyValueStore

logger = logging.getLogger(__name__)

BACKENDS = {
    "memory": InMemoryKeyValueStore,
    "file": JsonFileKeyValueStore,
    "postgres": PostgresKeyValueStore,
}


def create_key_value_store(config: StorageSettings) -> KeyValueStore:
    """
    Create a key-value backend.

    Args:
        config: Storage settings

    Returns:
        Uninitialized backend; call ``initialize()`` before use

    Raises:
        ValueError: If the backend is unknown or misconfigured
    """
    if config.backend not in BACKENDS:
        raise ValueError(
            f"Unknown storage backend: {config.backend}. "
            f"Available backends: {list(BACKENDS.keys())}"
        )

    logger.info(f"Creating {config.backend} key-value store", extra={"backend": config.backend})

    if config.backend == "memory":
        return InMemoryKeyValueStore()
    if config.backend == "file":
        return JsonFileKeyValueStore(config.file_path)
    if config.database_url is None:
        raise ValueError("STORAGE_DATABASE_URL must be set for the postgres backend.")
    return PostgresKeyValueStore(str(config.database_url), table_name=config.table_name)
