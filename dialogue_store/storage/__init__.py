"""
Storage Module

Key-value persistence backends consumed by the conversation and history
stores.

Usage:
    from dialogue_store.storage import create_key_value_store
    from dialogue_store.config import get_settings

    kv = create_key_value_store(get_settings().storage)
    await kv.initialize()
"""

from dialogue_store.storage.base import KeyValueStore
from dialogue_store.storage.factory import create_key_value_store
from dialogue_store.storage.file import JsonFileKeyValueStore
from dialogue_store.storage.memory import InMemoryKeyValueStore
from dialogue_store.storage.postgres import PostgresKeyValueStore

__all__ = [
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "PostgresKeyValueStore",
    "create_key_value_store",
]
