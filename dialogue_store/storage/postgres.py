"""PostgreSQL key-value backend."""

from __future__ import annotations

import logging

import asyncpg

from dialogue_store.errors import StorageError
from dialogue_store.storage.base import KeyValueStore

logger = logging.getLogger(__name__)

_PG_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)


class PostgresKeyValueStore(KeyValueStore):
    """Persist key/value rows in a PostgreSQL table."""

    backend_name = "postgres"

    def __init__(self, database_url: str, table_name: str = "dialogue_kv") -> None:
        if not table_name.replace("_", "").isalnum():
            raise ValueError(f"Invalid table name: {table_name}")
        self._database_url = database_url
        self._table = table_name
        self._pool: asyncpg.Pool | None = None

    async def initialize(self) -> None:
        try:
            if self._pool is None:
                dsn = self._normalize_postgres_url(self._database_url)
                self._pool = await asyncpg.create_pool(dsn=dsn, min_size=1, max_size=5)
            await self._pool.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {self._table} (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
                );
                """
            )
        except _PG_ERRORS as e:
            raise StorageError(str(e), operation="initialize") from e
        logger.info(f"Postgres key-value store ready ({self._table})")

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None

    async def get(self, key: str) -> str | None:
        self._ensure_pool()
        try:
            return await self._pool.fetchval(
                f"SELECT value FROM {self._table} WHERE key = $1",
                key,
            )
        except _PG_ERRORS as e:
            raise StorageError(str(e), operation="get", key=key) from e

    async def set(self, key: str, value: str) -> None:
        self._ensure_pool()
        try:
            await self._pool.execute(
                f"""
                INSERT INTO {self._table} (key, value, updated_at)
                VALUES ($1, $2, NOW())
                ON CONFLICT (key) DO UPDATE SET
                    value = EXCLUDED.value,
                    updated_at = EXCLUDED.updated_at
                """,
                key,
                value,
            )
        except _PG_ERRORS as e:
            raise StorageError(str(e), operation="set", key=key) from e

    async def remove(self, key: str) -> None:
        self._ensure_pool()
        try:
            await self._pool.execute(f"DELETE FROM {self._table} WHERE key = $1", key)
        except _PG_ERRORS as e:
            raise StorageError(str(e), operation="remove", key=key) from e

    async def clear(self) -> None:
        self._ensure_pool()
        try:
            await self._pool.execute(f"DELETE FROM {self._table}")
        except _PG_ERRORS as e:
            raise StorageError(str(e), operation="clear") from e

    def _ensure_pool(self) -> None:
        if self._pool is None:
            raise StorageError("PostgresKeyValueStore not initialized", operation="connect")

    @staticmethod
    def _normalize_postgres_url(url: str) -> str:
        if url.startswith("postgresql+asyncpg://"):
            return "postgresql://" + url[len("postgresql+asyncpg://") :]
        return url
