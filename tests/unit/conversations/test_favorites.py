"""Unit tests for the favorites manager."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock

import pytest

from dialogue_store.errors import StorageError
from dialogue_store.storage import keys


class TestToggleFavorite:
    """Flag and favorites index move together."""

    @pytest.mark.asyncio
    async def test_toggle_on_and_off(self, store):
        conversation = await store.conversations.create("aoi", title="Fav")

        assert await store.favorites.toggle_favorite(conversation.id) is True
        assert (await store.conversations.get(conversation.id)).is_favorite is True
        assert await store.favorites.favorite_ids() == [conversation.id]

        assert await store.favorites.toggle_favorite(conversation.id) is False
        assert (await store.conversations.get(conversation.id)).is_favorite is False
        assert await store.favorites.favorite_ids() == []

    @pytest.mark.asyncio
    async def test_toggle_missing_conversation(self, store):
        assert await store.favorites.toggle_favorite("conv_missing") is False

    @pytest.mark.asyncio
    async def test_failed_record_write_keeps_old_state(self, store, memory_kv):
        conversation = await store.conversations.create("aoi", title="Fav")
        memory_kv.set = AsyncMock(side_effect=StorageError("disk full", operation="set"))

        assert await store.favorites.toggle_favorite(conversation.id) is False
        assert (await store.conversations.get(conversation.id)).is_favorite is False

    @pytest.mark.asyncio
    async def test_is_favorite(self, store):
        conversation = await store.conversations.create("aoi", title="Fav")
        await store.favorites.toggle_favorite(conversation.id)

        assert await store.favorites.is_favorite(conversation.id) is True
        assert await store.favorites.is_favorite("conv_missing") is False


class TestListFavorites:
    @pytest.mark.asyncio
    async def test_skips_ids_that_do_not_resolve(self, store, memory_kv):
        kept = await store.conversations.create("aoi", title="Kept")
        await store.favorites.toggle_favorite(kept.id)
        memory_kv.data[keys.FAVORITE_CONVERSATIONS] = json.dumps(["conv_deleted", kept.id])

        favorites = await store.favorites.list_favorites()

        assert [c.id for c in favorites] == [kept.id]

    @pytest.mark.asyncio
    async def test_delete_removes_from_favorites(self, store):
        conversation = await store.conversations.create("aoi", title="Gone")
        await store.favorites.toggle_favorite(conversation.id)

        await store.conversations.delete(conversation.id)

        assert await store.favorites.list_favorites() == []


class TestReconcile:
    @pytest.mark.asyncio
    async def test_rebuilds_index_from_flags(self, store, memory_kv):
        first = await store.conversations.create("aoi", title="One")
        second = await store.conversations.create("aoi", title="Two")
        await store.favorites.toggle_favorite(second.id)
        memory_kv.data[keys.FAVORITE_CONVERSATIONS] = json.dumps([first.id, "conv_stale"])

        assert await store.favorites.reconcile() == [second.id]
        assert await store.favorites.favorite_ids() == [second.id]

    @pytest.mark.asyncio
    async def test_reconcile_storage_failure(self, failing_kv):
        from dialogue_store.store import DialogueStore

        assert await DialogueStore(failing_kv).favorites.reconcile() is None
