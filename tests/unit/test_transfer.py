"""Unit tests for the export/import gateway."""

from __future__ import annotations

import json

import pytest

from dialogue_store.errors import (
    CONVERSATION_IMPORT_FAILED,
    HISTORY_IMPORT_FAILED,
    DataImportError,
)
from dialogue_store.models import ConversationSummary, HistorySettings
from dialogue_store.storage import keys


async def seed_conversation(store, title: str = "Exported"):
    conversation = await store.conversations.create("aoi", title=title)
    await store.conversations.add_message(
        conversation.id, {"text": "Hello", "sender": "user", "emotion": "happy"}
    )
    return await store.conversations.get(conversation.id)


class TestExportConversations:
    @pytest.mark.asyncio
    async def test_envelope_shape(self, store):
        conversation = await seed_conversation(store)

        envelope = await store.transfer.export_conversations([conversation.id])

        assert envelope.version == "1.0"
        assert [c.id for c in envelope.conversations] == [conversation.id]
        assert envelope.exported_at is not None

    @pytest.mark.asyncio
    async def test_export_all_when_ids_omitted(self, store):
        await seed_conversation(store, "one")
        await seed_conversation(store, "two")

        envelope = await store.transfer.export_conversations()

        assert [c.title for c in envelope.conversations] == ["one", "two"]

    @pytest.mark.asyncio
    async def test_unknown_ids_are_skipped(self, store):
        envelope = await store.transfer.export_conversations(["conv_missing"])

        assert envelope.conversations == []

    @pytest.mark.asyncio
    async def test_json_uses_wire_format(self, store):
        conversation = await seed_conversation(store)

        payload = json.loads(await store.transfer.export_conversations_json())

        assert payload["version"] == "1.0"
        assert "exportedAt" in payload
        record = payload["conversations"][0]
        assert record["id"] == conversation.id
        assert record["characterId"] == "aoi"
        assert isinstance(record["startedAt"], str)


class TestImportConversations:
    @pytest.mark.asyncio
    async def test_round_trip_assigns_fresh_ids(self, store):
        conversation = await seed_conversation(store)
        envelope = await store.transfer.export_conversations([conversation.id])

        count = await store.transfer.import_conversations(envelope)

        assert count == 1
        stored = await store.conversations.list_all()
        assert len(stored) == 2
        imported = next(c for c in stored if c.id != conversation.id)
        assert imported.id != conversation.id
        assert imported.title == conversation.title
        assert imported.messages[0].text == "Hello"
        assert imported.messages[0].id != conversation.messages[0].id

    @pytest.mark.asyncio
    async def test_import_from_json_text(self, store):
        await seed_conversation(store)
        exported_ids = {c.id for c in await store.conversations.list_all()}
        payload = await store.transfer.export_conversations_json()

        assert await store.transfer.import_conversations(payload) == 1
        new_ids = {c.id for c in await store.conversations.list_all()} - exported_ids
        assert len(new_ids) == 1
        assert not new_ids & exported_ids

    @pytest.mark.asyncio
    async def test_summaries_follow_new_ids(self, store):
        conversation = await seed_conversation(store)
        await store.conversations.save_summary_record(
            ConversationSummary(
                conversation_id=conversation.id,
                content="A greeting",
                emotional_highlights=[
                    {
                        "emotion": "happy",
                        "context": "Hello",
                        "messageId": conversation.messages[0].id,
                        "timestamp": conversation.messages[0].timestamp,
                    }
                ],
            )
        )
        envelope = await store.transfer.export_conversations([conversation.id])
        assert len(envelope.summaries) == 1

        await store.transfer.import_conversations(envelope)

        imported = next(
            c for c in await store.conversations.list_all() if c.id != conversation.id
        )
        summary = await store.summaries.get_summary(imported.id)
        assert summary.content == "A greeting"
        assert summary.conversation_id == imported.id
        assert summary.emotional_highlights[0].message_id == imported.messages[0].id

    @pytest.mark.asyncio
    async def test_imported_favorites_join_index(self, store):
        conversation = await seed_conversation(store)
        await store.favorites.toggle_favorite(conversation.id)
        envelope = await store.transfer.export_conversations([conversation.id])

        await store.transfer.import_conversations(envelope)

        assert len(await store.favorites.list_favorites()) == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [
            "not json",
            "[]",
            '{"version": "1.0"}',
            '{"version": "1.0", "conversations": "nope"}',
            {"conversations": [{"title": "missing character"}]},
        ],
    )
    async def test_malformed_payload_raises_before_writing(self, store, memory_kv, payload):
        with pytest.raises(DataImportError) as exc_info:
            await store.transfer.import_conversations(payload)

        assert str(exc_info.value) == CONVERSATION_IMPORT_FAILED
        assert exc_info.value.reason
        assert memory_kv.data == {}


class TestHistoryTransfer:
    @pytest.mark.asyncio
    async def test_export_history(self, store, make_snapshot):
        await store.history.save(make_snapshot(id="hist_one"))

        payload = json.loads(await store.transfer.export_history_json())

        assert payload["version"] == "1.0"
        assert "exportedAt" in payload
        assert [e["id"] for e in payload["history"]] == ["hist_one"]
        assert [s["id"] for s in payload["conversations"]] == ["hist_one"]
        assert payload["settings"]["maxHistoryCount"] == 50

    @pytest.mark.asyncio
    async def test_import_replaces_all_three_keys(self, store, make_snapshot):
        await store.history.save(make_snapshot(id="hist_exported"))
        await store.history.update_settings({"maxHistoryCount": 7})
        payload = await store.transfer.export_history_json()
        await store.history.clear()
        await store.history.save(make_snapshot(id="hist_local"))
        await store.history.update_settings({"maxHistoryCount": 30})

        assert await store.transfer.import_history(payload) is True

        entries = await store.history.load()
        sessions = await store.history.load_sessions()
        assert len(entries) == 1
        assert entries[0].id not in {"hist_exported", "hist_local"}
        assert [s.id for s in sessions] == [entries[0].id]
        assert (await store.history.get_settings()).max_history_count == 7

    @pytest.mark.asyncio
    async def test_import_accepts_legacy_export_date(self, store, make_snapshot):
        await store.history.save(make_snapshot())
        payload = json.loads(await store.transfer.export_history_json())
        payload["exportDate"] = payload.pop("exportedAt")

        assert await store.transfer.import_history(payload) is True

    @pytest.mark.asyncio
    async def test_missing_settings_restore_defaults(self, store, make_snapshot):
        await store.history.update_settings({"maxHistoryCount": 3})
        payload = {
            "version": "1.0",
            "exportedAt": "2026-01-01T00:00:00Z",
            "history": [],
            "conversations": [],
        }

        assert await store.transfer.import_history(payload) is True

        assert await store.history.get_settings() == HistorySettings()

    @pytest.mark.asyncio
    async def test_import_trims_to_restored_cap(self, store, make_snapshot):
        for index in range(4):
            await store.history.save(make_snapshot(id=f"hist_{index}"))
        payload = json.loads(await store.transfer.export_history_json())
        payload["settings"]["maxHistoryCount"] = 2

        await store.transfer.import_history(payload)

        assert len(await store.history.load()) == 2
        assert len(await store.history.load_sessions()) == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [
            "not json",
            '{"history": [], "conversations": []}',
            '{"version": "1.0", "conversations": []}',
            '{"version": "1.0", "history": []}',
            '{"version": "1.0", "history": {}, "conversations": []}',
        ],
    )
    async def test_malformed_history_payload(self, store, memory_kv, payload):
        with pytest.raises(DataImportError) as exc_info:
            await store.transfer.import_history(payload)

        assert str(exc_info.value) == HISTORY_IMPORT_FAILED
        assert keys.DIALOGUE_HISTORY not in memory_kv.data
        assert keys.HISTORY_SETTINGS not in memory_kv.data
        assert memory_kv.data == {}

    @pytest.mark.asyncio
    async def test_storage_failure_returns_false(self, failing_kv):
        from dialogue_store.store import DialogueStore

        payload = {"version": "1.0", "history": [], "conversations": []}

        assert await DialogueStore(failing_kv).transfer.import_history(payload) is False
