"""
Conversation Repository

CRUD over full conversation records (with embedded messages) persisted in a
KeyValueStore under ``conversation_<id>``. Conversations are treated as
immutable values: every mutation reads the stored record, builds a modified
copy and rewrites it wholesale.

Storage failures never escape the public methods: reads degrade to
None/[] and writes to None/False, with the failure logged.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any

from pydantic.alias_generators import to_snake

from dialogue_store.errors import StorageError
from dialogue_store.models import (
    NEUTRAL_EMOTION,
    Conversation,
    ConversationSummary,
    EmotionalArcPoint,
    Message,
    MessageDraft,
)
from dialogue_store.models.base import utc_now
from dialogue_store.storage import keys
from dialogue_store.storage.base import KeyValueStore
from dialogue_store.storage.codec import (
    decode_ids,
    decode_record,
    encode_ids,
    encode_record,
)

logger = logging.getLogger(__name__)

CHARACTER_NAMES = {"aoi": "蒼", "shun": "瞬"}

_IMMUTABLE_CONVERSATION_FIELDS = {"id"}
_IMMUTABLE_MESSAGE_FIELDS = {"id", "timestamp"}


def default_title(character_id: str, scenario: str | None, now: datetime) -> str:
    """Build ``<name>との<scenario> - <Y/M/D>`` for untitled conversations."""
    name = CHARACTER_NAMES.get(character_id, character_id)
    date = f"{now.year}/{now.month}/{now.day}"
    return f"{name}との{scenario or '会話'} - {date}"


def average_response_time(messages: list[Message]) -> float:
    """Mean seconds between a user message and the character reply that follows it."""
    gaps = [
        (reply.timestamp - prompt.timestamp).total_seconds()
        for prompt, reply in zip(messages, messages[1:])
        if prompt.sender == "user" and reply.sender == "character"
    ]
    gaps = [gap for gap in gaps if gap >= 0]
    if not gaps:
        return 0.0
    return sum(gaps) / len(gaps)


def _normalize_keys(partial: dict[str, Any]) -> dict[str, Any]:
    return {to_snake(key): value for key, value in partial.items()}


class ConversationRepository:
    """Persist conversations and maintain the conversation and favorites indexes."""

    def __init__(self, kv: KeyValueStore, lock: asyncio.Lock | None = None) -> None:
        self._kv = kv
        self.lock = lock or asyncio.Lock()

    # ------------------------------------------------------------------
    # Unlocked primitives. These raise StorageError; callers hold ``lock``
    # around read-modify-write sequences.
    # ------------------------------------------------------------------

    async def load_record(self, conversation_id: str) -> Conversation | None:
        key = keys.conversation_key(conversation_id)
        raw = await self._kv.get(key)
        if raw is None:
            return None
        return decode_record(Conversation, raw, key=key)

    async def save_record(self, conversation: Conversation) -> None:
        await self._kv.set(keys.conversation_key(conversation.id), encode_record(conversation))

    async def load_summary_record(self, conversation_id: str) -> ConversationSummary | None:
        key = keys.summary_key(conversation_id)
        raw = await self._kv.get(key)
        if raw is None:
            return None
        return decode_record(ConversationSummary, raw, key=key)

    async def save_summary_record(self, summary: ConversationSummary) -> None:
        await self._kv.set(keys.summary_key(summary.conversation_id), encode_record(summary))

    async def load_index(self) -> list[str]:
        raw = await self._kv.get(keys.CONVERSATION_INDEX)
        if raw is None:
            return []
        return decode_ids(raw, key=keys.CONVERSATION_INDEX)

    async def save_index(self, ids: list[str]) -> None:
        await self._kv.set(keys.CONVERSATION_INDEX, encode_ids(list(dict.fromkeys(ids))))

    async def load_favorite_ids(self) -> list[str]:
        raw = await self._kv.get(keys.FAVORITE_CONVERSATIONS)
        if raw is None:
            return []
        return decode_ids(raw, key=keys.FAVORITE_CONVERSATIONS)

    async def save_favorite_ids(self, ids: list[str]) -> None:
        await self._kv.set(keys.FAVORITE_CONVERSATIONS, encode_ids(list(dict.fromkeys(ids))))

    async def set_favorite_membership(self, conversation_id: str, is_favorite: bool) -> None:
        favorite_ids = await self.load_favorite_ids()
        if is_favorite and conversation_id not in favorite_ids:
            await self.save_favorite_ids([*favorite_ids, conversation_id])
        elif not is_favorite and conversation_id in favorite_ids:
            await self.save_favorite_ids([i for i in favorite_ids if i != conversation_id])

    async def insert_record(self, conversation: Conversation) -> None:
        """Write a new record and register it in the conversation index."""
        await self.save_record(conversation)
        index = await self.load_index()
        if conversation.id not in index:
            await self.save_index([*index, conversation.id])
        if conversation.is_favorite:
            await self.set_favorite_membership(conversation.id, True)

    # ------------------------------------------------------------------
    # Conversations
    # ------------------------------------------------------------------

    async def create(
        self,
        character_id: str,
        scenario: str | None = None,
        title: str | None = None,
    ) -> Conversation:
        """
        Create and persist an empty conversation.

        The returned object is valid for the current session even when the
        durable write fails; the failure is logged.
        """
        now = utc_now()
        conversation = Conversation(
            character_id=character_id,
            title=title or default_title(character_id, scenario, now),
            scenario=scenario,
            started_at=now,
            last_message_at=now,
        )
        async with self.lock:
            try:
                await self.insert_record(conversation)
            except StorageError as e:
                self._log_failure("create", e, conversation.id)
        logger.debug(
            "Conversation created",
            extra={"conversation_id": conversation.id, "character_id": character_id},
        )
        return conversation

    async def get(self, conversation_id: str) -> Conversation | None:
        try:
            return await self.load_record(conversation_id)
        except StorageError as e:
            self._log_failure("get", e, conversation_id)
            return None

    async def list_all(self) -> list[Conversation]:
        """Every resolvable conversation, in creation order."""
        try:
            index = await self.load_index()
        except StorageError as e:
            self._log_failure("list", e)
            return []

        conversations = []
        for conversation_id in index:
            conversation = await self.get(conversation_id)
            if conversation is not None:
                conversations.append(conversation)
        return conversations

    async def update(self, conversation_id: str, partial: dict[str, Any]) -> Conversation | None:
        """
        Shallow-merge ``partial`` into the stored record.

        Keys may be given in snake_case or camelCase.

        Returns:
            The merged record, or None when the id is unknown or the write fails

        Raises:
            ValueError: If ``partial`` tries to change the id or holds invalid values
        """
        changes = _normalize_keys(partial)
        if _IMMUTABLE_CONVERSATION_FIELDS & changes.keys():
            raise ValueError("Conversation id is immutable")

        async with self.lock:
            try:
                current = await self.load_record(conversation_id)
                if current is None:
                    return None
                updated = Conversation.model_validate({**current.model_dump(), **changes})
                await self.save_record(updated)
                if updated.is_favorite != current.is_favorite:
                    await self.set_favorite_membership(updated.id, updated.is_favorite)
            except StorageError as e:
                self._log_failure("update", e, conversation_id)
                return None
        return updated

    async def delete(self, conversation_id: str) -> bool:
        """Remove a conversation, its stored summary and its index entries."""
        async with self.lock:
            try:
                if await self.load_record(conversation_id) is None:
                    return False
                await self._kv.remove(keys.conversation_key(conversation_id))
            except StorageError as e:
                self._log_failure("delete", e, conversation_id)
                return False

            try:
                await self._kv.remove(keys.summary_key(conversation_id))
                index = await self.load_index()
                if conversation_id in index:
                    await self.save_index([i for i in index if i != conversation_id])
                await self.set_favorite_membership(conversation_id, False)
            except StorageError as e:
                # The record is gone; stale index ids are skipped on resolve.
                self._log_failure("delete_index", e, conversation_id)
        return True

    async def clear(self) -> bool:
        """Remove every conversation, summary, the index and the favorites index."""
        async with self.lock:
            try:
                for conversation_id in await self.load_index():
                    await self._kv.remove(keys.conversation_key(conversation_id))
                    await self._kv.remove(keys.summary_key(conversation_id))
                await self._kv.remove(keys.CONVERSATION_INDEX)
                await self._kv.remove(keys.FAVORITE_CONVERSATIONS)
            except StorageError as e:
                self._log_failure("clear", e)
                return False
        logger.info("All conversations cleared")
        return True

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    async def add_message(
        self,
        conversation_id: str,
        draft: MessageDraft | dict[str, Any],
    ) -> Message | None:
        """
        Append a message with a generated id and timestamp.

        A non-neutral emotion also appends an emotional arc point at the new
        message's index.
        """
        if isinstance(draft, dict):
            draft = MessageDraft.model_validate(draft)

        message = Message(
            text=draft.text,
            sender=draft.sender,
            emotion=draft.emotion or NEUTRAL_EMOTION,
            audio_url=draft.audio_url,
            metadata=draft.metadata,
        )

        async with self.lock:
            try:
                current = await self.load_record(conversation_id)
                if current is None:
                    return None

                messages = [*current.messages, message]
                arc = list(current.metadata.emotional_arc)
                if draft.emotion and draft.emotion != NEUTRAL_EMOTION:
                    arc.append(
                        EmotionalArcPoint(
                            message_index=len(messages) - 1,
                            emotion=draft.emotion,
                            timestamp=message.timestamp,
                        )
                    )
                metadata = current.metadata.model_copy(
                    update={
                        "total_messages": len(messages),
                        "emotional_arc": arc,
                        "average_response_time": average_response_time(messages),
                    }
                )
                updated = current.model_copy(
                    update={
                        "messages": messages,
                        "last_message_at": message.timestamp,
                        "metadata": metadata,
                    }
                )
                await self.save_record(updated)
            except StorageError as e:
                self._log_failure("add_message", e, conversation_id)
                return None
        return message

    async def update_message(
        self,
        conversation_id: str,
        message_id: str,
        updates: dict[str, Any],
    ) -> Message | None:
        changes = _normalize_keys(updates)
        if _IMMUTABLE_MESSAGE_FIELDS & changes.keys():
            raise ValueError("Message id and timestamp are immutable")

        async with self.lock:
            try:
                current = await self.load_record(conversation_id)
                if current is None:
                    return None
                index = current.find_message(message_id)
                if index is None:
                    return None

                updated_message = Message.model_validate(
                    {**current.messages[index].model_dump(), **changes}
                )
                messages = list(current.messages)
                messages[index] = updated_message
                await self.save_record(current.model_copy(update={"messages": messages}))
            except StorageError as e:
                self._log_failure("update_message", e, conversation_id)
                return None
        return updated_message

    async def delete_message(self, conversation_id: str, message_id: str) -> bool:
        """Remove a message; recorded emotional arc points are left as they were."""
        async with self.lock:
            try:
                current = await self.load_record(conversation_id)
                if current is None:
                    return False
                index = current.find_message(message_id)
                if index is None:
                    return False

                messages = current.messages[:index] + current.messages[index + 1 :]
                metadata = current.metadata.model_copy(
                    update={
                        "total_messages": len(messages),
                        "average_response_time": average_response_time(messages),
                    }
                )
                await self.save_record(
                    current.model_copy(update={"messages": messages, "metadata": metadata})
                )
            except StorageError as e:
                self._log_failure("delete_message", e, conversation_id)
                return False
        return True

    @staticmethod
    def _log_failure(operation: str, error: StorageError, conversation_id: str | None = None) -> None:
        logger.error(
            f"Conversation {operation} failed: {error}",
            extra={
                "operation": operation,
                "conversation_id": conversation_id,
                "key": error.key,
            },
        )
