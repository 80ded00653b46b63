"""
Export / Import Gateway

Versioned JSON envelopes for conversations (with their stored summaries)
and for the history log (entries, session archive and settings).

Imports parse and validate the whole envelope before the first write, so a
malformed payload raises DataImportError and leaves storage untouched. Every
imported record gets a freshly generated id; ids from the payload are never
reused.
"""

from __future__ import annotations

import logging
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from dialogue_store.conversations.repository import ConversationRepository
from dialogue_store.errors import (
    CONVERSATION_IMPORT_FAILED,
    HISTORY_IMPORT_FAILED,
    DataImportError,
    StorageError,
)
from dialogue_store.history.log import HistoryLog
from dialogue_store.models import (
    Conversation,
    ConversationExport,
    ConversationSummary,
    HistoryEntry,
    HistoryExport,
    SessionRecord,
)
from dialogue_store.models.conversation import new_conversation_id, new_message_id
from dialogue_store.models.history import new_history_id
from dialogue_store.models.transfer import HISTORY_EXPORT_VERSION

logger = logging.getLogger(__name__)

EnvelopeT = TypeVar("EnvelopeT", bound=BaseModel)

Payload = str | bytes | dict[str, Any] | BaseModel


def parse_envelope(model: type[EnvelopeT], payload: Payload, message: str) -> EnvelopeT:
    """
    Validate an export envelope.

    Raises:
        DataImportError: With the fixed ``message`` when the payload is not
            valid JSON or does not match the envelope shape
    """
    if isinstance(payload, model):
        return payload
    try:
        if isinstance(payload, (str, bytes, bytearray)):
            return model.model_validate_json(payload)
        if isinstance(payload, BaseModel):
            payload = payload.model_dump(by_alias=True)
        return model.model_validate(payload)
    except (ValidationError, ValueError, TypeError) as e:
        raise DataImportError(message, reason=str(e)) from e


def remap_conversation(conversation: Conversation) -> tuple[Conversation, dict[str, str]]:
    """Copy of ``conversation`` with fresh conversation and message ids, plus the message id map."""
    message_ids = {m.id: new_message_id() for m in conversation.messages}
    messages = [m.model_copy(update={"id": message_ids[m.id]}) for m in conversation.messages]
    remapped = conversation.model_copy(update={"id": new_conversation_id(), "messages": messages})
    return remapped, message_ids


def remap_summary(
    summary: ConversationSummary,
    conversation_id: str,
    message_ids: dict[str, str],
) -> ConversationSummary:
    highlights = [
        h.model_copy(update={"message_id": message_ids.get(h.message_id, h.message_id)})
        for h in summary.emotional_highlights
    ]
    return summary.model_copy(
        update={"conversation_id": conversation_id, "emotional_highlights": highlights}
    )


class ExportImportGateway:
    """Serialize and restore conversations and history."""

    def __init__(self, repository: ConversationRepository, history: HistoryLog) -> None:
        self._repository = repository
        self._history = history

    # ------------------------------------------------------------------
    # Conversations
    # ------------------------------------------------------------------

    async def export_conversations(self, ids: list[str] | None = None) -> ConversationExport:
        """Envelope for ``ids``, or for every stored conversation when omitted."""
        if ids is None:
            conversations = await self._repository.list_all()
        else:
            conversations = []
            for conversation_id in ids:
                conversation = await self._repository.get(conversation_id)
                if conversation is None:
                    logger.warning(
                        "Skipping unknown conversation on export",
                        extra={"conversation_id": conversation_id},
                    )
                    continue
                conversations.append(conversation)

        summaries = []
        for conversation in conversations:
            try:
                summary = await self._repository.load_summary_record(conversation.id)
            except StorageError as e:
                logger.warning(
                    f"Summary not exported: {e}",
                    extra={"conversation_id": conversation.id},
                )
                continue
            if summary is not None:
                summaries.append(summary)

        return ConversationExport(conversations=conversations, summaries=summaries)

    async def export_conversations_json(self, ids: list[str] | None = None) -> str:
        envelope = await self.export_conversations(ids)
        return envelope.model_dump_json(by_alias=True, indent=2)

    async def import_conversations(self, payload: Payload) -> int:
        """
        Import every conversation of an envelope under fresh ids.

        Returns:
            Number of conversations persisted

        Raises:
            DataImportError: If the payload is malformed; nothing is written
        """
        envelope = parse_envelope(ConversationExport, payload, CONVERSATION_IMPORT_FAILED)

        summaries_by_id = {s.conversation_id: s for s in envelope.summaries}
        prepared = []
        for conversation in envelope.conversations:
            remapped, message_ids = remap_conversation(conversation)
            summary = summaries_by_id.get(conversation.id)
            if summary is not None:
                summary = remap_summary(summary, remapped.id, message_ids)
            prepared.append((remapped, summary))

        imported = 0
        async with self._repository.lock:
            try:
                for conversation, summary in prepared:
                    await self._repository.insert_record(conversation)
                    if summary is not None:
                        await self._repository.save_summary_record(summary)
                    imported += 1
            except StorageError as e:
                logger.error(
                    f"Conversation import interrupted: {e}",
                    extra={"imported": imported, "total": len(prepared), "key": e.key},
                )

        logger.info(
            f"Imported {imported} conversation(s)",
            extra={"imported": imported, "version": envelope.version},
        )
        return imported

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    async def export_history(self) -> HistoryExport:
        return HistoryExport(
            version=HISTORY_EXPORT_VERSION,
            history=await self._history.load(),
            conversations=await self._history.load_sessions(),
            settings=await self._history.get_settings(),
        )

    async def export_history_json(self) -> str:
        envelope = await self.export_history()
        return envelope.model_dump_json(by_alias=True, indent=2)

    async def import_history(self, payload: Payload) -> bool:
        """
        Replace the history log, session archive and settings wholesale.

        Entries and sessions receive fresh ids; an entry and the archived
        session it was saved with keep sharing one id. A missing ``settings``
        block restores the defaults.

        Returns:
            True once all three keys are written, False on storage failure

        Raises:
            DataImportError: If the payload is malformed; nothing is written
        """
        envelope = parse_envelope(HistoryExport, payload, HISTORY_IMPORT_FAILED)
        settings = envelope.settings or self._history.defaults

        id_map: dict[str, str] = {}

        def fresh(old_id: str) -> str:
            return id_map.setdefault(old_id, new_history_id())

        entries: list[HistoryEntry] = [
            e.model_copy(update={"id": fresh(e.id)}) for e in envelope.history
        ]
        sessions: list[SessionRecord] = [
            s.model_copy(
                update={
                    "id": fresh(s.id),
                    "messages": [m.model_copy(update={"id": new_message_id()}) for m in s.messages],
                }
            )
            for s in envelope.conversations
        ]

        async with self._history.lock:
            try:
                await self._history.replace_all(entries, sessions, settings)
            except StorageError as e:
                logger.error(f"History import failed: {e}", extra={"key": e.key})
                return False

        logger.info(
            "History imported",
            extra={
                "entries": min(len(entries), settings.max_history_count),
                "sessions": min(len(sessions), settings.max_history_count),
                "version": envelope.version,
            },
        )
        return True
