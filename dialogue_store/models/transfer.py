"""Versioned export envelopes."""

from __future__ import annotations

from pydantic import AliasChoices, Field

from dialogue_store.models.base import RecordModel, UtcDatetime, utc_now
from dialogue_store.models.conversation import Conversation, ConversationSummary
from dialogue_store.models.history import HistoryEntry, HistorySettings, SessionRecord

CONVERSATION_EXPORT_VERSION = "1.0"
HISTORY_EXPORT_VERSION = "1.0"


class ConversationExport(RecordModel):
    version: str = CONVERSATION_EXPORT_VERSION
    exported_at: UtcDatetime = Field(default_factory=utc_now)
    conversations: list[Conversation]
    summaries: list[ConversationSummary] = Field(default_factory=list)


class HistoryExport(RecordModel):
    version: str
    exported_at: UtcDatetime = Field(
        default_factory=utc_now,
        validation_alias=AliasChoices("exportedAt", "exportDate", "exported_at"),
        serialization_alias="exportedAt",
    )
    history: list[HistoryEntry]
    conversations: list[SessionRecord]
    settings: HistorySettings | None = None
