"""Serializable records for conversations, history and transfers."""

from dialogue_store.models.base import EMOTIONS, NEUTRAL_EMOTION, EmotionType
from dialogue_store.models.conversation import (
    Conversation,
    ConversationMetadata,
    ConversationSummary,
    EmotionalArcPoint,
    EmotionalHighlight,
    Message,
    MessageDraft,
)
from dialogue_store.models.history import (
    HistoryEntry,
    HistorySettings,
    ScenarioInfo,
    SessionMetadata,
    SessionRecord,
    SessionSnapshot,
)
from dialogue_store.models.query import (
    ConversationFilter,
    ConversationStats,
    DateRange,
    HistoryStats,
    SearchQuery,
)
from dialogue_store.models.transfer import ConversationExport, HistoryExport

__all__ = [
    "EMOTIONS",
    "NEUTRAL_EMOTION",
    "EmotionType",
    # Conversations
    "Conversation",
    "ConversationMetadata",
    "ConversationSummary",
    "EmotionalArcPoint",
    "EmotionalHighlight",
    "Message",
    "MessageDraft",
    # History
    "HistoryEntry",
    "HistorySettings",
    "ScenarioInfo",
    "SessionMetadata",
    "SessionRecord",
    "SessionSnapshot",
    # Queries
    "ConversationFilter",
    "ConversationStats",
    "DateRange",
    "HistoryStats",
    "SearchQuery",
    # Transfers
    "ConversationExport",
    "HistoryExport",
]
