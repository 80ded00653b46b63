"""
Dialogue Store

Wires every component to one injected KeyValueStore and one shared lock.

Usage:
    from dialogue_store import DialogueStore
    from dialogue_store.storage import InMemoryKeyValueStore

    store = DialogueStore(InMemoryKeyValueStore())
    conversation = await store.conversations.create("aoi", title="Test Title")
    await store.conversations.add_message(
        conversation.id, {"text": "Hello", "sender": "user", "emotion": "happy"}
    )
    results = await store.search.search("hello")
"""

from __future__ import annotations

import asyncio
import logging

from dialogue_store.config import Settings
from dialogue_store.conversations import (
    ConversationRepository,
    ConversationSearch,
    FavoritesManager,
    StatisticsAggregator,
    SummaryCoordinator,
)
from dialogue_store.history import HistoryLog
from dialogue_store.models import HistorySettings
from dialogue_store.storage import KeyValueStore, create_key_value_store
from dialogue_store.summarizers import BaseSummarizer, create_summarizer
from dialogue_store.transfer import ExportImportGateway

logger = logging.getLogger(__name__)


class DialogueStore:
    """
    Conversation history and search store.

    Attributes:
        conversations: Conversation CRUD and message operations
        history: Bounded history log and session archive
        search: Search, filter and sort over conversations
        stats: Conversation statistics
        favorites: Favorites index
        summaries: Summary generation and lookup
        transfer: Export and import of conversations and history
    """

    def __init__(
        self,
        kv: KeyValueStore,
        summarizer: BaseSummarizer | None = None,
        history_defaults: HistorySettings | None = None,
    ) -> None:
        self.kv = kv
        self.summarizer = summarizer
        self.lock = asyncio.Lock()

        self.conversations = ConversationRepository(kv, lock=self.lock)
        self.history = HistoryLog(kv, defaults=history_defaults, lock=self.lock)
        self.search = ConversationSearch(self.conversations)
        self.stats = StatisticsAggregator(self.conversations)
        self.favorites = FavoritesManager(self.conversations)
        self.summaries = SummaryCoordinator(self.conversations, summarizer)
        self.transfer = ExportImportGateway(self.conversations, self.history)

    @classmethod
    def from_settings(cls, settings: Settings) -> DialogueStore:
        """Build a store with the configured backend and summarizer."""
        defaults = HistorySettings(
            max_history_count=settings.history.max_history_count,
            auto_save_enabled=settings.history.auto_save_enabled,
            compression_enabled=settings.history.compression_enabled,
        )
        return cls(
            create_key_value_store(settings.storage),
            summarizer=create_summarizer(settings.summarizer),
            history_defaults=defaults,
        )

    async def initialize(self) -> None:
        await self.kv.initialize()
        logger.info(
            "Dialogue store initialized",
            extra={
                "backend": self.kv.backend_name,
                "summarizer": self.summarizer.provider_name if self.summarizer else None,
            },
        )

    async def close(self) -> None:
        if self.summarizer is not None:
            await self.summarizer.close()
        await self.kv.close()
        logger.info("Dialogue store closed")

    async def clear_all(self) -> bool:
        """Remove every conversation and both history logs; history settings are kept."""
        conversations_cleared = await self.conversations.clear()
        history_cleared = await self.history.clear()
        return conversations_cleared and history_cleared
