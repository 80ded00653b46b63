"""Conversation persistence, search, statistics, favorites and summaries."""

from dialogue_store.conversations.favorites import FavoritesManager
from dialogue_store.conversations.repository import ConversationRepository
from dialogue_store.conversations.search import ConversationSearch
from dialogue_store.conversations.stats import StatisticsAggregator
from dialogue_store.conversations.summary import SummaryCoordinator

__all__ = [
    "ConversationRepository",
    "ConversationSearch",
    "FavoritesManager",
    "StatisticsAggregator",
    "SummaryCoordinator",
]
