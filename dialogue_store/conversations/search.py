"""
Search & Filter Engine

Evaluates a SearchQuery over every stored conversation:
text match (OR across title and message text), AND-combined filters,
ordering, then pagination. Pagination always runs last so pages are taken
from the fully filtered and sorted result.
"""

from __future__ import annotations

import logging
from typing import Any

from dialogue_store.conversations.repository import ConversationRepository
from dialogue_store.models import Conversation, ConversationFilter, SearchQuery
from dialogue_store.models.query import SortField, SortOrder

logger = logging.getLogger(__name__)


def matches_text(conversation: Conversation, query: str) -> bool:
    """Case-insensitive substring match against the title or any message text."""
    term = query.strip().casefold()
    if not term:
        return True
    if term in conversation.title.casefold():
        return True
    return any(term in message.text.casefold() for message in conversation.messages)


def matches_filters(conversation: Conversation, filters: ConversationFilter) -> bool:
    if filters.character_id is not None and conversation.character_id != filters.character_id:
        return False

    if filters.date_range is not None and not (
        filters.date_range.start <= conversation.started_at <= filters.date_range.end
    ):
        return False

    if filters.emotions is not None:
        wanted = set(filters.emotions)
        if not any(point.emotion in wanted for point in conversation.metadata.emotional_arc):
            return False

    if filters.is_favorite is not None and conversation.is_favorite != filters.is_favorite:
        return False

    if filters.has_audio is not None:
        has_audio = any(message.audio_url for message in conversation.messages)
        if has_audio != filters.has_audio:
            return False

    length = len(conversation.messages)
    if filters.min_length is not None and length < filters.min_length:
        return False
    if filters.max_length is not None and length > filters.max_length:
        return False

    return True


def _sort_key(sort_by: SortField):
    if sort_by == "length":
        return lambda c: len(c.messages)
    if sort_by == "rating":
        return lambda c: c.metadata.user_satisfaction or 0
    if sort_by == "title":
        return lambda c: c.title.casefold()
    return lambda c: c.last_message_at


def sort_conversations(
    conversations: list[Conversation],
    sort_by: SortField = "date",
    sort_order: SortOrder = "desc",
) -> list[Conversation]:
    """Stable sort; ties keep their stored order in both directions."""
    return sorted(conversations, key=_sort_key(sort_by), reverse=sort_order == "desc")


def paginate(
    conversations: list[Conversation],
    limit: int | None = None,
    offset: int | None = None,
) -> list[Conversation]:
    start = offset or 0
    if limit is None:
        return conversations[start:]
    return conversations[start : start + limit]


def evaluate(conversations: list[Conversation], query: SearchQuery) -> list[Conversation]:
    """Apply a query to an in-memory list of conversations."""
    results = [
        c
        for c in conversations
        if matches_text(c, query.query) and matches_filters(c, query.filters)
    ]
    results = sort_conversations(results, query.sort_by, query.sort_order)
    return paginate(results, query.limit, query.offset)


class ConversationSearch:
    """Query evaluation over the conversation repository."""

    def __init__(self, repository: ConversationRepository) -> None:
        self._repository = repository

    async def search(
        self,
        query: str = "",
        filters: ConversationFilter | dict[str, Any] | None = None,
        sort_by: SortField = "date",
        sort_order: SortOrder = "desc",
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[Conversation]:
        """
        Search stored conversations.

        Args:
            query: Case-insensitive text matched against titles and message text
            filters: AND-combined filters (model or camelCase/snake_case dict)
            sort_by: date (last activity), length, rating or title
            sort_order: asc or desc
            limit: Maximum results returned after sorting
            offset: Results skipped after sorting

        Returns:
            Matching conversations; empty when storage is unavailable
        """
        if filters is None:
            filters = ConversationFilter()
        elif isinstance(filters, dict):
            filters = ConversationFilter.model_validate(filters)

        return await self.run(
            SearchQuery(
                query=query,
                filters=filters,
                sort_by=sort_by,
                sort_order=sort_order,
                limit=limit,
                offset=offset,
            )
        )

    async def run(self, query: SearchQuery) -> list[Conversation]:
        conversations = await self._repository.list_all()
        results = evaluate(conversations, query)
        logger.debug(
            "Conversation search evaluated",
            extra={
                "scanned": len(conversations),
                "returned": len(results),
                "sort_by": query.sort_by,
            },
        )
        return results
