"""Statistics Aggregator: full-scan roll-ups over stored conversations."""

from __future__ import annotations

from collections import Counter

from dialogue_store.conversations.repository import ConversationRepository
from dialogue_store.models import EMOTIONS, Conversation, ConversationStats


def compute_stats(conversations: list[Conversation]) -> ConversationStats:
    emotion_distribution = dict.fromkeys(EMOTIONS, 0)
    if not conversations:
        return ConversationStats(emotion_distribution=emotion_distribution)

    total_messages = sum(len(c.messages) for c in conversations)

    # most_common keeps first-seen order for ties
    character_counts = Counter(c.character_id for c in conversations)
    favorite_character = character_counts.most_common(1)[0][0]

    for conversation in conversations:
        for point in conversation.metadata.emotional_arc:
            emotion_distribution[point.emotion] = emotion_distribution.get(point.emotion, 0) + 1

    conversations_by_day: dict[str, int] = {}
    for conversation in conversations:
        day = conversation.started_at.date().isoformat()
        conversations_by_day[day] = conversations_by_day.get(day, 0) + 1

    longest = max(conversations, key=lambda c: len(c.messages))
    most_recent = max(conversations, key=lambda c: c.last_message_at)

    return ConversationStats(
        total_conversations=len(conversations),
        total_messages=total_messages,
        average_length=total_messages / len(conversations),
        favorite_character=favorite_character,
        emotion_distribution=emotion_distribution,
        conversations_by_day=conversations_by_day,
        longest_conversation=longest.id,
        most_recent_conversation=most_recent.id,
    )


class StatisticsAggregator:
    """Recomputes statistics from a full scan on every call; nothing is cached."""

    def __init__(self, repository: ConversationRepository) -> None:
        self._repository = repository

    async def stats(self) -> ConversationStats:
        return compute_stats(await self._repository.list_all())
