"""
Summary Coordinator

Calls the external summarizer for a stored conversation, derives key
topics, emotional highlights and character insights locally, and persists
the result. A conversation without messages never reaches the summarizer,
and a summarizer failure leaves the stored conversation untouched.
"""

from __future__ import annotations

import logging
import re
from collections import Counter

from dialogue_store.conversations.repository import ConversationRepository
from dialogue_store.errors import StorageError, SummarizationError
from dialogue_store.models import (
    NEUTRAL_EMOTION,
    Conversation,
    ConversationSummary,
    EmotionalHighlight,
)
from dialogue_store.summarizers.base import BaseSummarizer

logger = logging.getLogger(__name__)

MAX_KEY_TOPICS = 5
MAX_HIGHLIGHTS = 5
EXCERPT_LENGTH = 100

EMOTION_DISPLAY_NAMES = {
    "neutral": "中立",
    "happy": "嬉しい",
    "sad": "悲しい",
    "angry": "怒り",
    "surprised": "驚き",
    "embarrassed": "恥ずかし",
}

_WORD_PATTERN = re.compile(r"\w+")


def extract_key_topics(conversation: Conversation) -> list[str]:
    """Most frequent terms (3+ characters) of the earliest message."""
    if not conversation.messages:
        return []
    words = [
        word.casefold()
        for word in _WORD_PATTERN.findall(conversation.messages[0].text)
        if len(word) > 2
    ]
    return [word for word, _ in Counter(words).most_common(MAX_KEY_TOPICS)]


def _excerpt(text: str) -> str:
    if len(text) <= EXCERPT_LENGTH:
        return text
    return text[:EXCERPT_LENGTH] + "..."


def extract_emotional_highlights(conversation: Conversation) -> list[EmotionalHighlight]:
    highlights = [
        EmotionalHighlight(
            emotion=message.emotion,
            context=_excerpt(message.text),
            message_id=message.id,
            timestamp=message.timestamp,
        )
        for message in conversation.messages
        if message.emotion != NEUTRAL_EMOTION
    ]
    return highlights[:MAX_HIGHLIGHTS]


def character_insights(conversation: Conversation) -> list[str]:
    character_messages = [m for m in conversation.messages if m.sender == "character"]
    if not character_messages:
        return []

    insights = []
    dominant, _ = Counter(m.emotion for m in character_messages).most_common(1)[0]
    insights.append(f"主な感情: {EMOTION_DISPLAY_NAMES.get(dominant, dominant)}")

    average_length = sum(len(m.text) for m in character_messages) / len(character_messages)
    if average_length > 100:
        insights.append("詳しく話すタイプ")
    elif average_length < 50:
        insights.append("簡潔に話すタイプ")
    return insights


class SummaryCoordinator:
    """Generate and persist conversation summaries."""

    def __init__(
        self,
        repository: ConversationRepository,
        summarizer: BaseSummarizer | None = None,
    ) -> None:
        self._repository = repository
        self._summarizer = summarizer

    async def generate_summary(self, conversation_id: str) -> ConversationSummary | None:
        """
        Summarize a stored conversation.

        Returns:
            The summary, or None when the conversation is missing or empty,
            no summarizer is configured, or the summarizer fails
        """
        conversation = await self._repository.get(conversation_id)
        if conversation is None or not conversation.messages:
            return None

        if self._summarizer is None:
            logger.warning(
                "Summary requested without a configured summarizer",
                extra={"conversation_id": conversation_id},
            )
            return None

        try:
            content = await self._summarizer.summarize(list(conversation.messages))
        except SummarizationError as e:
            logger.error(
                f"Summary generation failed: {e}",
                extra={"conversation_id": conversation_id, "provider": e.provider},
            )
            return None
        except Exception as e:
            logger.error(
                f"Summarizer raised unexpectedly: {e}",
                extra={
                    "conversation_id": conversation_id,
                    "provider": getattr(self._summarizer, "provider_name", None),
                },
                exc_info=True,
            )
            return None

        summary = ConversationSummary(
            conversation_id=conversation_id,
            content=content,
            key_topics=extract_key_topics(conversation),
            emotional_highlights=extract_emotional_highlights(conversation),
            character_insights=character_insights(conversation),
        )

        # The record is only written once the conversation carries the text.
        async with self._repository.lock:
            try:
                current = await self._repository.load_record(conversation_id)
                if current is None:
                    logger.warning(
                        "Conversation removed before its summary was stored",
                        extra={"conversation_id": conversation_id},
                    )
                    return None
                await self._repository.save_record(current.model_copy(update={"summary": content}))
                await self._repository.save_summary_record(summary)
            except StorageError as e:
                logger.error(
                    f"Summary write failed: {e}",
                    extra={"conversation_id": conversation_id, "key": e.key},
                )
                return None
        return summary

    async def get_summary(self, conversation_id: str) -> ConversationSummary | None:
        try:
            return await self._repository.load_summary_record(conversation_id)
        except StorageError as e:
            logger.error(
                f"Summary record read failed: {e}",
                extra={"conversation_id": conversation_id},
            )
            return None
