"""Conversation, message and summary records."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field

from dialogue_store.models.base import (
    EmotionType,
    RecordModel,
    UtcDatetime,
    new_id,
    utc_now,
)


def new_conversation_id() -> str:
    return new_id("conv")


def new_message_id() -> str:
    return new_id("msg")


class Message(RecordModel):
    """Single dialogue message, owned by exactly one conversation."""

    id: str = Field(default_factory=new_message_id)
    text: str
    sender: Literal["user", "character"]
    emotion: EmotionType = "neutral"
    timestamp: UtcDatetime = Field(default_factory=utc_now)
    audio_url: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class MessageDraft(RecordModel):
    """Caller-supplied message content; id and timestamp are generated on append."""

    text: str
    sender: Literal["user", "character"]
    emotion: EmotionType | None = None
    audio_url: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class EmotionalArcPoint(RecordModel):
    """Emotional shift recorded at a message index."""

    message_index: int = Field(..., ge=0)
    emotion: EmotionType
    timestamp: UtcDatetime


class ConversationMetadata(RecordModel):
    """Counters and derived data kept alongside a conversation."""

    total_messages: int = Field(default=0, ge=0)
    average_response_time: float = Field(default=0.0, ge=0.0)
    emotional_arc: list[EmotionalArcPoint] = Field(default_factory=list)
    key_moments: list[str] = Field(default_factory=list)
    user_satisfaction: float | None = Field(default=None, ge=0.0)


class Conversation(RecordModel):
    """Full dialogue session with embedded messages."""

    id: str = Field(default_factory=new_conversation_id)
    character_id: str
    title: str
    scenario: str | None = None
    messages: list[Message] = Field(default_factory=list)
    started_at: UtcDatetime = Field(default_factory=utc_now)
    last_message_at: UtcDatetime = Field(default_factory=utc_now)
    is_favorite: bool = False
    tags: list[str] = Field(default_factory=list)
    summary: str = ""
    metadata: ConversationMetadata = Field(default_factory=ConversationMetadata)

    def find_message(self, message_id: str) -> int | None:
        """Index of ``message_id`` in ``messages`` or None."""
        for index, message in enumerate(self.messages):
            if message.id == message_id:
                return index
        return None


class EmotionalHighlight(RecordModel):
    """Non-neutral message excerpt surfaced in a summary."""

    emotion: EmotionType
    context: str
    message_id: str
    timestamp: UtcDatetime


class ConversationSummary(RecordModel):
    """Generated summary plus locally derived highlights."""

    conversation_id: str
    content: str
    key_topics: list[str] = Field(default_factory=list)
    emotional_highlights: list[EmotionalHighlight] = Field(default_factory=list)
    character_insights: list[str] = Field(default_factory=list)
    generated_at: UtcDatetime = Field(default_factory=utc_now)
