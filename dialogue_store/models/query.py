"""Search queries and aggregate statistics."""

from __future__ import annotations

from typing import Literal

from pydantic import Field, model_validator

from dialogue_store.models.base import EmotionType, RecordModel, UtcDatetime

SortField = Literal["date", "length", "rating", "title"]
SortOrder = Literal["asc", "desc"]


class DateRange(RecordModel):
    start: UtcDatetime
    end: UtcDatetime

    @model_validator(mode="after")
    def validate_order(self) -> "DateRange":
        if self.start > self.end:
            raise ValueError("dateRange start must not be after end")
        return self


class ConversationFilter(RecordModel):
    """AND-combined filters; unset fields do not constrain the result."""

    character_id: str | None = None
    date_range: DateRange | None = None
    emotions: list[EmotionType] | None = None
    is_favorite: bool | None = None
    has_audio: bool | None = None
    min_length: int | None = Field(default=None, ge=0)
    max_length: int | None = Field(default=None, ge=0)


class SearchQuery(RecordModel):
    """Full search request: text query, filters, ordering and page."""

    query: str = ""
    filters: ConversationFilter = Field(default_factory=ConversationFilter)
    sort_by: SortField = "date"
    sort_order: SortOrder = "desc"
    limit: int | None = Field(default=None, ge=0)
    offset: int | None = Field(default=None, ge=0)


class ConversationStats(RecordModel):
    total_conversations: int = 0
    total_messages: int = 0
    average_length: float = 0.0
    favorite_character: str | None = None
    emotion_distribution: dict[str, int] = Field(default_factory=dict)
    conversations_by_day: dict[str, int] = Field(default_factory=dict)
    longest_conversation: str | None = None
    most_recent_conversation: str | None = None


class HistoryStats(RecordModel):
    total_conversations: int = 0
    total_messages: int = 0
    average_messages_per_conversation: float = 0.0
    character_distribution: dict[str, int] = Field(default_factory=dict)
    scenario_distribution: dict[str, int] = Field(default_factory=dict)
