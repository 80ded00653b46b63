"""History log records and settings."""

from __future__ import annotations

from pydantic import Field

from dialogue_store.models.base import EmotionType, RecordModel, UtcDatetime, new_id, utc_now
from dialogue_store.models.conversation import Message


def new_history_id() -> str:
    return new_id("hist")


class ScenarioInfo(RecordModel):
    """Scenario a session was played in."""

    id: str
    title: str
    description: str = ""
    category: str = "daily"
    initial_prompt: str = ""
    tags: list[str] = Field(default_factory=list)
    difficulty: str = "easy"


class HistoryEntry(RecordModel):
    """Lightweight snapshot of a session without message bodies."""

    id: str = Field(default_factory=new_history_id)
    character_id: str
    scenario: ScenarioInfo
    start_time: UtcDatetime
    end_time: UtcDatetime
    message_count: int = Field(default=0, ge=0)
    emotion_progression: list[EmotionType] = Field(default_factory=list)
    rating: float | None = Field(default=None, ge=0.0, le=5.0)


class SessionSnapshot(RecordModel):
    """State of a finished (or ongoing) session handed to the history log."""

    id: str = Field(default_factory=new_history_id)
    character_id: str
    scenario: ScenarioInfo
    messages: list[Message] = Field(default_factory=list)
    start_time: UtcDatetime
    end_time: UtcDatetime | None = None
    emotion_progression: list[EmotionType] = Field(default_factory=list)


class SessionMetadata(RecordModel):
    emotion_progression: list[EmotionType] = Field(default_factory=list)
    message_count: int = Field(default=0, ge=0)
    duration: float = Field(default=0.0, ge=0.0, description="Session length in seconds")
    last_activity: UtcDatetime = Field(default_factory=utc_now)


class SessionRecord(RecordModel):
    """Archived session transcript kept in the capped session archive."""

    id: str = Field(default_factory=new_history_id)
    character_id: str
    scenario: ScenarioInfo
    messages: list[Message] = Field(default_factory=list)
    start_time: UtcDatetime
    end_time: UtcDatetime | None = None
    metadata: SessionMetadata = Field(default_factory=SessionMetadata)


class HistorySettings(RecordModel):
    """Persisted settings governing the history log."""

    max_history_count: int = Field(default=50, ge=1)
    auto_save_enabled: bool = True
    compression_enabled: bool = True
