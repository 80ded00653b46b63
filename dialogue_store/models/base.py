"""Shared record base and field types."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated, Literal
from uuid import uuid4

from pydantic import AfterValidator, BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

EmotionType = Literal["neutral", "happy", "sad", "angry", "surprised", "embarrassed"]

EMOTIONS: tuple[str, ...] = ("neutral", "happy", "sad", "angry", "surprised", "embarrassed")
NEUTRAL_EMOTION = "neutral"


def _ensure_utc(value: datetime) -> datetime:
    # Naive timestamps from foreign payloads are read as UTC so sorting never
    # compares naive with aware values.
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


UtcDatetime = Annotated[datetime, AfterValidator(_ensure_utc)]


def utc_now() -> datetime:
    return datetime.now(UTC)


def new_id(prefix: str) -> str:
    """Generate a globally unique identifier such as ``conv_3f2a...``."""
    return f"{prefix}_{uuid4().hex}"


class RecordModel(BaseModel):
    """Base for persisted records: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )
