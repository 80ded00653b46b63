"""Unit tests for conversation search, filtering, sorting and pagination."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from dialogue_store.conversations.search import (
    ConversationSearch,
    evaluate,
    matches_text,
    paginate,
)
from dialogue_store.models import Conversation, SearchQuery

BASE = datetime(2026, 4, 1, 10, 0, tzinfo=UTC)


def make_conversation(
    title: str,
    character_id: str = "aoi",
    texts: tuple[str, ...] = (),
    emotions: tuple[str, ...] = (),
    is_favorite: bool = False,
    day: int = 0,
    satisfaction: float | None = None,
    audio: bool = False,
) -> Conversation:
    messages = [
        {
            "text": text,
            "sender": "user",
            "timestamp": BASE + timedelta(days=day, minutes=i),
            "audioUrl": "https://cdn.example/a.mp3" if audio else None,
        }
        for i, text in enumerate(texts)
    ]
    arc = [
        {"messageIndex": i, "emotion": emotion, "timestamp": BASE + timedelta(days=day)}
        for i, emotion in enumerate(emotions)
    ]
    return Conversation.model_validate(
        {
            "characterId": character_id,
            "title": title,
            "messages": messages,
            "startedAt": BASE + timedelta(days=day),
            "lastMessageAt": BASE + timedelta(days=day, hours=1),
            "isFavorite": is_favorite,
            "metadata": {
                "totalMessages": len(messages),
                "emotionalArc": arc,
                "userSatisfaction": satisfaction,
            },
        }
    )


@pytest.fixture
def corpus() -> list[Conversation]:
    return [
        make_conversation("Morning walk", texts=("Good morning",), emotions=("happy",), day=0),
        make_conversation(
            "Rainy day",
            character_id="shun",
            texts=("It is raining", "Sad weather", "Stay inside"),
            emotions=("sad",),
            is_favorite=True,
            day=1,
            satisfaction=4.5,
        ),
        make_conversation(
            "Cafe talk",
            texts=("Coffee?", "Sure"),
            day=2,
            satisfaction=3.0,
            audio=True,
        ),
    ]


class TestTextMatching:
    """Query text is OR-matched across title and message text."""

    def test_matches_title_case_insensitively(self, corpus):
        assert matches_text(corpus[0], "MORNING WALK")

    def test_matches_message_text(self, corpus):
        assert matches_text(corpus[1], "raining")

    def test_empty_query_matches_everything(self, corpus):
        assert all(matches_text(c, "") for c in corpus)

    def test_no_match(self, corpus):
        assert not matches_text(corpus[2], "thunder")


class TestFilters:
    """Filters are AND-combined."""

    def test_favorite_filter_returns_exact_subset(self, corpus):
        results = evaluate(corpus, SearchQuery(filters={"isFavorite": True}))

        assert [c.title for c in results] == ["Rainy day"]

    def test_non_favorite_filter(self, corpus):
        results = evaluate(corpus, SearchQuery(filters={"isFavorite": False}))

        assert {c.title for c in results} == {"Morning walk", "Cafe talk"}

    def test_character_and_length_are_combined(self, corpus):
        query = SearchQuery(filters={"characterId": "aoi", "minLength": 2})

        assert [c.title for c in evaluate(corpus, query)] == ["Cafe talk"]

    def test_length_bounds_are_inclusive(self, corpus):
        query = SearchQuery(filters={"minLength": 1, "maxLength": 2})

        assert {c.title for c in evaluate(corpus, query)} == {"Morning walk", "Cafe talk"}

    def test_emotion_filter_uses_emotional_arc(self, corpus):
        query = SearchQuery(filters={"emotions": ["sad", "angry"]})

        assert [c.title for c in evaluate(corpus, query)] == ["Rainy day"]

    def test_date_range_is_inclusive(self, corpus):
        query = SearchQuery(
            filters={"dateRange": {"start": BASE, "end": BASE + timedelta(days=1)}}
        )

        assert {c.title for c in evaluate(corpus, query)} == {"Morning walk", "Rainy day"}

    def test_has_audio(self, corpus):
        query = SearchQuery(filters={"hasAudio": True})

        assert [c.title for c in evaluate(corpus, query)] == ["Cafe talk"]

    def test_text_and_filters_combine(self, corpus):
        query = SearchQuery(query="a", filters={"characterId": "shun"})

        assert [c.title for c in evaluate(corpus, query)] == ["Rainy day"]


class TestOrdering:
    def test_default_is_most_recent_first(self, corpus):
        results = evaluate(corpus, SearchQuery())

        assert [c.title for c in results] == ["Cafe talk", "Rainy day", "Morning walk"]

    def test_sort_by_length_ascending(self, corpus):
        results = evaluate(corpus, SearchQuery(sort_by="length", sort_order="asc"))

        assert [len(c.messages) for c in results] == [1, 2, 3]

    def test_sort_by_rating_treats_missing_as_zero(self, corpus):
        results = evaluate(corpus, SearchQuery(sort_by="rating"))

        assert [c.title for c in results] == ["Rainy day", "Cafe talk", "Morning walk"]

    def test_sort_by_title(self, corpus):
        results = evaluate(corpus, SearchQuery(sort_by="title", sort_order="asc"))

        assert [c.title for c in results] == ["Cafe talk", "Morning walk", "Rainy day"]


class TestPagination:
    def test_offset_and_limit_apply_after_sorting(self, corpus):
        query = SearchQuery(sort_by="title", sort_order="asc", offset=1, limit=1)

        assert [c.title for c in evaluate(corpus, query)] == ["Morning walk"]

    def test_offset_past_end(self, corpus):
        assert paginate(corpus, limit=5, offset=10) == []

    def test_limit_zero(self, corpus):
        assert paginate(corpus, limit=0) == []


class TestConversationSearch:
    """Search over the repository."""

    @pytest.mark.asyncio
    async def test_favorite_search_over_store(self, store):
        """One favorite among three stored conversations."""
        ids = [(await store.conversations.create("aoi", title=f"c{i}")).id for i in range(3)]
        await store.favorites.toggle_favorite(ids[1])

        results = await store.search.search(filters={"isFavorite": True})

        assert len(results) == 1
        assert results[0].id == ids[1]

    @pytest.mark.asyncio
    async def test_empty_query_returns_everything(self, store):
        for i in range(3):
            await store.conversations.create("aoi", title=f"c{i}")

        assert len(await store.search.search()) == 3

    @pytest.mark.asyncio
    async def test_matches_added_message_text(self, store):
        conversation = await store.conversations.create("aoi", title="Untitled")
        await store.conversations.add_message(
            conversation.id, {"text": "Let's watch fireworks", "sender": "user"}
        )
        await store.conversations.create("aoi", title="Other")

        results = await store.search.search("FIREWORKS")

        assert [c.id for c in results] == [conversation.id]

    @pytest.mark.asyncio
    async def test_storage_failure_returns_empty(self, failing_kv):
        from dialogue_store.conversations.repository import ConversationRepository

        search = ConversationSearch(ConversationRepository(failing_kv))

        assert await search.search("anything") == []
