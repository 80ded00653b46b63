"""
Bounded History Log

Capped, most-recent-first log of finished sessions (``dialogue_history``)
plus an optional archive of full session transcripts
(``conversation_history``). Both are trimmed from the tail to
``maxHistoryCount`` right after every insertion; entries are never
reordered.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections import Counter
from typing import Any

from pydantic import ValidationError
from pydantic.alias_generators import to_camel

from dialogue_store.errors import StorageError
from dialogue_store.models import (
    HistoryEntry,
    HistorySettings,
    HistoryStats,
    SessionMetadata,
    SessionRecord,
    SessionSnapshot,
)
from dialogue_store.models.base import utc_now
from dialogue_store.storage import keys
from dialogue_store.storage.base import KeyValueStore
from dialogue_store.storage.codec import decode_records, encode_record, encode_records

logger = logging.getLogger(__name__)


def _progression(snapshot: SessionSnapshot) -> list[str]:
    return snapshot.emotion_progression or [m.emotion for m in snapshot.messages]


def build_entry(snapshot: SessionSnapshot) -> HistoryEntry:
    return HistoryEntry(
        id=snapshot.id,
        character_id=snapshot.character_id,
        scenario=snapshot.scenario,
        start_time=snapshot.start_time,
        end_time=snapshot.end_time or utc_now(),
        message_count=len(snapshot.messages),
        emotion_progression=_progression(snapshot),
    )


def build_session_record(snapshot: SessionSnapshot) -> SessionRecord:
    duration = 0.0
    if snapshot.end_time is not None:
        duration = max((snapshot.end_time - snapshot.start_time).total_seconds(), 0.0)
    return SessionRecord(
        id=snapshot.id,
        character_id=snapshot.character_id,
        scenario=snapshot.scenario,
        messages=list(snapshot.messages),
        start_time=snapshot.start_time,
        end_time=snapshot.end_time,
        metadata=SessionMetadata(
            emotion_progression=_progression(snapshot),
            message_count=len(snapshot.messages),
            duration=duration,
            last_activity=utc_now(),
        ),
    )


def _push_front(items: list, item, cap: int) -> list:
    return [item, *(i for i in items if i.id != item.id)][:cap]


def _scenario_matches(scenario, term: str) -> bool:
    return term in scenario.title.casefold() or term in scenario.description.casefold()


class HistoryLog:
    """Capped session history with persisted settings."""

    def __init__(
        self,
        kv: KeyValueStore,
        defaults: HistorySettings | None = None,
        lock: asyncio.Lock | None = None,
    ) -> None:
        self._kv = kv
        self.defaults = defaults or HistorySettings()
        self.lock = lock or asyncio.Lock()

    # ------------------------------------------------------------------
    # Unlocked primitives (raise StorageError)
    # ------------------------------------------------------------------

    async def read_settings(self) -> HistorySettings:
        raw = await self._kv.get(keys.HISTORY_SETTINGS)
        if raw is None:
            return self.defaults
        try:
            stored = json.loads(raw)
            if not isinstance(stored, dict):
                raise ValueError("history settings must be a JSON object")
            return HistorySettings.model_validate(
                {**self.defaults.model_dump(by_alias=True), **stored}
            )
        except (ValueError, ValidationError) as e:
            raise StorageError(
                f"Undecodable history settings: {e}",
                operation="decode",
                key=keys.HISTORY_SETTINGS,
            ) from e

    async def write_settings(self, settings: HistorySettings) -> None:
        await self._kv.set(keys.HISTORY_SETTINGS, encode_record(settings))

    async def read_entries(self) -> list[HistoryEntry]:
        raw = await self._kv.get(keys.DIALOGUE_HISTORY)
        if raw is None:
            return []
        return decode_records(HistoryEntry, raw, key=keys.DIALOGUE_HISTORY)

    async def write_entries(self, entries: list[HistoryEntry], settings: HistorySettings) -> None:
        await self._kv.set(
            keys.DIALOGUE_HISTORY,
            encode_records(entries, compact=settings.compression_enabled),
        )

    async def read_sessions(self) -> list[SessionRecord]:
        raw = await self._kv.get(keys.CONVERSATION_HISTORY)
        if raw is None:
            return []
        return decode_records(SessionRecord, raw, key=keys.CONVERSATION_HISTORY)

    async def write_sessions(self, sessions: list[SessionRecord], settings: HistorySettings) -> None:
        await self._kv.set(
            keys.CONVERSATION_HISTORY,
            encode_records(sessions, compact=settings.compression_enabled),
        )

    async def replace_all(
        self,
        entries: list[HistoryEntry],
        sessions: list[SessionRecord],
        settings: HistorySettings,
    ) -> None:
        """Overwrite settings, entry log and session archive wholesale."""
        cap = settings.max_history_count
        await self.write_settings(settings)
        await self.write_entries(entries[:cap], settings)
        await self.write_sessions(sessions[:cap], settings)

    # ------------------------------------------------------------------
    # Entry log
    # ------------------------------------------------------------------

    async def save(self, snapshot: SessionSnapshot | dict[str, Any]) -> HistoryEntry:
        """
        Record a session at the head of the log and trim the tail to the cap.

        Saving an id that is already logged moves it to the head. The entry is
        returned even when the durable write fails; the failure is logged.
        """
        if isinstance(snapshot, dict):
            snapshot = SessionSnapshot.model_validate(snapshot)
        entry = build_entry(snapshot)

        async with self.lock:
            settings = await self.get_settings()
            cap = settings.max_history_count
            try:
                entries = _push_front(await self.read_entries(), entry, cap)
                await self.write_entries(entries, settings)
                if settings.auto_save_enabled:
                    sessions = _push_front(
                        await self.read_sessions(), build_session_record(snapshot), cap
                    )
                    await self.write_sessions(sessions, settings)
            except StorageError as e:
                self._log_failure("save", e, entry.id)
        logger.debug(
            "History entry saved",
            extra={"entry_id": entry.id, "character_id": entry.character_id},
        )
        return entry

    async def load(self) -> list[HistoryEntry]:
        """Full capped log, most recent first; empty when storage is unavailable."""
        try:
            return await self.read_entries()
        except StorageError as e:
            self._log_failure("load", e)
            return []

    async def get_entry(self, entry_id: str) -> HistoryEntry | None:
        return next((e for e in await self.load() if e.id == entry_id), None)

    async def delete_entry(self, entry_id: str) -> bool:
        async with self.lock:
            try:
                entries = await self.read_entries()
                remaining = [e for e in entries if e.id != entry_id]
                if len(remaining) == len(entries):
                    return False
                await self.write_entries(remaining, await self.read_settings())
            except StorageError as e:
                self._log_failure("delete_entry", e, entry_id)
                return False
        return True

    async def rate_entry(self, entry_id: str, rating: float) -> HistoryEntry | None:
        """Set the rating of an entry, the one mutation an entry allows."""
        async with self.lock:
            try:
                entries = await self.read_entries()
                for index, entry in enumerate(entries):
                    if entry.id == entry_id:
                        rated = HistoryEntry.model_validate(
                            {**entry.model_dump(), "rating": rating}
                        )
                        entries[index] = rated
                        await self.write_entries(entries, await self.read_settings())
                        return rated
            except StorageError as e:
                self._log_failure("rate_entry", e, entry_id)
        return None

    async def get_by_character(self, character_id: str) -> list[HistoryEntry]:
        return [e for e in await self.load() if e.character_id == character_id]

    async def get_by_scenario(self, scenario_id: str) -> list[HistoryEntry]:
        return [e for e in await self.load() if e.scenario.id == scenario_id]

    async def search(self, text: str) -> list[HistoryEntry]:
        """Case-insensitive match against scenario title or description."""
        term = text.strip().casefold()
        entries = await self.load()
        if not term:
            return entries
        return [e for e in entries if _scenario_matches(e.scenario, term)]

    async def stats(self) -> HistoryStats:
        entries = await self.load()
        total_messages = sum(e.message_count for e in entries)
        return HistoryStats(
            total_conversations=len(entries),
            total_messages=total_messages,
            average_messages_per_conversation=total_messages / len(entries) if entries else 0.0,
            character_distribution=dict(Counter(e.character_id for e in entries)),
            scenario_distribution=dict(Counter(e.scenario.id for e in entries)),
        )

    # ------------------------------------------------------------------
    # Session archive
    # ------------------------------------------------------------------

    async def load_sessions(self) -> list[SessionRecord]:
        try:
            return await self.read_sessions()
        except StorageError as e:
            self._log_failure("load_sessions", e)
            return []

    async def get_session(self, session_id: str) -> SessionRecord | None:
        return next((s for s in await self.load_sessions() if s.id == session_id), None)

    async def delete_session(self, session_id: str) -> bool:
        async with self.lock:
            try:
                sessions = await self.read_sessions()
                remaining = [s for s in sessions if s.id != session_id]
                if len(remaining) == len(sessions):
                    return False
                await self.write_sessions(remaining, await self.read_settings())
            except StorageError as e:
                self._log_failure("delete_session", e, session_id)
                return False
        return True

    async def search_sessions(self, text: str) -> list[SessionRecord]:
        """Match scenario title/description or any archived message text."""
        term = text.strip().casefold()
        sessions = await self.load_sessions()
        if not term:
            return sessions
        return [
            s
            for s in sessions
            if _scenario_matches(s.scenario, term)
            or any(term in m.text.casefold() for m in s.messages)
        ]

    async def clear(self) -> bool:
        """Remove the entry log and the session archive; settings are kept."""
        async with self.lock:
            try:
                await self._kv.remove(keys.DIALOGUE_HISTORY)
                await self._kv.remove(keys.CONVERSATION_HISTORY)
            except StorageError as e:
                self._log_failure("clear", e)
                return False
        logger.info("History cleared")
        return True

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    async def get_settings(self) -> HistorySettings:
        """Persisted settings over documented defaults; defaults when unreadable."""
        try:
            return await self.read_settings()
        except StorageError as e:
            self._log_failure("get_settings", e)
            return self.defaults

    async def update_settings(self, partial: dict[str, Any]) -> HistorySettings | None:
        """
        Merge ``partial`` over the current settings and persist.

        Lowering ``maxHistoryCount`` trims both logs immediately.

        Raises:
            ValueError: If the merged settings are invalid
        """
        changes = {to_camel(key): value for key, value in partial.items()}
        async with self.lock:
            try:
                current = await self.read_settings()
                updated = HistorySettings.model_validate(
                    {**current.model_dump(by_alias=True), **changes}
                )

                # The new cap is stored only once both logs fit it.
                cap = updated.max_history_count
                entries = await self.read_entries()
                if len(entries) > cap:
                    await self.write_entries(entries[:cap], updated)
                sessions = await self.read_sessions()
                if len(sessions) > cap:
                    await self.write_sessions(sessions[:cap], updated)

                await self.write_settings(updated)
            except StorageError as e:
                self._log_failure("update_settings", e)
                return None
        return updated

    @staticmethod
    def _log_failure(operation: str, error: StorageError, entry_id: str | None = None) -> None:
        logger.error(
            f"History {operation} failed: {error}",
            extra={"operation": operation, "entry_id": entry_id, "key": error.key},
        )
