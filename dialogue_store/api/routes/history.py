"""Routes for the bounded history log, the session archive and history settings."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, HTTPException, status

from dialogue_store.api.models import DeleteResponse, ImportResponse, RatingRequest
from dialogue_store.api.routes.conversations import _get_store
from dialogue_store.models import (
    HistoryEntry,
    HistoryExport,
    HistorySettings,
    HistoryStats,
    SessionRecord,
    SessionSnapshot,
)

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/history", response_model=list[HistoryEntry])
async def list_history(
    character_id: str | None = None,
    scenario_id: str | None = None,
    q: str | None = None,
) -> list[HistoryEntry]:
    """Most recent first; optionally narrowed by character, scenario or scenario text."""
    history = _get_store().history
    if character_id is not None:
        entries = await history.get_by_character(character_id)
    elif scenario_id is not None:
        entries = await history.get_by_scenario(scenario_id)
    else:
        entries = await history.load()
    if q:
        matching = {e.id for e in await history.search(q)}
        entries = [e for e in entries if e.id in matching]
    return entries


@router.post("/history", response_model=HistoryEntry, status_code=status.HTTP_201_CREATED)
async def save_session(snapshot: SessionSnapshot) -> HistoryEntry:
    return await _get_store().history.save(snapshot)


@router.delete("/history", response_model=DeleteResponse)
async def clear_history() -> DeleteResponse:
    cleared = await _get_store().history.clear()
    return DeleteResponse(ok=cleared, deleted=cleared)


@router.get("/history/stats", response_model=HistoryStats)
async def history_stats() -> HistoryStats:
    return await _get_store().history.stats()


@router.get("/history/settings", response_model=HistorySettings)
async def get_history_settings() -> HistorySettings:
    return await _get_store().history.get_settings()


@router.patch("/history/settings", response_model=HistorySettings)
async def update_history_settings(payload: dict[str, Any] = Body(...)) -> HistorySettings:
    try:
        settings = await _get_store().history.update_settings(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    if settings is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="History settings could not be saved.",
        )
    return settings


@router.get("/history/export", response_model=HistoryExport)
async def export_history() -> HistoryExport:
    return await _get_store().transfer.export_history()


@router.post("/history/import", response_model=ImportResponse)
async def import_history(payload: dict[str, Any] = Body(...)) -> ImportResponse:
    """Replace history, sessions and settings. Malformed envelopes get a 400."""
    ok = await _get_store().transfer.import_history(payload)
    return ImportResponse(ok=ok)


@router.get("/history/sessions", response_model=list[SessionRecord])
async def list_sessions(q: str | None = None) -> list[SessionRecord]:
    history = _get_store().history
    if q:
        return await history.search_sessions(q)
    return await history.load_sessions()


@router.get("/history/sessions/{session_id}", response_model=SessionRecord)
async def get_session(session_id: str) -> SessionRecord:
    session = await _get_store().history.get_session(session_id)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Session not found: {session_id}",
        )
    return session


@router.delete("/history/sessions/{session_id}", response_model=DeleteResponse)
async def delete_session(session_id: str) -> DeleteResponse:
    deleted = await _get_store().history.delete_session(session_id)
    return DeleteResponse(ok=True, deleted=deleted)


@router.put("/history/{entry_id}/rating", response_model=HistoryEntry)
async def rate_entry(entry_id: str, payload: RatingRequest) -> HistoryEntry:
    entry = await _get_store().history.rate_entry(entry_id, payload.rating)
    if entry is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"History entry not found: {entry_id}",
        )
    return entry


@router.delete("/history/{entry_id}", response_model=DeleteResponse)
async def delete_entry(entry_id: str) -> DeleteResponse:
    deleted = await _get_store().history.delete_entry(entry_id)
    return DeleteResponse(ok=True, deleted=deleted)
