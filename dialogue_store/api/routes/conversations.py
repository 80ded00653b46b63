"""Routes for stored conversations, their messages, favorites and summaries."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, HTTPException, Query, status

from dialogue_store.api.models import (
    ConversationCreateRequest,
    DeleteResponse,
    FavoriteResponse,
    ImportResponse,
)
from dialogue_store.models import (
    Conversation,
    ConversationExport,
    ConversationStats,
    ConversationSummary,
    Message,
    MessageDraft,
    SearchQuery,
)
from dialogue_store.store import DialogueStore

logger = logging.getLogger(__name__)
router = APIRouter()


def _get_store() -> DialogueStore:
    from dialogue_store.api.main import app_state

    store = app_state.get("store")
    if store is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Dialogue store is not initialized.",
        )
    return store


def _not_found(conversation_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Conversation not found: {conversation_id}",
    )


@router.get("/conversations", response_model=list[Conversation])
async def list_conversations() -> list[Conversation]:
    return await _get_store().conversations.list_all()


@router.post(
    "/conversations",
    response_model=Conversation,
    status_code=status.HTTP_201_CREATED,
)
async def create_conversation(payload: ConversationCreateRequest) -> Conversation:
    return await _get_store().conversations.create(
        payload.character_id,
        scenario=payload.scenario,
        title=payload.title,
    )


@router.post("/conversations/search", response_model=list[Conversation])
async def search_conversations(query: SearchQuery) -> list[Conversation]:
    """Text query plus AND-combined filters, sorted and paginated."""
    return await _get_store().search.run(query)


@router.get("/conversations/stats", response_model=ConversationStats)
async def conversation_stats() -> ConversationStats:
    return await _get_store().stats.stats()


@router.get("/conversations/favorites", response_model=list[Conversation])
async def list_favorites() -> list[Conversation]:
    return await _get_store().favorites.list_favorites()


@router.get("/conversations/export", response_model=ConversationExport)
async def export_conversations(
    ids: list[str] | None = Query(None, description="Conversation ids; all when omitted"),
) -> ConversationExport:
    return await _get_store().transfer.export_conversations(ids)


@router.post("/conversations/import", response_model=ImportResponse)
async def import_conversations(payload: dict[str, Any] = Body(...)) -> ImportResponse:
    """Import an export envelope under fresh ids. Malformed envelopes get a 400."""
    imported = await _get_store().transfer.import_conversations(payload)
    return ImportResponse(ok=True, imported=imported)


@router.get("/conversations/{conversation_id}", response_model=Conversation)
async def get_conversation(conversation_id: str) -> Conversation:
    conversation = await _get_store().conversations.get(conversation_id)
    if conversation is None:
        raise _not_found(conversation_id)
    return conversation


@router.patch("/conversations/{conversation_id}", response_model=Conversation)
async def update_conversation(
    conversation_id: str,
    payload: dict[str, Any] = Body(...),
) -> Conversation:
    try:
        conversation = await _get_store().conversations.update(conversation_id, payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    if conversation is None:
        raise _not_found(conversation_id)
    return conversation


@router.delete("/conversations/{conversation_id}", response_model=DeleteResponse)
async def delete_conversation(conversation_id: str) -> DeleteResponse:
    deleted = await _get_store().conversations.delete(conversation_id)
    return DeleteResponse(ok=True, deleted=deleted)


@router.post(
    "/conversations/{conversation_id}/messages",
    response_model=Message,
    status_code=status.HTTP_201_CREATED,
)
async def add_message(conversation_id: str, draft: MessageDraft) -> Message:
    message = await _get_store().conversations.add_message(conversation_id, draft)
    if message is None:
        raise _not_found(conversation_id)
    return message


@router.patch(
    "/conversations/{conversation_id}/messages/{message_id}",
    response_model=Message,
)
async def update_message(
    conversation_id: str,
    message_id: str,
    payload: dict[str, Any] = Body(...),
) -> Message:
    try:
        message = await _get_store().conversations.update_message(
            conversation_id, message_id, payload
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    if message is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Message not found: {message_id}",
        )
    return message


@router.delete(
    "/conversations/{conversation_id}/messages/{message_id}",
    response_model=DeleteResponse,
)
async def delete_message(conversation_id: str, message_id: str) -> DeleteResponse:
    deleted = await _get_store().conversations.delete_message(conversation_id, message_id)
    return DeleteResponse(ok=True, deleted=deleted)


@router.post("/conversations/{conversation_id}/favorite", response_model=FavoriteResponse)
async def toggle_favorite(conversation_id: str) -> FavoriteResponse:
    store = _get_store()
    if await store.conversations.get(conversation_id) is None:
        raise _not_found(conversation_id)
    is_favorite = await store.favorites.toggle_favorite(conversation_id)
    return FavoriteResponse(conversation_id=conversation_id, is_favorite=is_favorite)


@router.post(
    "/conversations/{conversation_id}/summary",
    response_model=ConversationSummary | None,
)
async def generate_summary(conversation_id: str) -> ConversationSummary | None:
    """Generate a summary; null when the conversation is empty or the summarizer fails."""
    return await _get_store().summaries.generate_summary(conversation_id)


@router.get("/conversations/{conversation_id}/summary", response_model=ConversationSummary)
async def get_summary(conversation_id: str) -> ConversationSummary:
    summary = await _get_store().summaries.get_summary(conversation_id)
    if summary is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No summary stored for conversation: {conversation_id}",
        )
    return summary
