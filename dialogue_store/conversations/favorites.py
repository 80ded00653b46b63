"""
Favorites Manager

Keeps each conversation's ``isFavorite`` flag and the separate
``favorite_conversations`` index in step. Both writes happen under the
repository lock; the per-record flag is authoritative and ``reconcile()``
rebuilds the index from it.
"""

from __future__ import annotations

import logging

from dialogue_store.conversations.repository import ConversationRepository
from dialogue_store.errors import StorageError
from dialogue_store.models import Conversation

logger = logging.getLogger(__name__)


class FavoritesManager:
    """Toggle and list favorite conversations."""

    def __init__(self, repository: ConversationRepository) -> None:
        self._repository = repository

    async def toggle_favorite(self, conversation_id: str) -> bool:
        """
        Flip the favorite flag of a conversation.

        Returns:
            The new favorite state. False when the conversation does not
            exist; the unchanged state when the record write fails.
        """
        async with self._repository.lock:
            try:
                current = await self._repository.load_record(conversation_id)
            except StorageError as e:
                logger.error(
                    f"Favorite toggle read failed: {e}",
                    extra={"conversation_id": conversation_id},
                )
                return False
            if current is None:
                return False

            new_state = not current.is_favorite
            try:
                await self._repository.save_record(
                    current.model_copy(update={"is_favorite": new_state})
                )
            except StorageError as e:
                logger.error(
                    f"Favorite toggle write failed: {e}",
                    extra={"conversation_id": conversation_id},
                )
                return current.is_favorite

            try:
                await self._repository.set_favorite_membership(conversation_id, new_state)
            except StorageError as e:
                # Flag persisted, index stale until reconcile()
                logger.warning(
                    f"Favorites index update failed: {e}",
                    extra={"conversation_id": conversation_id, "is_favorite": new_state},
                )
        return new_state

    async def is_favorite(self, conversation_id: str) -> bool:
        conversation = await self._repository.get(conversation_id)
        return bool(conversation and conversation.is_favorite)

    async def favorite_ids(self) -> list[str]:
        try:
            return await self._repository.load_favorite_ids()
        except StorageError as e:
            logger.error(f"Favorites index read failed: {e}")
            return []

    async def list_favorites(self) -> list[Conversation]:
        """Resolve the favorites index, skipping ids that no longer resolve."""
        favorites = []
        for conversation_id in await self.favorite_ids():
            conversation = await self._repository.get(conversation_id)
            if conversation is None:
                logger.debug(
                    "Skipping unresolved favorite",
                    extra={"conversation_id": conversation_id},
                )
                continue
            favorites.append(conversation)
        return favorites

    async def reconcile(self) -> list[str] | None:
        """
        Rebuild the favorites index from the per-conversation flags.

        Returns:
            The rebuilt id list, or None when storage is unavailable
        """
        async with self._repository.lock:
            try:
                ids = []
                for conversation_id in await self._repository.load_index():
                    conversation = await self._repository.load_record(conversation_id)
                    if conversation is not None and conversation.is_favorite:
                        ids.append(conversation_id)
                await self._repository.save_favorite_ids(ids)
            except StorageError as e:
                logger.error(f"Favorites reconcile failed: {e}")
                return None
        logger.info("Favorites index rebuilt", extra={"favorite_count": len(ids)})
        return ids
