"""
API Request/Response Models

Pydantic models for the HTTP surface. Stored records are returned as-is
(camelCase on the wire); these models cover requests and status payloads.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from dialogue_store.models.base import RecordModel


class HealthResponse(BaseModel):
    """Response model for health check endpoints."""

    status: str = Field(..., description="Service status: 'healthy' or 'unhealthy'")
    version: str = Field(..., description="API version")
    timestamp: str = Field(..., description="Current timestamp (ISO 8601)")
    backend: str | None = Field(None, description="Key-value backend in use")


class ConversationCreateRequest(RecordModel):
    """Request body for creating a conversation."""

    character_id: str = Field(..., min_length=1, description="Character the session is with")
    scenario: str | None = Field(None, description="Scenario name used in the default title")
    title: str | None = Field(None, description="Explicit title")


class DeleteResponse(BaseModel):
    ok: bool = True
    deleted: bool


class FavoriteResponse(RecordModel):
    conversation_id: str
    is_favorite: bool


class RatingRequest(BaseModel):
    rating: float = Field(..., ge=0.0, le=5.0, description="Session rating (0-5)")


class ImportResponse(BaseModel):
    """Result of an import request."""

    ok: bool
    imported: int | None = Field(None, description="Conversations imported, when applicable")


class ErrorResponse(BaseModel):
    """Body returned by the global exception handlers."""

    error: str
    message: str
