"""
FastAPI Application

HTTP surface for the dialogue store with:
- Lifespan management for store initialization/cleanup
- CORS middleware for frontend integration
- Global exception handlers for import and storage errors
- Health, conversation and history endpoints

Usage:
    uvicorn dialogue_store.api.main:app --reload --port 8000
"""

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from dialogue_store import __version__
from dialogue_store.api.models import ErrorResponse
from dialogue_store.api.routes import conversations, health, history
from dialogue_store.config import get_settings
from dialogue_store.errors import DataImportError, StorageError
from dialogue_store.store import DialogueStore

logger = logging.getLogger(__name__)

# Global state for the store
app_state: dict[str, DialogueStore | None] = {
    "store": None,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Lifespan context manager for startup and shutdown.

    Builds the configured key-value backend and summarizer, and closes both
    on shutdown.
    """
    config = get_settings()
    logger.info(f"Starting {config.app_name} API server...")

    try:
        store = DialogueStore.from_settings(config)
        await store.initialize()
        app_state["store"] = store
        logger.info(f"{config.app_name} API server started successfully")

        yield  # Application runs here

    finally:
        logger.info(f"Shutting down {config.app_name} API server...")
        if app_state["store"] is not None:
            try:
                await app_state["store"].close()
                logger.info("Dialogue store closed")
            except StorageError as e:
                logger.error(f"Error closing dialogue store: {e}")
            app_state["store"] = None
        logger.info(f"{config.app_name} API server shut down complete")


# Create FastAPI app
app = FastAPI(
    title="Dialogue Store API",
    description="Conversation history, search and statistics for character dialogue sessions",
    version=__version__,
    lifespan=lifespan,
)

# CORS middleware for frontend
cors_origins_env = os.getenv("CORS_ORIGINS", "")
cors_origins = (
    [origin.strip() for origin in cors_origins_env.split(",") if origin.strip()]
    if cors_origins_env
    else ["http://localhost:3000", "http://localhost:5173"]
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Exception handlers
@app.exception_handler(DataImportError)
async def import_error_handler(request: Request, exc: DataImportError) -> JSONResponse:
    """Malformed export payloads: fixed message, detail only in the log."""
    logger.warning(f"Import rejected: {exc.reason}", extra={"path": request.url.path})
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ErrorResponse(error="import_error", message=exc.message).model_dump(),
    )


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    """Handle storage errors that escape a component boundary."""
    logger.error(f"Storage error: {exc}", extra={"operation": exc.operation, "key": exc.key})
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=ErrorResponse(
            error="storage_error",
            message="Storage is unavailable. Please try again later.",
        ).model_dump(),
    )


# Include routers
app.include_router(health.router, prefix="/api/v1", tags=["health"])
app.include_router(conversations.router, prefix="/api/v1", tags=["conversations"])
app.include_router(history.router, prefix="/api/v1", tags=["history"])


# Root endpoint
@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with API information."""
    return {
        "name": "Dialogue Store API",
        "version": __version__,
        "description": "Conversation history and search store",
        "docs": "/docs",
    }

