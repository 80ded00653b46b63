"""
Health Check Routes

FastAPI endpoints for service health checks.
"""

import logging
from datetime import UTC, datetime

from fastapi import APIRouter, status

from dialogue_store import __version__
from dialogue_store.api.models import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health", response_model=HealthResponse, status_code=status.HTTP_200_OK)
async def health() -> HealthResponse:
    """
    Basic liveness check.

    Returns 200 OK if the service is running, with the backend in use when
    the store has been initialized.
    """
    from dialogue_store.api.main import app_state

    store = app_state.get("store")
    return HealthResponse(
        status="healthy",
        version=__version__,
        timestamp=datetime.now(UTC).isoformat(),
        backend=store.kv.backend_name if store is not None else None,
    )
