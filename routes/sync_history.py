"""
Sync history API routes.
"""

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
import structlog

from models.sync import SyncHistoryEntry
from services.sync_history_service import get_sync_history_service
from exceptions import AppError

logger = structlog.get_logger(__name__)

router = APIRouter()


def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(status_code=e.status_code, content=e.to_dict())
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={"error": {"code": "INTERNAL_ERROR", "message": "An unexpected error occurred"}}
    )


@router.get("", response_model=list[SyncHistoryEntry])
async def list_sync_history(limit: int = Query(50, ge=1, le=500, description="Max rows")):
    """Most recent sync runs first."""
    try:
        service = get_sync_history_service()
        return service.get_recent(limit)
    except Exception as e:
        return handle_error(e)
