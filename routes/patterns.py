"""
Saved search pattern API routes.
"""

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
from typing import Optional
import structlog

from models.pattern import SavedPattern, SavedPatternCreate
from models.queue import PopulateRequest, PopulateResult
from services.saved_pattern_service import get_saved_pattern_service
from services.pattern_populator import get_pattern_populator
from exceptions import (
    AppError,
    PatternNotFoundError,
    PatternNameExistsError
)

logger = structlog.get_logger(__name__)

router = APIRouter()


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    # Unexpected error
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


# ===================
# ROUTES
# ===================

@router.get("", response_model=list[SavedPattern])
async def list_patterns(
    include_inactive: bool = Query(False, description="Include inactive patterns")
):
    """List saved patterns, newest first."""
    try:
        service = get_saved_pattern_service()
        return service.get_all(active_only=not include_inactive)
    except Exception as e:
        return handle_error(e)


@router.post("", response_model=SavedPattern, status_code=201)
async def create_pattern(data: SavedPatternCreate):
    """
    Save a search pattern.

    Raises:
        409: Name already taken
        422: Validation error
    """
    try:
        service = get_saved_pattern_service()
        return service.create(data)
    except PatternNameExistsError as e:
        return handle_error(e)
    except Exception as e:
        return handle_error(e)


@router.delete("/{pattern_id}", status_code=204)
async def delete_pattern(pattern_id: str):
    """
    Delete a saved pattern.

    Raises:
        404: Pattern not found
    """
    try:
        service = get_saved_pattern_service()
        service.delete(pattern_id)
        return None  # 204 No Content
    except PatternNotFoundError as e:
        return handle_error(e)
    except Exception as e:
        return handle_error(e)


@router.post("/{pattern_id}/populate", response_model=PopulateResult)
async def populate_from_pattern(pattern_id: str, data: Optional[PopulateRequest] = None):
    """
    Fill the sync queue from a saved pattern.

    With clear_existing the whole queue is emptied first; otherwise
    products are merged by SKU and direction.

    Raises:
        404: Pattern not found
        422: Pattern has neither a saved search id nor filters
        503: Platform unreachable
    """
    data = data or PopulateRequest()
    try:
        populator = get_pattern_populator()
        return await populator.populate(
            pattern_id,
            clear_existing=data.clear_existing,
            direction=data.sync_direction
        )
    except Exception as e:
        return handle_error(e)
