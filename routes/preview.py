"""
Product sync preview API routes.

Load both platforms side by side, then sync the selection or one record.
Syncing always reloads the preview so mappings are regenerated from the
latest fetch, never patched.
"""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
import structlog

from models.preview import SelectionSyncRequest, SyncPreview
from models.sync import SyncDirection, SyncResult
from services.sync_preview_service import SyncPreviewService
from routes.dependencies import get_preview_service
from exceptions import AppError

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

@router.get("", response_model=SyncPreview)
async def get_preview(
    direction: SyncDirection = Query(SyncDirection.SOURCE_TO_TARGET, description="Sync direction"),
    service: SyncPreviewService = Depends(get_preview_service)
):
    """
    Fetch both platforms and match them.

    Every mapping is selected by default.

    Raises:
        503: A platform could not be fetched
    """
    try:
        return await service.load_preview(direction)
    except Exception as e:
        return handle_error(e)


@router.post("/sync", response_model=SyncResult)
async def sync_selected(
    data: SelectionSyncRequest,
    service: SyncPreviewService = Depends(get_preview_service)
):
    """
    Sync the selected products in one batch.

    Deselected products are skipped.

    Raises:
        422: Nothing selected
        502: Sync service answered with an unexpected shape
        503: Sync service unreachable
    """
    try:
        preview = await service.load_preview(data.direction)
        return await service.sync_selected(preview, data.selected_ids)
    except Exception as e:
        return handle_error(e)


@router.post("/records/{record_id}/sync", response_model=SyncResult)
async def sync_record(
    record_id: str,
    direction: SyncDirection = Query(SyncDirection.SOURCE_TO_TARGET, description="Sync direction"),
    service: SyncPreviewService = Depends(get_preview_service)
):
    """
    Sync one product, using its staged edit if there is one.

    Raises:
        404: Record not on the authoritative side
        503: Sync service unreachable
    """
    try:
        preview = await service.load_preview(direction)
        return await service.sync_record(preview, record_id)
    except Exception as e:
        return handle_error(e)
