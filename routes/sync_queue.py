"""
Sync queue API routes.

Queue CRUD plus the direction-grouped bulk sync.
"""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from typing import Optional
import structlog

from models.queue import (
    BulkDeleteRequest,
    BulkSyncRequest,
    QueueItem,
    QueueItemCreate,
)
from models.sync import BulkSyncSummary, SyncDirection
from services.bulk_orchestrator import BulkSyncOrchestrator
from services.sync_queue_service import get_sync_queue_service
from routes.dependencies import get_bulk_orchestrator
from exceptions import (
    AppError,
    QueueItemNotFoundError,
    QueueItemExistsError
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

@router.get("", response_model=list[QueueItem])
async def list_queue(
    direction: Optional[SyncDirection] = Query(None, description="Filter by direction"),
    include_inactive: bool = Query(False, description="Include inactive items")
):
    """List queue items, newest first."""
    try:
        service = get_sync_queue_service()
        return service.get_all(direction=direction, active_only=not include_inactive)
    except Exception as e:
        return handle_error(e)


@router.post("", response_model=QueueItem, status_code=201)
async def add_to_queue(data: QueueItemCreate):
    """
    Add one product to the queue.

    Raises:
        409: SKU already queued for this direction
        422: Validation error
    """
    try:
        service = get_sync_queue_service()
        return service.create(data)
    except QueueItemExistsError as e:
        return handle_error(e)
    except Exception as e:
        return handle_error(e)


@router.delete("/{item_id}", status_code=204)
async def remove_from_queue(item_id: str):
    """
    Remove one product from the queue.

    Raises:
        404: Queue item not found
    """
    try:
        service = get_sync_queue_service()
        service.delete(item_id)
        return None  # 204 No Content
    except QueueItemNotFoundError as e:
        return handle_error(e)
    except Exception as e:
        return handle_error(e)


@router.post("/bulk-delete")
async def bulk_remove_from_queue(data: BulkDeleteRequest):
    """Remove several products. Unknown ids are ignored."""
    try:
        service = get_sync_queue_service()
        removed = service.bulk_delete(data.item_ids)
        return {"removed": removed}
    except Exception as e:
        return handle_error(e)


@router.post("/{item_id}/toggle-mode", response_model=QueueItem)
async def toggle_sync_mode(item_id: str):
    """
    Switch an item between delta and full sync.

    Raises:
        404: Queue item not found
    """
    try:
        service = get_sync_queue_service()
        return service.toggle_mode(item_id)
    except QueueItemNotFoundError as e:
        return handle_error(e)
    except Exception as e:
        return handle_error(e)


# ===================
# BULK SYNC
# ===================

@router.post("/bulk-sync", response_model=BulkSyncSummary)
async def bulk_sync(
    data: BulkSyncRequest,
    orchestrator: BulkSyncOrchestrator = Depends(get_bulk_orchestrator)
):
    """
    Sync the selected queue items, one remote call per direction.

    A direction whose call fails marks its items failed; the other
    directions still run.

    Raises:
        404: A selected item does not exist
        502: Sync service answered with an unexpected shape
    """
    try:
        service = get_sync_queue_service()
        items = service.get_by_ids(data.item_ids)
        summary = await orchestrator.run_bulk(items)

        logger.info(
            "bulk_sync_request_completed",
            requested=len(data.item_ids),
            succeeded=summary.succeeded,
            failed=summary.failed
        )
        return summary
    except Exception as e:
        return handle_error(e)
