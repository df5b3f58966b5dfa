"""
Staged edit API routes.

Pending edits stay local until the record is synced successfully.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
import structlog

from models.preview import StageRequest
from models.record import StagedRecord
from services.staging_store import StagingStore
from routes.dependencies import get_staging_store
from exceptions import AppError, RecordNotFoundError

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


@router.get("", response_model=list[StagedRecord])
async def list_staged(staging: StagingStore = Depends(get_staging_store)):
    """List staged edits in staging order."""
    return staging.list_staged()


@router.get("/{record_id}", response_model=StagedRecord)
async def get_staged(record_id: str, staging: StagingStore = Depends(get_staging_store)):
    """
    Get the staged edit for a record.

    Raises:
        404: Nothing staged for this record
    """
    try:
        staged = staging.get_staged(record_id)
        if staged is None:
            raise RecordNotFoundError(record_id)
        return staged
    except Exception as e:
        return handle_error(e)


@router.put("/{record_id}", response_model=StagedRecord)
async def stage_record(
    record_id: str,
    data: StageRequest,
    staging: StagingStore = Depends(get_staging_store)
):
    """
    Stage an edit, replacing any earlier edit for the record.

    The record must have been loaded by a preview first.

    Raises:
        404: Record unknown
        422: Edit touches identity fields or carries invalid values
    """
    try:
        record = staging.get_record(record_id)
        return staging.stage(record, data.pending_changes)
    except Exception as e:
        return handle_error(e)


@router.delete("/{record_id}", status_code=204)
async def unstage_record(record_id: str, staging: StagingStore = Depends(get_staging_store)):
    """
    Discard the staged edit for a record.

    Raises:
        404: Nothing staged for this record
    """
    try:
        if not staging.unstage(record_id):
            raise RecordNotFoundError(record_id)
        return None
    except Exception as e:
        return handle_error(e)
