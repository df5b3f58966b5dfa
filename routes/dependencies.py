"""
Request dependencies for the sync routes.

The staging store lives on `app.state` for the life of the process and is
handed to the executor and routes through FastAPI's dependency injection.
Tests swap collaborators with `app.dependency_overrides`.
"""

from fastapi import Depends, Request

from integrations.base import RecordSource, SyncService
from integrations.edge_functions import get_edge_functions_client
from services.bulk_orchestrator import BulkSyncOrchestrator
from services.staging_store import StagingStore
from services.sync_executor import SyncExecutor
from services.sync_history_service import get_sync_history_service
from services.sync_preview_service import SyncPreviewService
from services.sync_queue_service import get_sync_queue_service


def get_staging_store(request: Request) -> StagingStore:
    return request.app.state.staging_store


def get_record_source() -> RecordSource:
    return get_edge_functions_client()


def get_sync_service() -> SyncService:
    return get_edge_functions_client()


def get_sync_executor(
    sync_service: SyncService = Depends(get_sync_service),
    staging: StagingStore = Depends(get_staging_store)
) -> SyncExecutor:
    return SyncExecutor(sync_service, staging)


def get_preview_service(
    record_source: RecordSource = Depends(get_record_source),
    executor: SyncExecutor = Depends(get_sync_executor),
    staging: StagingStore = Depends(get_staging_store)
) -> SyncPreviewService:
    return SyncPreviewService(record_source, executor, staging)


def get_bulk_orchestrator(
    executor: SyncExecutor = Depends(get_sync_executor)
) -> BulkSyncOrchestrator:
    return BulkSyncOrchestrator(executor, get_sync_queue_service(), get_sync_history_service())
