"""
Business logic services.

Each service handles one domain area.
"""

from services import record_matcher
from services.staging_store import StagingStore
from services.sync_executor import SyncExecutor, parse_sync_result
from services.sync_queue_service import SyncQueueService, get_sync_queue_service
from services.saved_pattern_service import SavedPatternService, get_saved_pattern_service
from services.sync_history_service import SyncHistoryService, get_sync_history_service
from services.bulk_orchestrator import BulkSyncOrchestrator, partition_by_direction
from services.pattern_populator import PatternPopulator, get_pattern_populator
from services.sync_preview_service import SyncPreviewService

__all__ = [
    "record_matcher",
    "StagingStore",
    "SyncExecutor",
    "parse_sync_result",
    "SyncQueueService",
    "get_sync_queue_service",
    "SavedPatternService",
    "get_saved_pattern_service",
    "SyncHistoryService",
    "get_sync_history_service",
    "BulkSyncOrchestrator",
    "partition_by_direction",
    "PatternPopulator",
    "get_pattern_populator",
    "SyncPreviewService",
]
