"""
Pydantic models for validation and serialization.
"""

from models.base import (
    BaseSchema,
    WireSchema,
    TimestampMixin,
)
from models.record import (
    Platform,
    Record,
    StagedRecord,
)
from models.sync import (
    SyncDirection,
    SyncAction,
    Mapping,
    SyncItemError,
    SyncResult,
    SyncRequest,
    DirectionGroupOutcome,
    BulkSyncSummary,
    SyncHistoryStatus,
    SyncHistoryEntry,
)
from models.queue import (
    SyncMode,
    SyncStatus,
    QueueItemCreate,
    QueueItem,
    BulkSyncRequest,
    BulkDeleteRequest,
    PopulateRequest,
    PopulateResult,
)
from models.pattern import (
    SavedPatternCreate,
    SavedPattern,
)
from models.preview import (
    PreviewStats,
    SyncPreview,
    SelectionSyncRequest,
    StageRequest,
)

__all__ = [
    # Base
    "BaseSchema",
    "WireSchema",
    "TimestampMixin",

    # Records
    "Platform",
    "Record",
    "StagedRecord",

    # Sync
    "SyncDirection",
    "SyncAction",
    "Mapping",
    "SyncItemError",
    "SyncResult",
    "SyncRequest",
    "DirectionGroupOutcome",
    "BulkSyncSummary",
    "SyncHistoryStatus",
    "SyncHistoryEntry",

    # Queue
    "SyncMode",
    "SyncStatus",
    "QueueItemCreate",
    "QueueItem",
    "BulkSyncRequest",
    "BulkDeleteRequest",
    "PopulateRequest",
    "PopulateResult",

    # Patterns
    "SavedPatternCreate",
    "SavedPattern",

    # Preview
    "PreviewStats",
    "SyncPreview",
    "SelectionSyncRequest",
    "StageRequest",
]
