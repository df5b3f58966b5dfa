"""
Sync schemas: directions, mappings, sync requests and results.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import Field, field_validator

from models.base import BaseSchema, WireSchema
from models.record import Platform, Record


class SyncDirection(str, Enum):
    """Which platform is authoritative and which way the remote call writes."""
    SOURCE_TO_TARGET = "netsuite-to-shopify"
    TARGET_TO_SOURCE = "shopify-to-netsuite"
    BIDIRECTIONAL = "bidirectional"

    @property
    def authoritative_platform(self) -> Platform:
        """
        Platform whose record set drives matching.

        Bidirectional treats the source side as authoritative (single pass).
        """
        if self is SyncDirection.TARGET_TO_SOURCE:
            return Platform.SHOPIFY
        return Platform.NETSUITE


class SyncAction(str, Enum):
    """Matcher verdict for one authoritative record."""
    CREATE = "create"
    UPDATE = "update"
    SKIP = "skip"


class Mapping(WireSchema):
    """
    Result of matching one authoritative record to zero or one counterpart.

    `source_id` is always the id of the authoritative-side record.
    """

    source_id: str = Field(..., description="Authoritative record id")
    target_id: Optional[str] = Field(None, description="Matched counterpart id")
    action: SyncAction = Field(..., description="create, update or skip")
    conflicts: list[str] = Field(
        default_factory=list,
        description="Field-level discrepancies (reserved, always empty)"
    )


class SyncItemError(WireSchema):
    """One item-level failure reported by the sync service."""

    item_id: Optional[str] = None
    message: str

    @field_validator("item_id", mode="before")
    @classmethod
    def item_id_as_string(cls, v: Any) -> Optional[str]:
        """Platforms report numeric ids; keep them as strings."""
        if v is None:
            return v
        return str(v)


class SyncResult(WireSchema):
    """Outcome of one remote sync call."""

    items_processed: int = Field(..., ge=0, strict=True)
    items_succeeded: int = Field(..., ge=0, strict=True)
    items_failed: int = Field(..., ge=0, strict=True)
    errors: list[SyncItemError] = Field(default_factory=list)

    @field_validator("errors", mode="before")
    @classmethod
    def errors_from_messages(cls, v: Any) -> Any:
        """Accept bare error strings alongside {itemId, message} objects."""
        if v is None:
            return []
        if isinstance(v, list):
            return [{"message": e} if isinstance(e, str) else e for e in v]
        return v

    @property
    def failed_item_ids(self) -> set[str]:
        return {e.item_id for e in self.errors if e.item_id is not None}

    @classmethod
    def empty(cls) -> "SyncResult":
        return cls(items_processed=0, items_succeeded=0, items_failed=0)


class SyncRequest(WireSchema):
    """Payload sent to the sync service."""

    direction: SyncDirection
    mappings: list[Mapping]
    record: Optional[Record] = Field(
        None,
        description="Effective record value (single-item path)"
    )
    records: list[Record] = Field(
        default_factory=list,
        description="Effective values of staged records (batch path)"
    )


class DirectionGroupOutcome(BaseSchema):
    """What happened to one direction group of a bulk run."""

    direction: SyncDirection
    item_ids: list[str]
    succeeded: bool
    result: Optional[SyncResult] = None
    error: Optional[str] = None


class BulkSyncSummary(BaseSchema):
    """
    Totals of one bulk run.

    `succeeded` and `failed` count queue items, so they always add up to
    the number of selected items. The remote-reported counters are kept
    alongside for display.
    """

    succeeded: int = 0
    failed: int = 0
    items_processed: int = 0
    items_reported_failed: int = 0
    groups: list[DirectionGroupOutcome] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return self.succeeded + self.failed


class SyncHistoryStatus(str, Enum):
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"


class SyncHistoryEntry(BaseSchema):
    """One row of the sync_history table."""

    id: Optional[str] = None
    sync_type: str = Field("manual", pattern="^(manual|scheduled|delta|full)$")
    sync_direction: SyncDirection
    items_synced: int = 0
    items_created: int = 0
    items_updated: int = 0
    items_failed: int = 0
    status: SyncHistoryStatus
    error_log: list[Any] = Field(default_factory=list)
    started_at: datetime
    completed_at: Optional[datetime] = None
    duration_seconds: Optional[int] = None
    metadata: dict[str, Any] = Field(default_factory=dict)
