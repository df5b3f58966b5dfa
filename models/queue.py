"""
Sync queue schemas.

A queue item is a persisted intent to keep one record synchronized.
Field names follow the `sync_list` table columns; the properties give
the direction-neutral view used by the orchestration code.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import Field, field_validator

from models.base import BaseSchema, TimestampMixin
from models.record import Platform
from models.sync import Mapping, SyncAction, SyncDirection


class SyncMode(str, Enum):
    DELTA = "delta"
    FULL = "full"


class SyncStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"
    PENDING = "pending"


class QueueItemCreate(BaseSchema):
    """
    Add one record to the sync queue.

    Required: sku, product_name, sync_direction
    """

    sku: str = Field(..., min_length=1, max_length=255, description="Natural key")
    product_name: str = Field(..., min_length=1, description="Display name")
    netsuite_item_id: Optional[str] = Field(None, description="ERP item id")
    shopify_product_id: Optional[str] = Field(None, description="Storefront product id")
    sync_direction: SyncDirection = Field(..., description="Sync direction")
    sync_mode: SyncMode = Field(SyncMode.DELTA, description="delta or full")
    metadata: dict[str, Any] = Field(default_factory=dict)


class QueueItem(BaseSchema, TimestampMixin):
    """One row of the sync queue."""

    id: str = Field(..., description="Queue item UUID")
    sku: str = Field(..., description="Natural key")
    product_name: str = Field(..., description="Display name")
    netsuite_item_id: Optional[str] = None
    shopify_product_id: Optional[str] = None
    sync_direction: SyncDirection
    sync_mode: SyncMode = SyncMode.DELTA
    last_synced_at: Optional[datetime] = None
    last_sync_status: Optional[SyncStatus] = None
    last_sync_error: Optional[str] = None
    sync_count: int = Field(0, ge=0)
    is_active: bool = True
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("sync_count", mode="before")
    @classmethod
    def null_count_is_zero(cls, v: Any) -> int:
        return v or 0

    @field_validator("metadata", mode="before")
    @classmethod
    def null_metadata_is_empty(cls, v: Any) -> dict:
        return v or {}

    @property
    def natural_key(self) -> str:
        return self.sku

    @property
    def direction(self) -> SyncDirection:
        return self.sync_direction

    @property
    def mode(self) -> SyncMode:
        return self.sync_mode

    def platform_id(self, platform: Platform) -> Optional[str]:
        if platform is Platform.NETSUITE:
            return self.netsuite_item_id
        return self.shopify_product_id

    def to_mapping(self) -> Mapping:
        """
        Mapping for this item under its own direction.

        The authoritative side's id falls back to the natural key when the
        item was queued without one.
        """
        authoritative = self.sync_direction.authoritative_platform
        counterpart = (
            Platform.SHOPIFY if authoritative is Platform.NETSUITE else Platform.NETSUITE
        )
        target_id = self.platform_id(counterpart) or None
        return Mapping(
            source_id=self.platform_id(authoritative) or self.sku,
            target_id=target_id,
            action=SyncAction.UPDATE if target_id else SyncAction.CREATE,
        )


class BulkSyncRequest(BaseSchema):
    """Queue item ids selected for a bulk run."""

    item_ids: list[str] = Field(..., min_length=1)


class BulkDeleteRequest(BaseSchema):
    item_ids: list[str] = Field(..., min_length=1)


class PopulateRequest(BaseSchema):
    clear_existing: bool = False
    sync_direction: Optional[SyncDirection] = Field(
        None,
        description="Override the pattern's direction"
    )


class PopulateResult(BaseSchema):
    """
    Outcome of populating the queue from a saved pattern.

    inserted + updated + failed equals the number of expanded records.
    """

    inserted: int = 0
    updated: int = 0
    failed: int = 0

    @property
    def total(self) -> int:
        return self.inserted + self.updated + self.failed
