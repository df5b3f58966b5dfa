"""
Product sync preview schemas.
"""

from typing import Any, Optional

from pydantic import Field

from models.base import BaseSchema
from models.record import Record
from models.sync import Mapping, SyncDirection


class PreviewStats(BaseSchema):
    """Counts over the currently selected mappings."""

    to_create: int = 0
    to_update: int = 0
    total: int = 0


class SyncPreview(BaseSchema):
    """Both record sets, their mappings and the default selection."""

    direction: SyncDirection
    source_records: list[Record] = Field(default_factory=list)
    target_records: list[Record] = Field(default_factory=list)
    mappings: list[Mapping] = Field(default_factory=list)
    selected_ids: list[str] = Field(default_factory=list)
    stats: PreviewStats = Field(default_factory=PreviewStats)

    def authoritative_records(self) -> list[Record]:
        if self.direction is SyncDirection.TARGET_TO_SOURCE:
            return self.target_records
        return self.source_records

    def mapping_for(self, record_id: str) -> Optional[Mapping]:
        for mapping in self.mappings:
            if mapping.source_id == record_id:
                return mapping
        return None


class SelectionSyncRequest(BaseSchema):
    """Sync the selected mappings of a freshly loaded preview."""

    direction: SyncDirection = SyncDirection.SOURCE_TO_TARGET
    selected_ids: list[str] = Field(..., min_length=1)


class StageRequest(BaseSchema):
    """Pending edit for one record."""

    pending_changes: dict[str, Any] = Field(..., min_length=1)
