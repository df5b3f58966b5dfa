"""
Saved search pattern schemas.

A pattern is either a reference to a NetSuite saved search or a set of
filter criteria; both expand into records through the record source.
"""

from typing import Any, Optional

from pydantic import Field

from models.base import BaseSchema, TimestampMixin
from models.sync import SyncDirection


class SavedPatternCreate(BaseSchema):
    """Create a saved search pattern."""

    name: str = Field(..., min_length=1, max_length=120)
    description: Optional[str] = None
    filters: dict[str, Any] = Field(default_factory=dict)
    sync_direction: SyncDirection
    netsuite_saved_search_id: Optional[str] = Field(
        None,
        description="customsearch id or numeric saved search id",
        examples=["customsearch_active_items"]
    )


class SavedPattern(BaseSchema, TimestampMixin):
    """One row of the saved_search_patterns table."""

    id: str
    name: str
    description: Optional[str] = None
    filters: dict[str, Any] = Field(default_factory=dict)
    sync_direction: SyncDirection
    netsuite_saved_search_id: Optional[str] = None
    is_active: bool = True

    @property
    def is_expandable(self) -> bool:
        return bool(self.netsuite_saved_search_id or self.filters)
