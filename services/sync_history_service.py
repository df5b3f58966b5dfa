"""
Sync history service.

One row per direction group of a bulk run in `sync_history`.
"""

from typing import Optional

import structlog

from config import get_supabase_client
from models.sync import SyncHistoryEntry
from exceptions import DatabaseError

logger = structlog.get_logger(__name__)


class SyncHistoryService:
    """Sync history persistence."""

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "sync_history"

    def record(self, entry: SyncHistoryEntry) -> SyncHistoryEntry:
        """Insert a history row and return it as stored."""
        logger.info(
            "recording_sync_history",
            direction=entry.sync_direction.value,
            status=entry.status.value,
            items_synced=entry.items_synced,
            items_failed=entry.items_failed
        )

        try:
            result = (
                self.db.table(self.table)
                .insert(entry.model_dump(mode="json", exclude={"id"}))
                .execute()
            )
        except Exception as e:
            logger.error("record_sync_history_failed", error=str(e))
            raise DatabaseError("insert", str(e))

        return SyncHistoryEntry(**result.data[0])

    def get_recent(self, limit: int = 50) -> list[SyncHistoryEntry]:
        """Most recent runs first."""
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .order("started_at", desc=True)
                .limit(limit)
                .execute()
            )
        except Exception as e:
            logger.error("get_sync_history_failed", error=str(e))
            raise DatabaseError("select", str(e))

        return [SyncHistoryEntry(**row) for row in result.data]


# Singleton instance for convenience
_sync_history_service: Optional[SyncHistoryService] = None


def get_sync_history_service() -> SyncHistoryService:
    """Get or create SyncHistoryService instance."""
    global _sync_history_service
    if _sync_history_service is None:
        _sync_history_service = SyncHistoryService()
    return _sync_history_service
