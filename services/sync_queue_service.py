"""
Sync queue service.

Persists queue items in the `sync_list` table. Natural key and direction
together identify an item for upserts.
"""

from datetime import datetime, timezone
from typing import Any, Optional

import structlog

from config import get_supabase_client
from models.queue import QueueItem, QueueItemCreate, SyncMode, SyncStatus
from models.sync import SyncDirection
from exceptions import (
    QueueItemNotFoundError,
    QueueItemExistsError,
    DatabaseError
)

logger = structlog.get_logger(__name__)

# Matches every row; PostgREST refuses an unfiltered delete
_NIL_UUID = "00000000-0000-0000-0000-000000000000"


class SyncQueueService:
    """
    Sync queue persistence.

    Handles CRUD and post-sync status write-back for queue items.
    """

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "sync_list"

    # ===================
    # READ OPERATIONS
    # ===================

    def get_all(
        self,
        direction: Optional[SyncDirection] = None,
        active_only: bool = True
    ) -> list[QueueItem]:
        """
        Get queue items, newest first.

        Args:
            direction: Only items with this sync direction
            active_only: Only active items

        Returns:
            List of QueueItem
        """
        logger.info(
            "getting_queue_items",
            direction=direction.value if direction else None,
            active_only=active_only
        )

        try:
            query = self.db.table(self.table).select("*")

            if active_only:
                query = query.eq("is_active", True)
            if direction:
                query = query.eq("sync_direction", direction.value)

            result = query.order("created_at", desc=True).execute()

            items = [QueueItem(**row) for row in result.data]
            logger.info("queue_items_retrieved", count=len(items))
            return items

        except Exception as e:
            logger.error("get_queue_items_failed", error=str(e))
            raise DatabaseError("select", str(e))

    def get_by_id(self, item_id: str) -> QueueItem:
        """
        Get a single queue item.

        Raises:
            QueueItemNotFoundError: If the item doesn't exist
        """
        logger.debug("getting_queue_item", item_id=item_id)

        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("id", item_id)
                .execute()
            )
        except Exception as e:
            logger.error("get_queue_item_failed", item_id=item_id, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            raise QueueItemNotFoundError(item_id)
        return QueueItem(**result.data[0])

    def get_by_ids(self, item_ids: list[str]) -> list[QueueItem]:
        """
        Get queue items in the order the ids were given.

        Duplicate ids collapse to their first occurrence.

        Raises:
            QueueItemNotFoundError: For the first id that doesn't exist
        """
        if not item_ids:
            return []

        logger.debug("getting_queue_items_by_ids", count=len(item_ids))

        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .in_("id", item_ids)
                .execute()
            )
        except Exception as e:
            logger.error("get_queue_items_by_ids_failed", count=len(item_ids), error=str(e))
            raise DatabaseError("select", str(e))

        by_id = {row["id"]: QueueItem(**row) for row in result.data}
        ordered = []
        for item_id in dict.fromkeys(item_ids):
            if item_id not in by_id:
                raise QueueItemNotFoundError(item_id)
            ordered.append(by_id[item_id])
        return ordered

    def get_by_key(self, natural_key: str, direction: SyncDirection) -> Optional[QueueItem]:
        """
        Get the queue item for a natural key and direction.

        Returns:
            QueueItem or None if not queued
        """
        logger.debug("getting_queue_item_by_key", sku=natural_key, direction=direction.value)

        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("sku", natural_key)
                .eq("sync_direction", direction.value)
                .execute()
            )
        except Exception as e:
            logger.error("get_queue_item_by_key_failed", sku=natural_key, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            return None
        return QueueItem(**result.data[0])

    # ===================
    # WRITE OPERATIONS
    # ===================

    def create(self, data: QueueItemCreate) -> QueueItem:
        """
        Add a record to the queue.

        Raises:
            QueueItemExistsError: If the natural key is already queued for this direction
        """
        logger.info("creating_queue_item", sku=data.sku, direction=data.sync_direction.value)

        if self.get_by_key(data.sku, data.sync_direction):
            raise QueueItemExistsError(data.sku, data.sync_direction.value)

        insert_data = {
            **data.model_dump(mode="json"),
            "sync_count": 0,
            "is_active": True,
        }

        try:
            result = self.db.table(self.table).insert(insert_data).execute()
        except Exception as e:
            logger.error("create_queue_item_failed", sku=data.sku, error=str(e))
            raise DatabaseError("insert", str(e))

        item = QueueItem(**result.data[0])
        logger.info("queue_item_created", item_id=item.id, sku=item.sku)
        return item

    def update(self, item_id: str, fields: dict[str, Any]) -> QueueItem:
        """
        Update selected columns of a queue item.

        Raises:
            QueueItemNotFoundError: If the item doesn't exist
        """
        update_data = {**fields, "updated_at": datetime.now(timezone.utc).isoformat()}

        try:
            result = (
                self.db.table(self.table)
                .update(update_data)
                .eq("id", item_id)
                .execute()
            )
        except Exception as e:
            logger.error("update_queue_item_failed", item_id=item_id, error=str(e))
            raise DatabaseError("update", str(e))

        if not result.data:
            raise QueueItemNotFoundError(item_id)

        logger.debug("queue_item_updated", item_id=item_id, fields=sorted(fields.keys()))
        return QueueItem(**result.data[0])

    def record_attempt(
        self,
        item: QueueItem,
        status: SyncStatus,
        error: Optional[str] = None,
        attempted_at: Optional[datetime] = None
    ) -> QueueItem:
        """
        Write back the outcome of one sync attempt.

        Every attempt bumps sync_count by one. Only a successful attempt
        moves last_synced_at.

        Args:
            item: Queue item as selected for the run
            status: SUCCESS or FAILED
            error: Failure message (cleared on success)
            attempted_at: Attempt time, defaults to now
        """
        fields: dict[str, Any] = {
            "last_sync_status": status.value,
            "last_sync_error": error if status is SyncStatus.FAILED else None,
            "sync_count": item.sync_count + 1,
        }
        if status is SyncStatus.SUCCESS:
            fields["last_synced_at"] = (attempted_at or datetime.now(timezone.utc)).isoformat()

        return self.update(item.id, fields)

    def toggle_mode(self, item_id: str) -> QueueItem:
        """Switch an item between delta and full sync."""
        item = self.get_by_id(item_id)
        new_mode = SyncMode.FULL if item.sync_mode is SyncMode.DELTA else SyncMode.DELTA

        logger.info("toggling_sync_mode", item_id=item_id, mode=new_mode.value)
        return self.update(item_id, {"sync_mode": new_mode.value})

    def delete(self, item_id: str) -> bool:
        """
        Remove an item from the queue.

        Raises:
            QueueItemNotFoundError: If the item doesn't exist
        """
        logger.info("deleting_queue_item", item_id=item_id)

        try:
            result = self.db.table(self.table).delete().eq("id", item_id).execute()
        except Exception as e:
            logger.error("delete_queue_item_failed", item_id=item_id, error=str(e))
            raise DatabaseError("delete", str(e))

        if not result.data:
            raise QueueItemNotFoundError(item_id)

        logger.info("queue_item_deleted", item_id=item_id)
        return True

    def bulk_delete(self, item_ids: list[str]) -> int:
        """Remove several items. Unknown ids are ignored. Returns rows removed."""
        if not item_ids:
            return 0

        logger.info("bulk_deleting_queue_items", count=len(item_ids))

        try:
            result = self.db.table(self.table).delete().in_("id", item_ids).execute()
        except Exception as e:
            logger.error("bulk_delete_queue_items_failed", count=len(item_ids), error=str(e))
            raise DatabaseError("delete", str(e))

        removed = len(result.data or [])
        logger.info("queue_items_bulk_deleted", removed=removed)
        return removed

    def clear(self) -> int:
        """Remove every queue item. Returns rows removed."""
        logger.info("clearing_sync_queue")

        try:
            result = self.db.table(self.table).delete().neq("id", _NIL_UUID).execute()
        except Exception as e:
            logger.error("clear_sync_queue_failed", error=str(e))
            raise DatabaseError("delete", str(e))

        removed = len(result.data or [])
        logger.info("sync_queue_cleared", removed=removed)
        return removed


# Singleton instance for convenience
_sync_queue_service: Optional[SyncQueueService] = None


def get_sync_queue_service() -> SyncQueueService:
    """Get or create SyncQueueService instance."""
    global _sync_queue_service
    if _sync_queue_service is None:
        _sync_queue_service = SyncQueueService()
    return _sync_queue_service
