"""
Bulk sync orchestrator.

Runs a bulk sync over selected queue items:

    1. Partition the items by sync direction, groups ordered by the first
       occurrence of each direction in the selection.
    2. One sync_batch call per group, strictly one group at a time.
    3. Group call completed: every item gets status success, a new
       last_synced_at and sync_count + 1.
    4. Group call raised (transport failure or an unreadable response):
       every item gets status failed and sync_count + 1. The remaining
       groups still run.
    5. Totals are summed over the groups; succeeded + failed always equals
       the number of selected items.

There is no re-entrancy guard. Callers must not start a second run while
one is in flight.
"""

from datetime import datetime, timezone
from typing import Optional

import structlog

from exceptions import AppError, ValidationError
from models.queue import QueueItem, SyncStatus
from models.sync import (
    BulkSyncSummary,
    DirectionGroupOutcome,
    SyncDirection,
    SyncHistoryEntry,
    SyncHistoryStatus,
)
from services.sync_executor import SyncExecutor
from services.sync_history_service import SyncHistoryService
from services.sync_queue_service import SyncQueueService

logger = structlog.get_logger(__name__)


def partition_by_direction(items: list[QueueItem]) -> dict[SyncDirection, list[QueueItem]]:
    """
    Group items by direction.

    Group order is the order in which each direction first appears; items
    keep their selection order inside a group.
    """
    groups: dict[SyncDirection, list[QueueItem]] = {}
    for item in items:
        groups.setdefault(item.sync_direction, []).append(item)
    return groups


class BulkSyncOrchestrator:
    """
    Direction-grouped bulk sync of queue items.

    Args:
        executor: Sync executor used for every group call
        queue_service: Queue store receiving per-item status write-back
        history_service: Optional history store, one row per group
    """

    def __init__(
        self,
        executor: SyncExecutor,
        queue_service: SyncQueueService,
        history_service: Optional[SyncHistoryService] = None
    ):
        self.executor = executor
        self.queue = queue_service
        self.history = history_service

    async def run_bulk(self, selected_items: list[QueueItem]) -> BulkSyncSummary:
        """
        Sync the selected queue items.

        Args:
            selected_items: Queue items chosen by the user

        Returns:
            BulkSyncSummary with item-level totals and one outcome per group

        Raises:
            ValidationError: If nothing was selected
        """
        if not selected_items:
            raise ValidationError(
                message="Select at least one item to sync",
                code="BULK_SYNC_EMPTY_SELECTION"
            )

        groups = partition_by_direction(selected_items)
        summary = BulkSyncSummary()

        logger.info(
            "bulk_sync_started",
            items=len(selected_items),
            groups=[d.value for d in groups]
        )

        for direction, items in groups.items():
            outcome = await self._run_group(direction, items)
            summary.groups.append(outcome)

            if outcome.succeeded:
                summary.succeeded += len(items)
                summary.items_processed += outcome.result.items_processed
                summary.items_reported_failed += outcome.result.items_failed
            else:
                summary.failed += len(items)

        logger.info(
            "bulk_sync_completed",
            succeeded=summary.succeeded,
            failed=summary.failed,
            items_processed=summary.items_processed,
            items_reported_failed=summary.items_reported_failed
        )
        return summary

    # ===================
    # GROUPS
    # ===================

    async def _run_group(self, direction: SyncDirection, items: list[QueueItem]) -> DirectionGroupOutcome:
        started_at = datetime.now(timezone.utc)
        item_ids = [item.id for item in items]
        mappings = [item.to_mapping() for item in items]

        logger.info("bulk_sync_group_started", direction=direction.value, items=len(items))

        try:
            result = await self.executor.sync_batch(mappings, direction)
        except AppError as e:
            logger.error(
                "bulk_sync_group_failed",
                direction=direction.value,
                items=len(items),
                error=e.message,
                code=e.code
            )
            self._write_back(items, SyncStatus.FAILED, error=e.message)
            outcome = DirectionGroupOutcome(
                direction=direction,
                item_ids=item_ids,
                succeeded=False,
                error=e.message
            )
        else:
            self._write_back(items, SyncStatus.SUCCESS, attempted_at=datetime.now(timezone.utc))
            outcome = DirectionGroupOutcome(
                direction=direction,
                item_ids=item_ids,
                succeeded=True,
                result=result
            )

        self._record_history(outcome, started_at)
        return outcome

    def _write_back(
        self,
        items: list[QueueItem],
        status: SyncStatus,
        error: Optional[str] = None,
        attempted_at: Optional[datetime] = None
    ) -> None:
        """Per-item status write-back, in group order."""
        for item in items:
            try:
                self.queue.record_attempt(item, status, error=error, attempted_at=attempted_at)
            except AppError as e:
                logger.error(
                    "bulk_sync_status_write_failed",
                    item_id=item.id,
                    status=status.value,
                    error=e.message
                )

    def _record_history(self, outcome: DirectionGroupOutcome, started_at: datetime) -> None:
        if self.history is None:
            return

        completed_at = datetime.now(timezone.utc)
        result = outcome.result

        if not outcome.succeeded:
            status = SyncHistoryStatus.FAILED
            error_log = [outcome.error]
        elif result.items_failed:
            status = SyncHistoryStatus.PARTIAL
            error_log = [e.model_dump(by_alias=True) for e in result.errors]
        else:
            status = SyncHistoryStatus.SUCCESS
            error_log = []

        entry = SyncHistoryEntry(
            sync_type="manual",
            sync_direction=outcome.direction,
            items_synced=result.items_succeeded if result else 0,
            items_failed=result.items_failed if result else len(outcome.item_ids),
            status=status,
            error_log=error_log,
            started_at=started_at,
            completed_at=completed_at,
            duration_seconds=int((completed_at - started_at).total_seconds()),
            metadata={"queue_item_ids": outcome.item_ids},
        )

        try:
            self.history.record(entry)
        except AppError as e:
            logger.warning("bulk_sync_history_write_failed", direction=outcome.direction.value, error=e.message)
