"""
Unit tests for BulkSyncOrchestrator.

Run: pytest tests/unit/test_bulk_orchestrator.py -v
"""

import pytest

from services.bulk_orchestrator import BulkSyncOrchestrator, partition_by_direction
from services.staging_store import StagingStore
from services.sync_executor import SyncExecutor
from services.sync_history_service import SyncHistoryService
from services.sync_queue_service import SyncQueueService
from models.queue import QueueItem
from models.sync import SyncDirection
from exceptions import SyncTransportError, ValidationError

from tests.factories import QueueItemFactory
from tests.fakes import FakeSyncService

S2T = SyncDirection.SOURCE_TO_TARGET
T2S = SyncDirection.TARGET_TO_SOURCE


@pytest.fixture
def make_orchestrator(mock_db, mock_supabase):
    """Build an orchestrator over seeded queue rows and a fake sync service."""

    def _make(rows: list[dict], responses: dict = None):
        mock_supabase.set_table_data("sync_list", rows)
        service = FakeSyncService(responses)
        queue = SyncQueueService()
        orchestrator = BulkSyncOrchestrator(
            SyncExecutor(service, StagingStore()),
            queue,
            SyncHistoryService()
        )
        items = queue.get_by_ids([row["id"] for row in rows])
        return orchestrator, service, items

    return _make


class TestPartitionByDirection:
    """Tests for partition_by_direction()"""

    def test_groups_in_first_occurrence_order(self):
        """Should order groups by first appearance and keep item order inside a group."""
        # Arrange
        rows = [
            QueueItemFactory.create(id="a", sync_direction=T2S),
            QueueItemFactory.create(id="b", sync_direction=S2T),
            QueueItemFactory.create(id="c", sync_direction=T2S),
        ]
        items = [QueueItem(**row) for row in rows]

        # Act
        groups = partition_by_direction(items)

        # Assert
        assert list(groups) == [T2S, S2T]
        assert [i.id for i in groups[T2S]] == ["a", "c"]


class TestRunBulk:
    """Tests for BulkSyncOrchestrator.run_bulk()"""

    @pytest.mark.asyncio
    async def test_one_call_per_direction(self, make_orchestrator):
        """Should make exactly two remote calls for three items in two directions."""
        # Arrange
        rows = [
            QueueItemFactory.create(id="i1", sync_direction=S2T),
            QueueItemFactory.create(id="i2", sync_direction=S2T),
            QueueItemFactory.create(id="i3", sync_direction=T2S, shopify_product_id="sh-3"),
        ]
        orchestrator, service, items = make_orchestrator(rows)

        # Act
        summary = await orchestrator.run_bulk(items)

        # Assert
        assert [r.direction for r in service.requests] == [S2T, T2S]
        assert [len(r.mappings) for r in service.requests] == [2, 1]
        assert (summary.succeeded, summary.failed) == (3, 0)

    @pytest.mark.asyncio
    async def test_group_failure_is_isolated(self, make_orchestrator, mock_supabase):
        """Should mark the failed group's items failed and still sync the other group."""
        # Arrange
        rows = [
            QueueItemFactory.create(id="i1", sync_direction=S2T, sync_count=2),
            QueueItemFactory.create(id="i2", sync_direction=T2S, sync_count=0),
        ]
        orchestrator, service, items = make_orchestrator(
            rows, {S2T: SyncTransportError("gateway timeout", status=504)}
        )

        # Act
        summary = await orchestrator.run_bulk(items)

        # Assert
        assert len(service.requests) == 2
        assert (summary.succeeded, summary.failed) == (1, 1)
        assert [g.succeeded for g in summary.groups] == [False, True]
        assert summary.groups[0].error == "gateway timeout"

        stored = {row["id"]: row for row in mock_supabase.rows("sync_list")}
        assert stored["i1"]["last_sync_status"] == "failed"
        assert stored["i1"]["last_sync_error"] == "gateway timeout"
        assert stored["i1"]["sync_count"] == 3
        assert stored["i1"]["last_synced_at"] is None
        assert stored["i2"]["last_sync_status"] == "success"
        assert stored["i2"]["sync_count"] == 1
        assert stored["i2"]["last_synced_at"] is not None

    @pytest.mark.asyncio
    async def test_totals_add_up_to_selection(self, make_orchestrator):
        """Should report succeeded + failed equal to the number of selected items."""
        # Arrange
        rows = QueueItemFactory.create_batch(3, sync_direction=S2T) + [
            QueueItemFactory.create(sync_direction=T2S),
            QueueItemFactory.create(sync_direction=SyncDirection.BIDIRECTIONAL),
        ]
        orchestrator, _, items = make_orchestrator(
            rows, {T2S: SyncTransportError("unauthorized", status=401)}
        )

        # Act
        summary = await orchestrator.run_bulk(items)

        # Assert
        assert summary.total == 5
        assert (summary.succeeded, summary.failed) == (4, 1)

    @pytest.mark.asyncio
    async def test_remote_counters_are_aggregated(self, make_orchestrator):
        """Should sum the remote-reported counters over successful groups."""
        # Arrange
        rows = [
            QueueItemFactory.create(sync_direction=S2T),
            QueueItemFactory.create(sync_direction=S2T),
        ]
        orchestrator, _, items = make_orchestrator(rows, {S2T: {
            "itemsProcessed": 2, "itemsSucceeded": 1, "itemsFailed": 1, "errors": ["SKU rejected"],
        }})

        # Act
        summary = await orchestrator.run_bulk(items)

        # Assert
        assert summary.items_processed == 2
        assert summary.items_reported_failed == 1
        assert summary.groups[0].result.items_failed == 1

    @pytest.mark.asyncio
    async def test_history_row_per_group(self, make_orchestrator, mock_supabase):
        """Should write one history row per direction group."""
        # Arrange
        rows = [
            QueueItemFactory.create(sync_direction=S2T),
            QueueItemFactory.create(sync_direction=T2S),
        ]
        orchestrator, _, items = make_orchestrator(rows, {T2S: SyncTransportError("down")})

        # Act
        await orchestrator.run_bulk(items)

        # Assert
        history = mock_supabase.rows("sync_history")
        assert [(h["sync_direction"], h["status"]) for h in history] == [
            (S2T.value, "success"),
            (T2S.value, "failed"),
        ]

    @pytest.mark.asyncio
    async def test_history_failure_does_not_fail_run(self, make_orchestrator, mock_supabase):
        """Should finish the run when the history table is unavailable."""
        # Arrange
        orchestrator, _, items = make_orchestrator([QueueItemFactory.create()])
        mock_supabase.fail_on("sync_history", "insert")

        # Act
        summary = await orchestrator.run_bulk(items)

        # Assert
        assert summary.succeeded == 1

    @pytest.mark.asyncio
    async def test_status_write_failure_is_logged_not_raised(self, make_orchestrator, mock_supabase):
        """Should keep going when a status write-back fails."""
        # Arrange
        orchestrator, service, items = make_orchestrator([
            QueueItemFactory.create(sync_direction=S2T),
            QueueItemFactory.create(sync_direction=T2S),
        ])
        mock_supabase.fail_on("sync_list", "update")

        # Act
        summary = await orchestrator.run_bulk(items)

        # Assert
        assert len(service.requests) == 2
        assert summary.succeeded == 2

    @pytest.mark.asyncio
    async def test_malformed_response_fails_only_its_group(self, make_orchestrator, mock_supabase):
        """Should count an unreadable group response as a group failure and keep going."""
        # Arrange
        rows = [
            QueueItemFactory.create(id="i1", sync_direction=S2T, sync_count=0),
            QueueItemFactory.create(id="i2", sync_direction=T2S, sync_count=0),
        ]
        orchestrator, service, items = make_orchestrator(
            rows, {S2T: {"itemsProcessed": "many"}}
        )

        # Act
        summary = await orchestrator.run_bulk(items)

        # Assert
        assert [r.direction for r in service.requests] == [S2T, T2S]
        assert (summary.succeeded, summary.failed) == (1, 1)
        assert summary.groups[0].error

        stored = {row["id"]: row for row in mock_supabase.rows("sync_list")}
        assert (stored["i1"]["last_sync_status"], stored["i1"]["sync_count"]) == ("failed", 1)
        assert stored["i1"]["last_sync_error"] == summary.groups[0].error
        assert (stored["i2"]["last_sync_status"], stored["i2"]["sync_count"]) == ("success", 1)

    @pytest.mark.asyncio
    async def test_empty_selection_rejected(self, make_orchestrator):
        """Should refuse to run without a selection."""
        orchestrator, service, _ = make_orchestrator([])

        with pytest.raises(ValidationError) as exc_info:
            await orchestrator.run_bulk([])

        assert exc_info.value.code == "BULK_SYNC_EMPTY_SELECTION"
        assert service.requests == []
