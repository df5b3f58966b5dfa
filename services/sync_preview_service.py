"""
Product sync preview.

Fetches both platforms, matches them, and syncs what the user selected.
Every fetched record is registered with the staging store so pending
edits resolve against the latest fetched values.
"""

from typing import Any, Iterable, Optional

import structlog

from exceptions import RecordNotFoundError, ValidationError
from integrations.base import RecordSource
from models.preview import SyncPreview
from models.record import Platform
from models.sync import SyncDirection, SyncResult
from services import record_matcher
from services.staging_store import StagingStore
from services.sync_executor import SyncExecutor

logger = structlog.get_logger(__name__)


class SyncPreviewService:
    """Preview and selective sync of matched products."""

    def __init__(
        self,
        record_source: RecordSource,
        executor: SyncExecutor,
        staging_store: StagingStore
    ):
        self.record_source = record_source
        self.executor = executor
        self.staging = staging_store

    async def load_preview(
        self,
        direction: SyncDirection = SyncDirection.SOURCE_TO_TARGET,
        filters: Optional[dict[str, Any]] = None
    ) -> SyncPreview:
        """
        Fetch both platforms and build mappings.

        Every mapping starts out selected, in mapping order.

        Raises:
            SyncTransportError: If either platform cannot be fetched
        """
        source_records = await self.record_source.fetch_records(Platform.NETSUITE, filters)
        target_records = await self.record_source.fetch_records(Platform.SHOPIFY, filters)

        self.staging.load(source_records)
        self.staging.load(target_records)

        mappings = record_matcher.match(source_records, target_records, direction)
        selected_ids = [m.source_id for m in mappings]

        preview = SyncPreview(
            direction=direction,
            source_records=source_records,
            target_records=target_records,
            mappings=mappings,
            selected_ids=selected_ids,
            stats=record_matcher.summarize(mappings, selected_ids),
        )

        logger.info(
            "sync_preview_loaded",
            direction=direction.value,
            source=len(source_records),
            target=len(target_records),
            to_create=preview.stats.to_create,
            to_update=preview.stats.to_update
        )
        return preview

    async def sync_selected(self, preview: SyncPreview, selected_ids: Iterable[str]) -> SyncResult:
        """
        Sync the selected mappings of a preview in one batch.

        Deselected mappings become `skip` and are not transmitted.

        Raises:
            ValidationError: If nothing was selected
        """
        selected = list(selected_ids)
        if not selected:
            raise ValidationError(
                message="Select at least one product to sync",
                code="PREVIEW_EMPTY_SELECTION"
            )

        mappings = record_matcher.apply_selection(preview.mappings, selected)
        return await self.executor.sync_batch(mappings, preview.direction)

    async def sync_record(self, preview: SyncPreview, record_id: str) -> SyncResult:
        """
        Sync one previewed record through the single-item path.

        Raises:
            RecordNotFoundError: If the record is not on the authoritative side
        """
        mapping = preview.mapping_for(record_id)
        record = next((r for r in preview.authoritative_records() if r.id == record_id), None)
        if mapping is None or record is None:
            raise RecordNotFoundError(record_id)

        return await self.executor.sync_one(mapping, record, preview.direction)
