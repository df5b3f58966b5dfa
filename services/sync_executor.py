"""
Sync executor.

Sends one record or a batch of mappings to the sync service for a
direction and reconciles the per-item outcome with the staging store.

Failure policy:
    - A transport failure is raised as SyncTransportError, one error for
      the whole call. Nothing is retried here; the bulk orchestrator or the
      user decides whether to try again.
    - Item failures reported inside a completed call stay in the result
      (`items_failed`, `errors`) and never raise.
    - A response that does not look like a sync result raises
      MalformedSyncResponseError.
"""

from typing import Any

import structlog
from pydantic import ValidationError as PydanticValidationError

from exceptions import MalformedSyncResponseError
from integrations.base import SyncService
from models.record import Record
from models.sync import Mapping, SyncAction, SyncDirection, SyncRequest, SyncResult
from services.staging_store import StagingStore

logger = structlog.get_logger(__name__)


def parse_sync_result(body: Any) -> SyncResult:
    """
    Validate a raw sync response.

    Raises:
        MalformedSyncResponseError: Missing or non-integer counts, bad errors list
    """
    if not isinstance(body, dict):
        raise MalformedSyncResponseError("Sync response is not an object")
    try:
        return SyncResult.model_validate(body)
    except PydanticValidationError as e:
        raise MalformedSyncResponseError(
            "Sync response has an unexpected shape",
            details={"errors": [f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in e.errors()]}
        ) from e


class SyncExecutor:
    """
    Single-item and batch sync through the sync service.

    The staging store is injected so successful syncs can clear the
    overlays of the records they transmitted.
    """

    def __init__(self, sync_service: SyncService, staging_store: StagingStore):
        self.sync_service = sync_service
        self.staging = staging_store

    # ===================
    # SINGLE ITEM
    # ===================

    async def sync_one(
        self,
        mapping: Mapping,
        record: Record,
        direction: SyncDirection
    ) -> SyncResult:
        """
        Sync one record.

        The transmitted value is the record's effective value: its staged
        patch merged over it when one exists.

        Args:
            mapping: Matcher verdict for the record
            record: Base record (authoritative side)
            direction: Sync direction

        Returns:
            SyncResult of the call

        Raises:
            SyncTransportError: If the remote call cannot complete
            MalformedSyncResponseError: If the response is not a sync result
        """
        staged = self.staging.get_staged(record.id)
        effective = staged.effective() if staged else record

        logger.info(
            "sync_one_started",
            record_id=record.id,
            action=mapping.action.value,
            direction=direction.value,
            staged=staged is not None
        )

        request = SyncRequest(direction=direction, mappings=[mapping], record=effective)
        body = await self.sync_service.sync(request)
        result = parse_sync_result(body)

        if result.items_failed == 0 and record.id not in result.failed_item_ids:
            self.staging.clear([record.id])
            logger.info("sync_one_succeeded", record_id=record.id)
        else:
            logger.warning(
                "sync_one_item_failed",
                record_id=record.id,
                errors=[e.message for e in result.errors]
            )

        return result

    # ===================
    # BATCH
    # ===================

    async def sync_batch(self, mappings: list[Mapping], direction: SyncDirection) -> SyncResult:
        """
        Sync a batch of mappings in one remote call.

        `skip` mappings are not transmitted; when nothing is left no call is
        made. Effective values of staged records ride along in `records`.

        Raises:
            SyncTransportError: If the remote call cannot complete
            MalformedSyncResponseError: If the response is not a sync result
        """
        to_send = [m for m in mappings if m.action is not SyncAction.SKIP]
        if not to_send:
            logger.info("sync_batch_nothing_to_send", direction=direction.value)
            return SyncResult.empty()

        staged_values = [
            self.staging.get_effective(m.source_id)
            for m in to_send
            if self.staging.is_staged(m.source_id)
        ]

        logger.info(
            "sync_batch_started",
            direction=direction.value,
            mappings=len(to_send),
            skipped=len(mappings) - len(to_send),
            staged=len(staged_values)
        )

        request = SyncRequest(direction=direction, mappings=to_send, records=staged_values)
        body = await self.sync_service.sync(request)
        result = parse_sync_result(body)

        failed_ids = result.failed_item_ids
        self.staging.clear(m.source_id for m in to_send if m.source_id not in failed_ids)

        logger.info(
            "sync_batch_completed",
            direction=direction.value,
            processed=result.items_processed,
            succeeded=result.items_succeeded,
            failed=result.items_failed
        )
        return result
