"""
Staging store for pending record edits.

An explicit in-memory overlay keyed by record id. It is owned by one
session and passed to whatever needs it (executor, preview service,
routes); nothing here is module-level state.

Each `stage` call replaces the whole pending patch for that record.
Partial edits made through different screens do not accumulate: the
last stage wins.
"""

from typing import Any, Iterable, Optional

import structlog

from exceptions import RecordNotFoundError
from models.record import Record, StagedRecord

logger = structlog.get_logger(__name__)


class StagingStore:
    """
    Pending edits, held until a sync call for the record succeeds.

    Base records are registered with `load` (fetched records) or implicitly
    by `stage`; `get_effective` answers for any registered record.
    """

    def __init__(self, records: Optional[Iterable[Record]] = None):
        self._base: dict[str, Record] = {}
        self._staged: dict[str, StagedRecord] = {}
        if records:
            self.load(records)

    def __len__(self) -> int:
        return len(self._staged)

    def __contains__(self, record_id: str) -> bool:
        return record_id in self._staged

    # ===================
    # BASE RECORDS
    # ===================

    def load(self, records: Iterable[Record]) -> None:
        """
        Register base records, replacing any earlier copy with the same id.

        Pending edits are kept; they are merged over the fresh base value.
        """
        for record in records:
            self._base[record.id] = record
            staged = self._staged.get(record.id)
            if staged is not None:
                self._staged[record.id] = staged.model_copy(update={"record": record})

    def get_record(self, record_id: str) -> Record:
        """
        Base record without pending changes.

        Raises:
            RecordNotFoundError: If the record was never loaded or staged
        """
        record = self._base.get(record_id)
        if record is None:
            raise RecordNotFoundError(record_id)
        return record

    # ===================
    # OVERLAY
    # ===================

    def stage(self, record: Record, pending_changes: Optional[dict[str, Any]] = None) -> StagedRecord:
        """
        Stage a pending edit for a record.

        Args:
            record: Base record being edited
            pending_changes: Partial patch; replaces any earlier patch for the id

        Returns:
            The new StagedRecord

        Raises:
            ValidationError: If the patch tries to change identity fields
        """
        changes = dict(pending_changes or {})
        # Validate the patch up front so a bad edit never sits in the overlay
        record.apply(changes)

        self._base[record.id] = record
        staged = StagedRecord(record=record, pending_changes=changes)
        replaced = record.id in self._staged
        self._staged[record.id] = staged

        logger.info(
            "record_staged",
            record_id=record.id,
            fields=sorted(changes.keys()),
            replaced=replaced
        )
        return staged

    def unstage(self, record_id: str) -> bool:
        """Drop the pending edit for a record. Returns False if none was staged."""
        removed = self._staged.pop(record_id, None) is not None
        if removed:
            logger.info("record_unstaged", record_id=record_id)
        return removed

    def get_staged(self, record_id: str) -> Optional[StagedRecord]:
        return self._staged.get(record_id)

    def is_staged(self, record_id: str) -> bool:
        return record_id in self._staged

    def get_effective(self, record_id: str) -> Record:
        """
        Value to transmit for a record.

        Pending changes merged over the base record when staged, otherwise
        the base record unchanged.

        Raises:
            RecordNotFoundError: If the record was never loaded or staged
        """
        staged = self._staged.get(record_id)
        if staged is not None:
            return staged.effective()

        base = self._base.get(record_id)
        if base is None:
            raise RecordNotFoundError(record_id)
        return base

    def list_staged(self) -> list[StagedRecord]:
        """Staged records in staging order."""
        return list(self._staged.values())

    def clear(self, record_ids: Iterable[str]) -> list[str]:
        """
        Remove overlays after a successful sync.

        Returns:
            Ids that actually had a staged edit
        """
        cleared = [rid for rid in record_ids if self._staged.pop(rid, None) is not None]
        if cleared:
            logger.info("staged_records_cleared", count=len(cleared), record_ids=cleared)
        return cleared
