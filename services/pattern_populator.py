"""
Pattern populator.

Fills the sync queue from a saved search pattern. Expanding the pattern
into records is the lookup's job; this module owns the clear-or-merge
decision and the per-record upsert accounting.
"""

from typing import Optional

import structlog
from pydantic import ValidationError as PydanticValidationError

from exceptions import AppError, ValidationError
from integrations.base import PatternLookup
from models.pattern import SavedPattern
from models.queue import PopulateResult, QueueItemCreate
from models.record import Platform, Record
from models.sync import SyncDirection
from services.saved_pattern_service import SavedPatternService, get_saved_pattern_service
from services.sync_queue_service import SyncQueueService, get_sync_queue_service

logger = structlog.get_logger(__name__)


class PatternPopulator:
    """
    Saved pattern → queue items.

    Args:
        lookup: Expands a pattern id into records
        queue_service: Queue store
        pattern_service: Saved pattern store (name and direction of the pattern)
    """

    def __init__(
        self,
        lookup: PatternLookup,
        queue_service: SyncQueueService,
        pattern_service: SavedPatternService
    ):
        self.lookup = lookup
        self.queue = queue_service
        self.patterns = pattern_service

    async def populate(
        self,
        pattern_id: str,
        clear_existing: bool = False,
        direction: Optional[SyncDirection] = None
    ) -> PopulateResult:
        """
        Populate the queue from a pattern.

        Args:
            pattern_id: Saved pattern to expand
            clear_existing: Wipe the whole queue before inserting
            direction: Override the pattern's sync direction

        Returns:
            PopulateResult; inserted + updated + failed equals the number of
            records the lookup returned

        Raises:
            PatternNotFoundError: If the pattern doesn't exist
            SyncTransportError: If the lookup cannot reach the platform
        """
        pattern = self.patterns.get_by_id(pattern_id)
        sync_direction = direction or pattern.sync_direction

        logger.info(
            "populating_sync_queue",
            pattern_id=pattern_id,
            direction=sync_direction.value,
            clear_existing=clear_existing
        )

        # Expand before clearing so a failed lookup leaves the queue intact
        records = await self.lookup.expand(pattern_id)

        if clear_existing:
            self.queue.clear()

        result = PopulateResult()
        for record in records:
            try:
                if self._upsert(record, pattern, sync_direction):
                    result.updated += 1
                else:
                    result.inserted += 1
            except (AppError, PydanticValidationError) as e:
                result.failed += 1
                logger.error(
                    "populate_queue_item_failed",
                    pattern_id=pattern_id,
                    record_id=record.id,
                    sku=record.natural_key,
                    error=getattr(e, "message", str(e))
                )

        logger.info(
            "sync_queue_populated",
            pattern_id=pattern_id,
            inserted=result.inserted,
            updated=result.updated,
            failed=result.failed
        )
        return result

    def _upsert(self, record: Record, pattern: SavedPattern, direction: SyncDirection) -> bool:
        """
        Insert or update the queue item for one record.

        Returns:
            True if an existing item was updated, False if one was inserted
        """
        if not record.has_natural_key:
            raise ValidationError(
                message="Record has no SKU to queue under",
                code="RECORD_MISSING_NATURAL_KEY",
                details={"record_id": record.id}
            )

        id_column = (
            "netsuite_item_id" if record.platform is Platform.NETSUITE else "shopify_product_id"
        )
        metadata = {
            "price": record.price,
            "inventory": record.quantity,
            "source": "saved_search",
            "pattern_id": pattern.id,
            "pattern_name": pattern.name,
        }
        product_name = record.name or record.natural_key

        existing = self.queue.get_by_key(record.natural_key, direction)
        if existing:
            self.queue.update(existing.id, {
                id_column: record.id,
                "product_name": product_name,
                "metadata": metadata,
            })
            return True

        self.queue.create(QueueItemCreate(
            sku=record.natural_key,
            product_name=product_name,
            sync_direction=direction,
            metadata=metadata,
            **{id_column: record.id},
        ))
        return False


# Singleton instance for convenience
_pattern_populator: Optional[PatternPopulator] = None


def get_pattern_populator() -> PatternPopulator:
    """Get or create PatternPopulator; the saved pattern service doubles as the lookup."""
    global _pattern_populator
    if _pattern_populator is None:
        patterns = get_saved_pattern_service()
        _pattern_populator = PatternPopulator(patterns, get_sync_queue_service(), patterns)
    return _pattern_populator
