"""
Saved search pattern service.

CRUD over `saved_search_patterns`, plus the pattern lookup that expands
a pattern into concrete records through the record source.
"""

from typing import Optional

import structlog

from config import get_supabase_client
from integrations.base import PatternLookup, RecordSource
from models.pattern import SavedPattern, SavedPatternCreate
from models.record import Platform, Record
from exceptions import (
    PatternNotFoundError,
    PatternNameExistsError,
    ValidationError,
    DatabaseError
)

logger = structlog.get_logger(__name__)


class SavedPatternService(PatternLookup):
    """
    Saved pattern business logic.

    The record source is only needed for `expand`; it defaults to the
    edge functions client.
    """

    def __init__(self, record_source: Optional[RecordSource] = None):
        self.db = get_supabase_client()
        self.table = "saved_search_patterns"
        self._record_source = record_source

    @property
    def record_source(self) -> RecordSource:
        if self._record_source is None:
            from integrations.edge_functions import get_edge_functions_client
            self._record_source = get_edge_functions_client()
        return self._record_source

    # ===================
    # READ OPERATIONS
    # ===================

    def get_all(self, active_only: bool = True) -> list[SavedPattern]:
        """Saved patterns, newest first."""
        logger.info("getting_saved_patterns", active_only=active_only)

        try:
            query = self.db.table(self.table).select("*")
            if active_only:
                query = query.eq("is_active", True)
            result = query.order("created_at", desc=True).execute()
        except Exception as e:
            logger.error("get_saved_patterns_failed", error=str(e))
            raise DatabaseError("select", str(e))

        return [SavedPattern(**row) for row in result.data]

    def get_by_id(self, pattern_id: str) -> SavedPattern:
        """
        Get a single saved pattern.

        Raises:
            PatternNotFoundError: If the pattern doesn't exist
        """
        logger.debug("getting_saved_pattern", pattern_id=pattern_id)

        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("id", pattern_id)
                .execute()
            )
        except Exception as e:
            logger.error("get_saved_pattern_failed", pattern_id=pattern_id, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            raise PatternNotFoundError(pattern_id)
        return SavedPattern(**result.data[0])

    # ===================
    # WRITE OPERATIONS
    # ===================

    def create(self, data: SavedPatternCreate) -> SavedPattern:
        """
        Save a new search pattern.

        Raises:
            PatternNameExistsError: If the name is taken
        """
        logger.info("creating_saved_pattern", name=data.name)

        try:
            existing = self.db.table(self.table).select("id").eq("name", data.name).execute()
        except Exception as e:
            logger.error("create_saved_pattern_failed", name=data.name, error=str(e))
            raise DatabaseError("select", str(e))

        if existing.data:
            raise PatternNameExistsError(data.name)

        try:
            result = (
                self.db.table(self.table)
                .insert({**data.model_dump(mode="json"), "is_active": True})
                .execute()
            )
        except Exception as e:
            logger.error("create_saved_pattern_failed", name=data.name, error=str(e))
            raise DatabaseError("insert", str(e))

        pattern = SavedPattern(**result.data[0])
        logger.info("saved_pattern_created", pattern_id=pattern.id, name=pattern.name)
        return pattern

    def delete(self, pattern_id: str) -> bool:
        """
        Delete a saved pattern.

        Raises:
            PatternNotFoundError: If the pattern doesn't exist
        """
        logger.info("deleting_saved_pattern", pattern_id=pattern_id)

        try:
            result = self.db.table(self.table).delete().eq("id", pattern_id).execute()
        except Exception as e:
            logger.error("delete_saved_pattern_failed", pattern_id=pattern_id, error=str(e))
            raise DatabaseError("delete", str(e))

        if not result.data:
            raise PatternNotFoundError(pattern_id)
        return True

    # ===================
    # PATTERN LOOKUP
    # ===================

    async def expand(self, pattern_id: str) -> list[Record]:
        """
        Records currently matched by a pattern.

        A NetSuite saved search id takes precedence over filter criteria.

        Raises:
            PatternNotFoundError: If the pattern doesn't exist
            ValidationError: If the pattern has neither a saved search nor filters
            SyncTransportError: If the record source cannot be reached
        """
        pattern = self.get_by_id(pattern_id)

        if pattern.netsuite_saved_search_id:
            platform = Platform.NETSUITE
            filters = {"savedSearchId": pattern.netsuite_saved_search_id}
        elif pattern.filters:
            platform = pattern.sync_direction.authoritative_platform
            filters = dict(pattern.filters)
        else:
            raise ValidationError(
                message="Pattern must have either a NetSuite saved search ID or filters defined",
                code="PATTERN_NOT_EXPANDABLE",
                details={"pattern_id": pattern_id}
            )

        logger.info(
            "expanding_saved_pattern",
            pattern_id=pattern_id,
            platform=platform.value,
            saved_search=bool(pattern.netsuite_saved_search_id)
        )

        records = await self.record_source.fetch_records(platform, filters)

        logger.info("saved_pattern_expanded", pattern_id=pattern_id, count=len(records))
        return records


# Singleton instance for convenience
_saved_pattern_service: Optional[SavedPatternService] = None


def get_saved_pattern_service() -> SavedPatternService:
    """Get or create SavedPatternService instance."""
    global _saved_pattern_service
    if _saved_pattern_service is None:
        _saved_pattern_service = SavedPatternService()
    return _saved_pattern_service
