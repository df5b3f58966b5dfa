"""
Collaborator interfaces consumed by the sync core.

The orchestration code depends only on these; the HTTP implementation
lives in integrations.edge_functions and tests substitute fakes.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from models.record import Platform, Record
from models.sync import SyncRequest


class RecordSource(ABC):
    """Fetches records from one platform."""

    @abstractmethod
    async def fetch_records(
        self,
        platform: Platform,
        filters: Optional[dict[str, Any]] = None
    ) -> list[Record]:
        """
        Fetch records for a platform under a filter.

        Returned records carry at least id, natural_key and platform.

        Raises:
            SyncTransportError: If the remote call cannot complete
        """


class SyncService(ABC):
    """Applies mappings across platforms in one direction."""

    @abstractmethod
    async def sync(self, request: SyncRequest) -> dict[str, Any]:
        """
        Send one sync request and return the raw response body.

        The caller validates the body; implementations only raise for
        transport failures.

        Raises:
            SyncTransportError: If the remote call cannot complete
        """


class PatternLookup(ABC):
    """Expands a saved pattern into concrete records."""

    @abstractmethod
    async def expand(self, pattern_id: str) -> list[Record]:
        """Records currently matched by the pattern."""
