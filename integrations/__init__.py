"""
External collaborators of the sync core.
"""

from integrations.base import RecordSource, SyncService, PatternLookup
from integrations.edge_functions import (
    EdgeFunctionsClient,
    close_edge_functions_client,
    get_edge_functions_client,
    record_from_product,
)

__all__ = [
    "RecordSource",
    "SyncService",
    "PatternLookup",
    "EdgeFunctionsClient",
    "close_edge_functions_client",
    "get_edge_functions_client",
    "record_from_product",
]
