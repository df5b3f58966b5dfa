"""
API route modules.

Each module defines routes for one domain area.
"""

from routes.preview import router as preview_router
from routes.staging import router as staging_router
from routes.sync_queue import router as sync_queue_router
from routes.patterns import router as patterns_router
from routes.sync_history import router as sync_history_router

__all__ = [
    "preview_router",
    "staging_router",
    "sync_queue_router",
    "patterns_router",
    "sync_history_router",
]
