"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    ConflictError,
    DuplicateError,
    ExternalServiceError,
    DatabaseError,

    # Records / staging
    RecordNotFoundError,

    # Sync
    SyncTransportError,
    MalformedSyncResponseError,

    # Sync queue
    QueueItemNotFoundError,
    QueueItemExistsError,

    # Saved patterns
    PatternNotFoundError,
    PatternNameExistsError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "DuplicateError",
    "ExternalServiceError",
    "DatabaseError",

    # Records / staging
    "RecordNotFoundError",

    # Sync
    "SyncTransportError",
    "MalformedSyncResponseError",

    # Sync queue
    "QueueItemNotFoundError",
    "QueueItemExistsError",

    # Saved patterns
    "PatternNotFoundError",
    "PatternNameExistsError",
]
