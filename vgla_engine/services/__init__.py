"""Services package."""

from vgla_engine.services.storage import (
    AuditStorageInterface,
    ConflictError,
    ConnectionError,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsProfileStorage,
    GoogleSheetsSnapshotStorage,
    InMemoryAuditStorage,
    InMemoryProfileStorage,
    InMemorySnapshotStorage,
    NotFoundError,
    ProfileStorageInterface,
    SnapshotStorageInterface,
    StorageError,
)

__all__ = [
    # Storage services
    "AuditStorageInterface",
    "ConflictError",
    "ConnectionError",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsProfileStorage",
    "GoogleSheetsSnapshotStorage",
    "InMemoryAuditStorage",
    "InMemoryProfileStorage",
    "InMemorySnapshotStorage",
    "NotFoundError",
    "ProfileStorageInterface",
    "SnapshotStorageInterface",
    "StorageError",
]
