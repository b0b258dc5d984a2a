"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
An in-memory backend is used for tests and local runs; Google Sheets is the
persistent backend.
"""

from vgla_engine.services.storage.interface import (
    AuditStorageInterface,
    ConflictError,
    ConnectionError,
    NotFoundError,
    ProfileStorageInterface,
    SnapshotStorageInterface,
    StorageError,
)
from vgla_engine.services.storage.codec import (
    decode_score_vector,
    decode_snapshot,
    encode_score_vector,
    encode_snapshot,
)
from vgla_engine.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryProfileStorage,
    InMemorySnapshotStorage,
)
from vgla_engine.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsProfileStorage,
    GoogleSheetsSnapshotStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "ProfileStorageInterface",
    "SnapshotStorageInterface",
    # Exceptions
    "ConflictError",
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    # Codec
    "decode_score_vector",
    "decode_snapshot",
    "encode_score_vector",
    "encode_snapshot",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryProfileStorage",
    "InMemorySnapshotStorage",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsProfileStorage",
    "GoogleSheetsSnapshotStorage",
]
