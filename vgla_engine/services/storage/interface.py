"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep the engine agnostic of how and where its data is stored
2. Use in-memory storage for testing and local runs
3. Swap Google Sheets for a real database later

From the engine's point of view every call here is one atomic operation:
it either succeeds or raises StorageError. A failed save never rolls back
or half-applies in-memory session or profile state.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from vgla_engine.models.assessment import SessionSnapshot
from vgla_engine.models.audit import AuditEvent
from vgla_engine.models.profile import HistoryRecord, Profile
from vgla_engine.services.storage.codec import decode_snapshot


class SnapshotStorageInterface(ABC):
    """
    Abstract interface for in-progress session snapshots.

    One snapshot per user; saving replaces the previous one.
    """

    @abstractmethod
    async def save_snapshot(self, user_id: str, snapshot: SessionSnapshot) -> bool:
        """
        Save (replace) the user's snapshot.

        Raises:
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def load_raw_snapshot(self, user_id: str) -> Optional[str]:
        """
        Return the stored snapshot payload exactly as persisted.

        Returns:
            The JSON payload, or None if the user has no saved progress
        """
        pass

    @abstractmethod
    async def clear_snapshot(self, user_id: str) -> bool:
        """
        Remove the user's snapshot.

        Returns:
            True if a snapshot was removed
        """
        pass

    async def load_snapshot(self, user_id: str) -> Optional[SessionSnapshot]:
        """
        Load and decode the user's snapshot.

        Corrupt payloads degrade to None ("no prior progress").
        """
        raw = await self.load_raw_snapshot(user_id)
        return decode_snapshot(raw)


class ProfileStorageInterface(ABC):
    """
    Abstract interface for profiles and their history.

    History is append-only: saving a profile appends the records that are
    not yet stored and never rewrites stored ones.
    """

    @abstractmethod
    async def save_profile(self, profile: Profile) -> bool:
        """
        Create or replace the user's profile and append new history records.

        Raises:
            StorageError: If save fails
            ConflictError: If the save would rewrite stored history
        """
        pass

    @abstractmethod
    async def get_profile(self, user_id: str) -> Optional[Profile]:
        """
        Retrieve a user's profile including its history.

        Returns:
            The profile if found and decodable, None otherwise
        """
        pass

    @abstractmethod
    async def list_history(self, user_id: str) -> list[HistoryRecord]:
        """
        Get a user's history records in the order they were appended.

        Saved profiles must extend exactly this sequence.
        """
        pass

    @abstractmethod
    async def list_profiles(self) -> list[Profile]:
        """
        Get all stored profiles (used by retest reminders).
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (e.g., one assessment run).

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        """
        Get all events for a specific entity.

        Returns:
            List of events in chronological order
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class ConflictError(StorageError):
    """Write would rewrite data that is already stored."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
