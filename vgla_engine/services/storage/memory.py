"""
In-Memory Storage Implementation

Used by tests and single-process local runs. Data is held as JSON strings,
so every save and load goes through the same encoding a real backend uses.
"""

from typing import Optional
from uuid import UUID

import structlog
from pydantic import ValidationError

from vgla_engine.models.assessment import SessionSnapshot
from vgla_engine.models.audit import AuditEvent
from vgla_engine.models.profile import HistoryRecord, Profile
from vgla_engine.services.storage.codec import encode_snapshot
from vgla_engine.services.storage.interface import (
    AuditStorageInterface,
    ConflictError,
    ProfileStorageInterface,
    SnapshotStorageInterface,
)


logger = structlog.get_logger(__name__)


class InMemorySnapshotStorage(SnapshotStorageInterface):
    """One JSON snapshot per user id."""

    def __init__(self):
        self._snapshots: dict[str, str] = {}

    async def save_snapshot(self, user_id: str, snapshot: SessionSnapshot) -> bool:
        self._snapshots[user_id] = encode_snapshot(snapshot)
        return True

    async def load_raw_snapshot(self, user_id: str) -> Optional[str]:
        return self._snapshots.get(user_id)

    async def clear_snapshot(self, user_id: str) -> bool:
        return self._snapshots.pop(user_id, None) is not None


class InMemoryProfileStorage(ProfileStorageInterface):
    """
    Profiles and history kept apart, like the rows of two sheets.

    Profile JSON is stored without its history; history records are kept
    as an append-only list of JSON strings per user.
    """

    def __init__(self):
        self._profiles: dict[str, str] = {}
        self._history: dict[str, list[str]] = {}

    async def save_profile(self, profile: Profile) -> bool:
        stored = self._history.get(profile.user_id, [])
        new_rows = [record.model_dump_json() for record in profile.history]

        if new_rows[:len(stored)] != stored:
            raise ConflictError(
                f"History for {profile.user_id} is append-only; stored records differ"
            )

        self._profiles[profile.user_id] = profile.model_dump_json(exclude={"history"})
        self._history[profile.user_id] = stored + new_rows[len(stored):]
        return True

    async def get_profile(self, user_id: str) -> Optional[Profile]:
        raw = self._profiles.get(user_id)
        if raw is None:
            return None

        history = await self.list_history(user_id)
        try:
            profile = Profile.model_validate_json(raw)
        except ValidationError as e:
            logger.warning("profile_decode_failed", user_id=user_id, error_count=e.error_count())
            return None
        return profile.model_copy(update={"history": history})

    async def list_history(self, user_id: str) -> list[HistoryRecord]:
        records = []
        for raw in self._history.get(user_id, []):
            try:
                records.append(HistoryRecord.model_validate_json(raw))
            except ValidationError:
                logger.warning("history_record_decode_failed", user_id=user_id)
                continue
        return records

    async def list_profiles(self) -> list[Profile]:
        profiles = []
        for user_id in list(self._profiles):
            profile = await self.get_profile(user_id)
            if profile is not None:
                profiles.append(profile)
        return profiles


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._events if e.correlation_id == correlation_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        events = [
            e for e in self._events
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        events = sorted(self._events, key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
