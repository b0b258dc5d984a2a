"""
Audit Models for the VGLA Engine

Every significant step of an assessment is logged for audit purposes:
starting and resuming a test, finishing it, and every change the profile
tracker makes to a user's profile.

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from vgla_engine.models.assessment import utc_now


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Session lifecycle
    ASSESSMENT_STARTED = "assessment_started"
    ASSESSMENT_RESUMED = "assessment_resumed"
    ASSESSMENT_COMPLETED = "assessment_completed"
    ASSESSMENT_ABANDONED = "assessment_abandoned"
    PHASE_CHANGED = "phase_changed"
    FINALIZE_REJECTED = "finalize_rejected"

    # Snapshot persistence
    SNAPSHOT_DISCARDED = "snapshot_discarded"
    PROGRESS_SAVE_FAILED = "progress_save_failed"

    # Profile tracking
    PROFILE_CREATED = "profile_created"
    PROFILE_UPDATED = "profile_updated"
    TYPE_CHANGED = "type_changed"
    RETAKE_DUE = "retake_due"
    PROFILE_SAVE_FAILED = "profile_save_failed"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=utc_now,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'session', 'profile')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity (test id or user id)"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate the events of one assessment run"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         correlation_id, description, details_json, error_message, is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            self.entity_id or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.assessment_started(test_id, user_id, correlation_id)
        event = AuditEventBuilder.type_changed(user_id, "VG", "LL", correlation_id)
    """

    @staticmethod
    def assessment_started(
        test_id: str,
        user_id: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ASSESSMENT_STARTED,
            entity_type="session",
            entity_id=test_id,
            correlation_id=correlation_id,
            description="VGLA assessment started",
            details={"user_id": user_id},
            is_user_action=True,
        )

    @staticmethod
    def assessment_resumed(
        test_id: str,
        user_id: str,
        question_index: int,
        answered: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ASSESSMENT_RESUMED,
            entity_type="session",
            entity_id=test_id,
            correlation_id=correlation_id,
            description=f"VGLA assessment resumed at question {question_index + 1}",
            details={
                "user_id": user_id,
                "question_index": question_index,
                "answered": answered,
            },
            is_user_action=True,
        )

    @staticmethod
    def assessment_abandoned(
        test_id: str,
        user_id: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ASSESSMENT_ABANDONED,
            entity_type="session",
            entity_id=test_id,
            correlation_id=correlation_id,
            description="VGLA assessment abandoned",
            details={"user_id": user_id},
            is_user_action=True,
        )

    @staticmethod
    def phase_changed(
        test_id: str,
        phase: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PHASE_CHANGED,
            entity_type="session",
            entity_id=test_id,
            correlation_id=correlation_id,
            description=f"Assessment entered the {phase} phase",
            details={"phase": phase},
        )

    @staticmethod
    def assessment_completed(
        test_id: str,
        combination_type: str,
        scores: dict[str, int],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ASSESSMENT_COMPLETED,
            entity_type="session",
            entity_id=test_id,
            correlation_id=correlation_id,
            description=f"Assessment completed with combination type {combination_type}",
            details={
                "combination_type": combination_type,
                "scores": scores,
            },
        )

    @staticmethod
    def finalize_rejected(
        test_id: str,
        missing_question_ids: list[int],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FINALIZE_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="session",
            entity_id=test_id,
            correlation_id=correlation_id,
            description=f"Finalize rejected: {len(missing_question_ids)} questions unanswered",
            details={"missing_question_ids": missing_question_ids},
        )

    @staticmethod
    def snapshot_discarded(
        user_id: str,
        reason: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_DISCARDED,
            severity=AuditSeverity.WARNING,
            entity_type="user",
            entity_id=user_id,
            correlation_id=correlation_id,
            description=f"Saved progress discarded ({reason})",
            details={"reason": reason},
        )

    @staticmethod
    def progress_save_failed(
        test_id: str,
        error_message: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PROGRESS_SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="session",
            entity_id=test_id,
            correlation_id=correlation_id,
            description="Failed to save assessment progress",
            error_message=error_message,
        )

    @staticmethod
    def profile_created(
        user_id: str,
        combination_type: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PROFILE_CREATED,
            entity_type="profile",
            entity_id=user_id,
            correlation_id=correlation_id,
            description=f"Profile created with combination type {combination_type}",
            details={"combination_type": combination_type},
        )

    @staticmethod
    def profile_updated(
        user_id: str,
        combination_type: str,
        assessment_count: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PROFILE_UPDATED,
            entity_type="profile",
            entity_id=user_id,
            correlation_id=correlation_id,
            description=f"Profile updated after assessment #{assessment_count}",
            details={
                "combination_type": combination_type,
                "assessment_count": assessment_count,
            },
        )

    @staticmethod
    def type_changed(
        user_id: str,
        previous_type: str,
        new_type: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TYPE_CHANGED,
            entity_type="profile",
            entity_id=user_id,
            correlation_id=correlation_id,
            description=f"Combination type changed: {previous_type} -> {new_type}",
            details={
                "previous_type": previous_type,
                "new_type": new_type,
            },
        )

    @staticmethod
    def profile_save_failed(
        user_id: str,
        error_message: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PROFILE_SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="profile",
            entity_id=user_id,
            correlation_id=correlation_id,
            description="Failed to save profile",
            error_message=error_message,
        )

    @staticmethod
    def retake_due(
        user_id: str,
        next_test_date: datetime,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RETAKE_DUE,
            entity_type="profile",
            entity_id=user_id,
            description="VGLA retest is due",
            details={"next_test_date": next_test_date.isoformat()},
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
