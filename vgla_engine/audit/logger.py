"""
Audit Logger

DESIGN DECISION: Every significant step of an assessment is logged.
This provides:
1. Traceability of each run (start, resume, completion)
2. Debugging capability for save failures and discarded progress
3. A record of how a user's type changes over time

The audit logger:
- Is async to not block main flow
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

import structlog

from vgla_engine.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from vgla_engine.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence and user visibility)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger(__name__)

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity == AuditSeverity.ERROR:
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_assessment_started(
        self,
        test_id: str,
        user_id: str,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.assessment_started(
            test_id=test_id,
            user_id=user_id,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_assessment_resumed(
        self,
        test_id: str,
        user_id: str,
        question_index: int,
        answered: int,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.assessment_resumed(
            test_id=test_id,
            user_id=user_id,
            question_index=question_index,
            answered=answered,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_assessment_abandoned(
        self,
        test_id: str,
        user_id: str,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.assessment_abandoned(
            test_id=test_id,
            user_id=user_id,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_phase_changed(
        self,
        test_id: str,
        phase: str,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.phase_changed(
            test_id=test_id,
            phase=phase,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_assessment_completed(
        self,
        test_id: str,
        combination_type: str,
        scores: dict[str, int],
        correlation_id: UUID,
    ) -> None:
        """Log a finished assessment with its total scores."""
        event = AuditEventBuilder.assessment_completed(
            test_id=test_id,
            combination_type=combination_type,
            scores=scores,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_finalize_rejected(
        self,
        test_id: str,
        missing_question_ids: list[int],
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.finalize_rejected(
            test_id=test_id,
            missing_question_ids=missing_question_ids,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_snapshot_discarded(
        self,
        user_id: str,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log saved progress that was not offered for resumption."""
        event = AuditEventBuilder.snapshot_discarded(
            user_id=user_id,
            reason=reason,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_progress_save_failed(
        self,
        test_id: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.progress_save_failed(
            test_id=test_id,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_profile_created(
        self,
        user_id: str,
        combination_type: str,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.profile_created(
            user_id=user_id,
            combination_type=combination_type,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_profile_updated(
        self,
        user_id: str,
        combination_type: str,
        assessment_count: int,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.profile_updated(
            user_id=user_id,
            combination_type=combination_type,
            assessment_count=assessment_count,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_type_changed(
        self,
        user_id: str,
        previous_type: str,
        new_type: str,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.type_changed(
            user_id=user_id,
            previous_type=previous_type,
            new_type=new_type,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_profile_save_failed(
        self,
        user_id: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.profile_save_failed(
            user_id=user_id,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_retake_due(
        self,
        user_id: str,
        next_test_date: datetime,
    ) -> None:
        event = AuditEventBuilder.retake_due(
            user_id=user_id,
            next_test_date=next_test_date,
        )
        await self.log(event)

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new assessment run.
    Pass it through all subsequent operations.
    """
    return uuid4()
