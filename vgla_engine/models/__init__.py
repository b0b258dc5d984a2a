"""
Data Models Package

This package contains all Pydantic models used by the VGLA engine.
All data flowing through the system must conform to these schemas.
"""

from vgla_engine.models.assessment import (
    DIMENSION_ORDER,
    MAX_DIMENSION_SCORE,
    QUESTIONS_PER_PHASE,
    TOTAL_QUESTIONS,
    CombinationType,
    Dimension,
    Phase,
    Question,
    Resolution,
    Response,
    ScoreVector,
    SessionSnapshot,
    VGLAResult,
    as_utc,
    utc_now,
)
from vgla_engine.models.profile import (
    HistoryRecord,
    Profile,
)
from vgla_engine.models.validation import (
    ValidationIssue,
    ValidationResult,
)
from vgla_engine.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Assessment models
    "DIMENSION_ORDER",
    "MAX_DIMENSION_SCORE",
    "QUESTIONS_PER_PHASE",
    "TOTAL_QUESTIONS",
    "CombinationType",
    "Dimension",
    "Phase",
    "Question",
    "Resolution",
    "Response",
    "ScoreVector",
    "SessionSnapshot",
    "VGLAResult",
    "as_utc",
    "utc_now",
    # Profile models
    "HistoryRecord",
    "Profile",
    # Validation models
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
