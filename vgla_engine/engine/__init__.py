"""
Assessment Engine Package

Pure, synchronous VGLA logic: question bank, session state machine,
scoring, combination resolution and profile tracking. Nothing in this
package performs I/O.
"""

from vgla_engine.engine import question_bank, scoring
from vgla_engine.engine.combination import (
    COMBINATION_THRESHOLD,
    build_result,
    resolve,
    resolve_score,
)
from vgla_engine.engine.errors import (
    AssessmentError,
    IncompleteAssessmentError,
    InvalidOptionError,
    InvalidSessionStateError,
)
from vgla_engine.engine.profile_tracker import (
    RETEST_INTERVAL_MONTHS,
    ProfileTracker,
    add_months,
)
from vgla_engine.engine.resume_policy import (
    ResumeAction,
    ResumeDecision,
    ResumeReason,
    decide_resume,
)
from vgla_engine.engine.session import (
    PhaseProgress,
    SessionStats,
    SessionStatus,
    TestSession,
)

__all__ = [
    "question_bank",
    "scoring",
    # Combination
    "COMBINATION_THRESHOLD",
    "build_result",
    "resolve",
    "resolve_score",
    # Errors
    "AssessmentError",
    "IncompleteAssessmentError",
    "InvalidOptionError",
    "InvalidSessionStateError",
    # Profile tracking
    "RETEST_INTERVAL_MONTHS",
    "ProfileTracker",
    "add_months",
    # Resume policy
    "ResumeAction",
    "ResumeDecision",
    "ResumeReason",
    "decide_resume",
    # Session
    "PhaseProgress",
    "SessionStats",
    "SessionStatus",
    "TestSession",
]
