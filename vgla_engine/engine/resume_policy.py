"""
Resume Policy

Decides whether a saved snapshot should be offered for resumption or a
new test started. The decision is an explicit value computed from the
snapshot that is passed in and a maximum snapshot age.
"""

from datetime import datetime, timedelta
from enum import Enum
from typing import NamedTuple, Optional

from vgla_engine.models.assessment import SessionSnapshot


class ResumeAction(str, Enum):
    START_NEW = "start_new"
    RESUME = "resume"


class ResumeReason(str, Enum):
    NO_SNAPSHOT = "no_snapshot"
    COMPLETED = "completed"
    STALE = "stale"
    INVALID = "invalid"
    RESUMABLE = "resumable"


class ResumeDecision(NamedTuple):
    action: ResumeAction
    reason: ResumeReason
    snapshot: Optional[SessionSnapshot] = None

    @property
    def should_resume(self) -> bool:
        return self.action == ResumeAction.RESUME


def decide_resume(
    snapshot: Optional[SessionSnapshot],
    now: datetime,
    max_age: timedelta,
) -> ResumeDecision:
    """
    Resume only an unfinished snapshot updated within max_age of now.

    A snapshot exactly max_age old is still resumable.
    """
    if snapshot is None:
        return ResumeDecision(ResumeAction.START_NEW, ResumeReason.NO_SNAPSHOT)

    if snapshot.is_completed:
        return ResumeDecision(ResumeAction.START_NEW, ResumeReason.COMPLETED)

    if now - snapshot.last_updated_time > max_age:
        return ResumeDecision(ResumeAction.START_NEW, ResumeReason.STALE)

    return ResumeDecision(ResumeAction.RESUME, ResumeReason.RESUMABLE, snapshot)
