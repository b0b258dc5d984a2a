"""
Profile Models for the VGLA Engine

A Profile is the longitudinal view of one user's assessments: the current
combination type, when the next retest is due, whether the type drifted,
and the full history of completed assessments.

DESIGN DECISION: History records are append-only and immutable.
The tracker never edits a record; it only ever appends a new one.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from vgla_engine.models.assessment import (
    CombinationType,
    Dimension,
    ScoreVector,
    as_utc,
    utc_now,
)


class HistoryRecord(BaseModel):
    """One completed assessment, frozen at the moment it was recorded."""
    model_config = ConfigDict(frozen=True)

    test_date: datetime = Field(default_factory=utc_now)
    primary_type: Dimension
    secondary_type: Dimension
    combination_type: CombinationType
    score_snapshot: ScoreVector
    notes: Optional[str] = Field(default=None, max_length=1000)

    @field_validator('test_date')
    @classmethod
    def normalize_test_date(cls, v: datetime) -> datetime:
        return as_utc(v)


class Profile(BaseModel):
    """
    Current VGLA type of a user plus retest and drift tracking.

    Created on the first completed assessment and only ever replaced by
    ProfileTracker.update_type(); the engine never deletes it.
    """

    user_id: str = Field(..., min_length=1)

    current_primary: Dimension
    current_secondary: Dimension
    current_combination_type: CombinationType

    last_test_date: datetime
    next_test_date: datetime
    should_retake_test: bool = False

    # Drift tracking
    has_type_changed: bool = False
    previous_combination_type: Optional[CombinationType] = None
    type_change_date: Optional[datetime] = None

    history: list[HistoryRecord] = Field(default_factory=list)

    @field_validator('last_test_date', 'next_test_date', 'type_change_date')
    @classmethod
    def normalize_dates(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Stored rows may carry naive timestamps; those are UTC."""
        return as_utc(v)

    @model_validator(mode='after')
    def validate_dates(self) -> 'Profile':
        if self.next_test_date < self.last_test_date:
            raise ValueError("Next test date cannot be before last test date")
        if self.has_type_changed and self.previous_combination_type is None:
            raise ValueError("A changed type must record the previous combination type")
        return self

    @property
    def latest_record(self) -> Optional[HistoryRecord]:
        if not self.history:
            return None
        return max(self.history, key=lambda record: record.test_date)

    @property
    def assessment_count(self) -> int:
        return len(self.history)
