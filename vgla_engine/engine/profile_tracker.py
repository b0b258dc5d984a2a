"""
Profile Tracker

Keeps a user's VGLA type across repeated assessments.

- A retest is due RETEST_INTERVAL_MONTHS calendar months after the last test.
- A change of combination type between tests is recorded as drift.
- Stability summarizes how many distinct types the history contains.

DESIGN DECISION: The tracker never mutates the Profile it is given.
Every update returns a new Profile, so a caller that fails to persist the
new value still holds the previous, consistent one.
"""

import calendar
from collections import Counter
from datetime import datetime
from typing import Callable, Optional, Sequence

from vgla_engine.models.assessment import CombinationType, VGLAResult, utc_now
from vgla_engine.models.profile import HistoryRecord, Profile


RETEST_INTERVAL_MONTHS = 3


def add_months(moment: datetime, months: int) -> datetime:
    """
    Add calendar months, clamping the day to the target month's length.

    Jan 31 + 1 month is Feb 28 (or 29), not Mar 3.
    """
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def _chronological(history: Sequence[HistoryRecord]) -> list[HistoryRecord]:
    # sorted() is stable, so records sharing a test date keep insertion order
    return sorted(history, key=lambda record: record.test_date)


class ProfileTracker:
    """
    Creates and updates profiles from completed assessment results.

    Args:
        clock: Returns the current time; injectable for tests.
    """

    def __init__(self, clock: Callable[[], datetime] = utc_now):
        self._clock = clock

    def _record_for(self, result: VGLAResult, test_date: datetime) -> HistoryRecord:
        return HistoryRecord(
            test_date=test_date,
            primary_type=result.primary_type,
            secondary_type=result.secondary_type,
            combination_type=result.combination_type,
            score_snapshot=result.score,
        )

    def initialize(self, user_id: str, result: VGLAResult) -> Profile:
        """Create the profile from a user's first completed assessment."""
        now = self._clock()
        return Profile(
            user_id=user_id,
            current_primary=result.primary_type,
            current_secondary=result.secondary_type,
            current_combination_type=result.combination_type,
            last_test_date=now,
            next_test_date=add_months(now, RETEST_INTERVAL_MONTHS),
            should_retake_test=False,
            has_type_changed=False,
            history=[self._record_for(result, now)],
        )

    def update_type(self, profile: Profile, result: VGLAResult) -> Profile:
        """
        Fold a new result into the profile.

        Returns a new Profile; the given one is left untouched.
        """
        now = self._clock()
        changes = {
            "current_primary": result.primary_type,
            "current_secondary": result.secondary_type,
            "current_combination_type": result.combination_type,
            "last_test_date": now,
            "next_test_date": add_months(now, RETEST_INTERVAL_MONTHS),
            "should_retake_test": False,
            "history": [*profile.history, self._record_for(result, now)],
        }

        if result.combination_type != profile.current_combination_type:
            changes["has_type_changed"] = True
            changes["previous_combination_type"] = profile.current_combination_type
            changes["type_change_date"] = now

        return profile.model_copy(update=changes)

    def check_retake_needed(self, profile: Profile) -> bool:
        """True once the retest date has been reached (inclusive)."""
        return self._clock() >= profile.next_test_date

    def mark_retake_if_due(self, profile: Profile) -> Profile:
        if profile.should_retake_test or not self.check_retake_needed(profile):
            return profile
        return profile.model_copy(update={"should_retake_test": True})

    @staticmethod
    def get_type_stability(history: Sequence[HistoryRecord]) -> float:
        """
        Stability in [0, 1]: 1 - (distinct types - 1) / number of records.

        Histories with zero or one record are fully stable.
        """
        if len(history) <= 1:
            return 1.0
        distinct = len({record.combination_type for record in history})
        return 1.0 - (distinct - 1) / len(history)

    @staticmethod
    def get_most_common_type(
        history: Sequence[HistoryRecord],
        default: Optional[CombinationType] = None,
    ) -> Optional[CombinationType]:
        """
        The most frequent combination type.

        Ties go to the type that appeared first chronologically.
        """
        if not history:
            return default
        # Counter preserves first-insertion order and most_common() is stable
        counts = Counter(record.combination_type for record in _chronological(history))
        return counts.most_common(1)[0][0]

    @staticmethod
    def get_type_change_trend(history: Sequence[HistoryRecord]) -> list[CombinationType]:
        return [record.combination_type for record in _chronological(history)]
