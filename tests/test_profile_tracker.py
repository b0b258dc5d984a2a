"""Tests for profile creation, drift detection and retest scheduling."""

from datetime import datetime, timedelta, timezone

import pytest

from vgla_engine.engine import ProfileTracker, add_months
from vgla_engine.models.assessment import CombinationType, Dimension, ScoreVector
from vgla_engine.models.profile import HistoryRecord, Profile


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def record(combination: CombinationType, test_date: datetime) -> HistoryRecord:
    return HistoryRecord(
        test_date=test_date,
        primary_type=combination.primary,
        secondary_type=combination.secondary,
        combination_type=combination,
        score_snapshot=ScoreVector(),
    )


@pytest.fixture
def tracker(clock):
    return ProfileTracker(clock=clock)


class TestAddMonths:
    """Calendar month arithmetic."""

    def test_plain(self):
        assert add_months(utc(2025, 1, 15), 3) == utc(2025, 4, 15)

    def test_year_rollover(self):
        assert add_months(utc(2025, 11, 20, 8, 30), 3) == utc(2026, 2, 20, 8, 30)

    def test_day_is_clamped(self):
        assert add_months(utc(2025, 11, 30), 3) == utc(2026, 2, 28)
        assert add_months(utc(2025, 1, 31), 1) == utc(2025, 2, 28)

    def test_leap_year(self):
        assert add_months(utc(2023, 11, 30), 3) == utc(2024, 2, 29)


class TestInitialize:
    """Tests for the first assessment."""

    def test_initial_profile(self, tracker, clock, make_result):
        profile = tracker.initialize("user-1", make_result(CombinationType.VG))

        assert profile.user_id == "user-1"
        assert profile.current_combination_type == CombinationType.VG
        assert profile.last_test_date == clock.now
        assert profile.next_test_date == utc(2025, 4, 15, 9, 0)
        assert not profile.has_type_changed
        assert not profile.should_retake_test
        assert profile.assessment_count == 1
        assert profile.latest_record.combination_type == CombinationType.VG


class TestUpdateType:
    """Tests for later assessments."""

    def test_same_type(self, tracker, clock, make_result):
        profile = tracker.initialize("user-1", make_result(CombinationType.VG))
        clock.advance(days=100)

        updated = tracker.update_type(profile, make_result(CombinationType.VG))

        assert not updated.has_type_changed
        assert updated.previous_combination_type is None
        assert updated.last_test_date == clock.now
        assert updated.assessment_count == 2

    def test_type_change_is_recorded(self, tracker, clock, make_result):
        profile = tracker.initialize("user-1", make_result(CombinationType.VG))
        clock.advance(days=100)

        updated = tracker.update_type(profile, make_result(CombinationType.LL))

        assert updated.has_type_changed
        assert updated.previous_combination_type == CombinationType.VG
        assert updated.type_change_date == clock.now
        assert updated.current_combination_type == CombinationType.LL
        assert updated.current_primary == CombinationType.LL.primary

    def test_input_profile_is_untouched(self, tracker, clock, make_result):
        profile = tracker.initialize("user-1", make_result(CombinationType.VG))
        before = profile.model_copy(deep=True)
        clock.advance(days=100)

        tracker.update_type(profile, make_result(CombinationType.AA))

        assert profile == before
        assert profile.assessment_count == 1

    def test_existing_records_are_kept(self, tracker, clock, make_result):
        profile = tracker.initialize("user-1", make_result(CombinationType.VG))
        first = profile.history[0]
        clock.advance(days=100)

        updated = tracker.update_type(profile, make_result(CombinationType.GV))

        assert updated.history[0] == first
        assert updated.history[1].combination_type == CombinationType.GV

    def test_update_clears_retake_flag(self, tracker, clock, make_result):
        profile = tracker.initialize("user-1", make_result(CombinationType.VG))
        clock.advance(days=120)
        flagged = tracker.mark_retake_if_due(profile)
        assert flagged.should_retake_test

        updated = tracker.update_type(flagged, make_result(CombinationType.VG))
        assert not updated.should_retake_test


class TestRetake:
    """Tests for the retest check."""

    def test_boundary(self, tracker, clock, make_result):
        profile = tracker.initialize("user-1", make_result(CombinationType.VG))

        clock.now = profile.next_test_date - timedelta(milliseconds=1)
        assert not tracker.check_retake_needed(profile)

        clock.now = profile.next_test_date
        assert tracker.check_retake_needed(profile)

        clock.advance(days=10)
        assert tracker.check_retake_needed(profile)

    def test_mark_retake_if_due(self, tracker, clock, make_result):
        profile = tracker.initialize("user-1", make_result(CombinationType.VG))
        assert tracker.mark_retake_if_due(profile) is profile

        clock.now = profile.next_test_date
        flagged = tracker.mark_retake_if_due(profile)
        assert flagged.should_retake_test
        assert not profile.should_retake_test

    def test_naive_stored_dates_read_as_utc(self, tracker, clock):
        profile = Profile(
            user_id="user-1",
            current_primary=Dimension.VISION,
            current_secondary=Dimension.GOAL,
            current_combination_type=CombinationType.VG,
            last_test_date="2025-01-01T00:00:00",
            next_test_date="2025-04-01T00:00:00",
        )
        assert profile.next_test_date == utc(2025, 4, 1)

        assert not tracker.check_retake_needed(profile)
        clock.now = utc(2025, 4, 1)
        assert tracker.check_retake_needed(profile)


class TestHistoryAnalysis:
    """Tests for stability, most common type and trend."""

    def test_stability_of_single_record(self):
        assert ProfileTracker.get_type_stability([record(CombinationType.VG, utc(2025, 1, 1))]) == 1.0

    def test_stability_of_empty_history(self):
        assert ProfileTracker.get_type_stability([]) == 1.0

    def test_stability_with_one_change(self):
        history = [
            record(CombinationType.VG, utc(2025, 1, 1)),
            record(CombinationType.VG, utc(2025, 4, 1)),
            record(CombinationType.LL, utc(2025, 7, 1)),
            record(CombinationType.VG, utc(2025, 10, 1)),
        ]
        assert ProfileTracker.get_type_stability(history) == 0.75

    def test_stability_all_different(self):
        history = [
            record(code, utc(2025, month, 1))
            for month, code in zip((1, 4, 7, 10), (
                CombinationType.VV, CombinationType.GG, CombinationType.LL, CombinationType.AA,
            ))
        ]
        assert ProfileTracker.get_type_stability(history) == 0.25

    def test_stability_moves_with_each_new_record(self):
        steps = [
            CombinationType.VG,
            CombinationType.VG,
            CombinationType.LL,
            CombinationType.VG,
            CombinationType.LL,
            CombinationType.AA,
            CombinationType.AA,
            CombinationType.GG,
        ]
        history = [record(steps[0], utc(2025, 1, 1))]
        previous = ProfileTracker.get_type_stability(history)

        for offset, code in enumerate(steps[1:], start=1):
            seen = {r.combination_type for r in history}
            history.append(record(code, utc(2025, 1, 1) + timedelta(days=91 * offset)))
            stability = ProfileTracker.get_type_stability(history)

            if code in seen:
                assert stability >= previous
            else:
                assert stability < previous
            previous = stability

    def test_most_common(self):
        history = [
            record(CombinationType.LL, utc(2025, 1, 1)),
            record(CombinationType.VG, utc(2025, 4, 1)),
            record(CombinationType.VG, utc(2025, 7, 1)),
        ]
        assert ProfileTracker.get_most_common_type(history) == CombinationType.VG

    def test_most_common_tie_goes_to_first_seen(self):
        # Listed out of order: AA is chronologically first
        history = [
            record(CombinationType.GL, utc(2025, 4, 1)),
            record(CombinationType.AA, utc(2025, 1, 1)),
            record(CombinationType.GL, utc(2025, 7, 1)),
            record(CombinationType.AA, utc(2025, 10, 1)),
        ]
        assert ProfileTracker.get_most_common_type(history) == CombinationType.AA

    def test_most_common_of_empty_history(self):
        assert ProfileTracker.get_most_common_type([]) is None
        assert ProfileTracker.get_most_common_type([], default=CombinationType.VV) == CombinationType.VV

    def test_trend_is_chronological(self):
        history = [
            record(CombinationType.GL, utc(2025, 7, 1)),
            record(CombinationType.AA, utc(2025, 1, 1)),
            record(CombinationType.VG, utc(2025, 4, 1)),
        ]
        assert ProfileTracker.get_type_change_trend(history) == [
            CombinationType.AA,
            CombinationType.VG,
            CombinationType.GL,
        ]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
