"""
Integration tests for the assessment flow.

Runs the full flow against in-memory storage with a fake clock.
"""

import asyncio
import re
from datetime import timedelta

import pytest

from vgla_engine.audit import AuditLogger
from vgla_engine.engine import (
    IncompleteAssessmentError,
    InvalidSessionStateError,
    ResumeAction,
    ResumeReason,
    SessionStatus,
    question_bank,
)
from vgla_engine.models.assessment import CombinationType, Dimension
from vgla_engine.models.audit import AuditEventType
from vgla_engine.orchestrator import AssessmentFlow, create_app_components
from vgla_engine.services.storage import (
    InMemoryAuditStorage,
    InMemoryProfileStorage,
    InMemorySnapshotStorage,
    StorageError,
)

V, G, L, A = Dimension.VISION, Dimension.GOAL, Dimension.LOGIC, Dimension.ACTION
USER = "user-1"


def run(coro):
    return asyncio.run(coro)


class FailingSnapshotStorage(InMemorySnapshotStorage):
    def __init__(self):
        super().__init__()
        self.fail = False

    async def save_snapshot(self, user_id, snapshot):
        if self.fail:
            raise StorageError("sheet unavailable")
        return await super().save_snapshot(user_id, snapshot)


class FailingProfileStorage(InMemoryProfileStorage):
    def __init__(self):
        super().__init__()
        self.fail = False

    async def save_profile(self, profile):
        if self.fail:
            raise StorageError("sheet unavailable")
        return await super().save_profile(profile)


@pytest.fixture
def snapshots():
    return FailingSnapshotStorage()


@pytest.fixture
def profile_storage():
    return FailingProfileStorage()


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def make_flow(snapshots, profile_storage, audit_storage, clock):
    def factory() -> AssessmentFlow:
        return AssessmentFlow(
            snapshot_storage=snapshots,
            profile_storage=profile_storage,
            audit_logger=AuditLogger(audit_storage),
            clock=clock,
            snapshot_max_age=timedelta(days=30),
        )
    return factory


@pytest.fixture
def flow(make_flow):
    return make_flow()


def answer(flow: AssessmentFlow, dimension: Dimension, times: int = 1):
    result = None
    for _ in range(times):
        result = run(flow.select_option(question_bank.get_option_for_dimension(dimension)))
    return result


def complete(flow: AssessmentFlow, likes: Dimension, dislikes: Dimension):
    run(flow.start_new_test(USER))
    answer(flow, likes, 30)
    return answer(flow, dislikes, 30)


def event_types(audit_storage) -> list[AuditEventType]:
    return [event.event_type for event in audit_storage._events]


class TestStartAndResume:
    """Tests for the check → start/resume step."""

    def test_nothing_saved(self, flow):
        decision = run(flow.check_for_incomplete_test(USER))
        assert decision.action == ResumeAction.START_NEW
        assert decision.reason == ResumeReason.NO_SNAPSHOT

    def test_start_saves_progress(self, flow, snapshots):
        run(flow.start_new_test(USER))
        assert run(snapshots.load_snapshot(USER)).test_id == flow.session.test_id

    def test_resume_in_a_new_flow(self, flow, make_flow, clock):
        run(flow.start_new_test(USER))
        answer(flow, G, 5)
        saved = flow.session.to_snapshot()

        clock.advance(days=2)
        later = make_flow()
        decision = run(later.check_for_incomplete_test(USER))
        assert decision.should_resume

        run(later.resume_test(USER, decision.snapshot))
        assert later.session.to_snapshot() == saved
        assert later.session.question_index == 5

    def test_stale_progress_is_discarded(self, flow, clock, audit_storage):
        run(flow.start_new_test(USER))
        answer(flow, G, 5)
        clock.advance(days=31)

        decision = run(flow.check_for_incomplete_test(USER))

        assert decision.reason == ResumeReason.STALE
        assert AuditEventType.SNAPSHOT_DISCARDED in event_types(audit_storage)

    def test_corrupt_progress_is_invalid(self, flow, snapshots, audit_storage):
        snapshots._snapshots[USER] = "{definitely not a snapshot"

        decision = run(flow.check_for_incomplete_test(USER))

        assert decision.action == ResumeAction.START_NEW
        assert decision.reason == ResumeReason.INVALID
        assert AuditEventType.SNAPSHOT_DISCARDED in event_types(audit_storage)

    def test_naive_timestamps_are_read_as_utc(self, flow, snapshots, clock):
        run(flow.start_new_test(USER))
        answer(flow, L, 4)
        snapshots._snapshots[USER] = re.sub(r'(Z|\+00:00)"', '"', snapshots._snapshots[USER])
        assert "Z\"" not in snapshots._snapshots[USER]

        clock.advance(hours=1)
        decision = run(flow.check_for_incomplete_test(USER))

        assert decision.should_resume
        assert decision.snapshot.last_updated_time.tzinfo is not None
        assert decision.snapshot.answered_count == 4

    def test_abandon(self, flow, snapshots, audit_storage):
        run(flow.start_new_test(USER))
        answer(flow, V, 3)

        run(flow.abandon_test())

        assert run(snapshots.load_raw_snapshot(USER)) is None
        assert flow.session.status == SessionStatus.NOT_STARTED
        assert AuditEventType.ASSESSMENT_ABANDONED in event_types(audit_storage)


class TestCompletion:
    """Tests for finishing an assessment."""

    def test_first_assessment_creates_profile(self, flow, snapshots, profile_storage, audit_storage):
        result = complete(flow, V, A)

        assert result.combination_type == CombinationType.VV
        profile = run(profile_storage.get_profile(USER))
        assert profile.current_combination_type == CombinationType.VV
        assert profile.assessment_count == 1
        assert flow.profile == profile
        assert run(snapshots.load_raw_snapshot(USER)) is None

        types = event_types(audit_storage)
        assert types[0] == AuditEventType.ASSESSMENT_STARTED
        assert AuditEventType.PHASE_CHANGED in types
        assert AuditEventType.ASSESSMENT_COMPLETED in types
        assert AuditEventType.PROFILE_CREATED in types

    def test_type_change_is_audited(self, flow, clock, profile_storage, audit_storage):
        complete(flow, V, A)
        clock.advance(days=92)
        complete(flow, L, G)

        profile = run(profile_storage.get_profile(USER))
        assert profile.assessment_count == 2
        assert profile.has_type_changed
        assert profile.previous_combination_type == CombinationType.VV
        assert profile.current_combination_type == CombinationType.LL
        assert AuditEventType.TYPE_CHANGED in event_types(audit_storage)

    def test_incomplete_finalize_saves_progress(self, flow, snapshots, audit_storage):
        run(flow.start_new_test(USER))
        for _ in range(59):
            run(flow.next_question())

        with pytest.raises(IncompleteAssessmentError):
            answer(flow, L)

        saved = run(snapshots.load_snapshot(USER))
        assert saved.question_index == 59
        assert saved.response_for(60).dimension == L
        assert not saved.is_completed
        assert AuditEventType.FINALIZE_REJECTED in event_types(audit_storage)

    def test_result_is_saved_only_once(self, flow, profile_storage):
        complete(flow, V, A)

        with pytest.raises(InvalidSessionStateError):
            run(flow.save_result())

        assert len(run(profile_storage.list_history(USER))) == 1
        assert run(profile_storage.get_profile(USER)).assessment_count == 1


class TestSaveFailures:
    """A failed save raises and never half-applies state."""

    def test_progress_save_failure(self, flow, snapshots, audit_storage):
        run(flow.start_new_test(USER))
        answer(flow, V)
        snapshots.fail = True

        with pytest.raises(StorageError):
            answer(flow, G)

        # The session advanced; the store still holds the previous save
        assert flow.session.question_index == 2
        assert run(snapshots.load_snapshot(USER)).answered_count == 1
        assert AuditEventType.PROGRESS_SAVE_FAILED in event_types(audit_storage)

        snapshots.fail = False
        answer(flow, L)
        assert run(snapshots.load_snapshot(USER)).answered_count == 3

    def test_profile_save_failure_keeps_previous_profile(self, flow, clock, profile_storage, audit_storage):
        complete(flow, V, A)
        before = flow.profile
        clock.advance(days=92)

        profile_storage.fail = True
        with pytest.raises(StorageError):
            complete(flow, L, G)

        assert flow.profile is before
        assert run(profile_storage.get_profile(USER)) == before
        assert flow.session.is_completed
        assert AuditEventType.PROFILE_SAVE_FAILED in event_types(audit_storage)

        profile_storage.fail = False
        run(flow.save_result())
        saved = run(profile_storage.get_profile(USER))
        assert saved.assessment_count == 2
        assert saved.current_combination_type == CombinationType.LL


class TestRetake:
    """Tests for the pull-based retest check."""

    def test_no_profile(self, flow):
        assert not run(flow.check_retake(USER))

    def test_retake_flagged_once(self, flow, clock, profile_storage, audit_storage):
        complete(flow, V, A)
        next_test_date = flow.profile.next_test_date

        clock.now = next_test_date - timedelta(milliseconds=1)
        assert not run(flow.check_retake(USER))

        clock.now = next_test_date
        assert run(flow.check_retake(USER))
        assert run(flow.check_retake(USER))

        assert run(profile_storage.get_profile(USER)).should_retake_test
        assert event_types(audit_storage).count(AuditEventType.RETAKE_DUE) == 1


class TestFactory:
    """Tests for create_app_components()."""

    def test_memory_backend(self):
        flow = create_app_components("memory")
        assert isinstance(flow, AssessmentFlow)
        assert flow.session.status == SessionStatus.NOT_STARTED


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
