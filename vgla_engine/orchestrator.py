"""
Main Orchestrator for the VGLA Engine

This module ties the pure engine to storage and audit logging and defines
the end-to-end assessment flow:
    check for saved progress → start or resume → answer 60 questions
    (progress saved after every answer) → finalize → update profile

DESIGN DECISION: The orchestrator enforces the boundaries:
- Saved progress is validated before it is offered for resumption
- A failed save raises StorageError; in-memory state is never half-applied
- A profile is only built from a complete set of 60 answers
- Every step is audited
"""

from datetime import timedelta
from typing import Callable, Optional
from uuid import UUID

import structlog

from vgla_engine.audit import AuditLogger, create_correlation_id
from vgla_engine.config import get_settings
from vgla_engine.engine import (
    IncompleteAssessmentError,
    InvalidSessionStateError,
    ProfileTracker,
    ResumeAction,
    ResumeDecision,
    ResumeReason,
    TestSession,
    decide_resume,
)
from vgla_engine.models.assessment import SessionSnapshot, VGLAResult, utc_now
from vgla_engine.models.profile import HistoryRecord, Profile
from vgla_engine.services.storage import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsProfileStorage,
    GoogleSheetsSnapshotStorage,
    InMemoryAuditStorage,
    InMemoryProfileStorage,
    InMemorySnapshotStorage,
    ProfileStorageInterface,
    SnapshotStorageInterface,
    StorageError,
)
from vgla_engine.validation import SnapshotValidator


logger = structlog.get_logger(__name__)


class AssessmentFlow:
    """
    Orchestrates one user's assessment runs.

    Flow:
    1. Check → Load the saved snapshot, validate it, decide resume/start new
    2. Start / Resume → Drive a TestSession
    3. Answer → select_option, then save progress
    4. Finalize → Score and resolve, clear progress
    5. Profile → Create or update the profile, save it

    Profile objects are never mutated; the flow swaps its reference to the
    new profile only after it has been saved.
    """

    def __init__(
        self,
        snapshot_storage: SnapshotStorageInterface,
        profile_storage: ProfileStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        tracker: Optional[ProfileTracker] = None,
        validator: Optional[SnapshotValidator] = None,
        clock: Callable = utc_now,
        snapshot_max_age: Optional[timedelta] = None,
    ):
        self._snapshot_storage = snapshot_storage
        self._profile_storage = profile_storage
        self._audit_logger = audit_logger or AuditLogger()
        self._clock = clock
        self._tracker = tracker or ProfileTracker(clock=clock)
        self._validator = validator or SnapshotValidator()
        self._max_age = snapshot_max_age or get_settings().assessment.snapshot_max_age

        self._session = TestSession(clock=clock)
        self._user_id: Optional[str] = None
        self._correlation_id: Optional[UUID] = None
        self._profile: Optional[Profile] = None
        self._saved_test_id: Optional[str] = None

    @property
    def session(self) -> TestSession:
        return self._session

    @property
    def user_id(self) -> Optional[str]:
        return self._user_id

    @property
    def correlation_id(self) -> Optional[UUID]:
        return self._correlation_id

    @property
    def profile(self) -> Optional[Profile]:
        """The last profile this flow saved or loaded."""
        return self._profile

    # -------------------------------------------------------------------------
    # Start / resume
    # -------------------------------------------------------------------------

    async def check_for_incomplete_test(self, user_id: str) -> ResumeDecision:
        """
        Decide whether the user's saved progress can be resumed.

        Invalid, completed and stale snapshots are reported with the
        reason and audited as discarded; they are never repaired.
        """
        raw = await self._snapshot_storage.load_raw_snapshot(user_id)
        if raw is None:
            return decide_resume(None, self._clock(), self._max_age)

        validation = self._validator.validate(raw)
        if not validation.is_valid:
            logger.warning(
                "snapshot_invalid",
                user_id=user_id,
                summary=self._validator.get_summary(validation),
            )
            await self._audit_logger.log_snapshot_discarded(
                user_id=user_id,
                reason=ResumeReason.INVALID.value,
            )
            return ResumeDecision(ResumeAction.START_NEW, ResumeReason.INVALID)

        decision = decide_resume(validation.snapshot, self._clock(), self._max_age)
        if decision.reason in (ResumeReason.STALE, ResumeReason.COMPLETED):
            await self._audit_logger.log_snapshot_discarded(
                user_id=user_id,
                reason=decision.reason.value,
            )
        return decision

    async def start_new_test(self, user_id: str) -> TestSession:
        """
        Start a fresh run, replacing any saved progress.

        Raises:
            StorageError: If the initial progress save fails
        """
        self._user_id = user_id
        self._correlation_id = create_correlation_id()
        self._session.start()

        await self._audit_logger.log_assessment_started(
            test_id=self._session.test_id,
            user_id=user_id,
            correlation_id=self._correlation_id,
        )
        await self._save_progress()
        return self._session

    async def resume_test(self, user_id: str, snapshot: SessionSnapshot) -> TestSession:
        """
        Resume from a snapshot returned by check_for_incomplete_test().

        Raises:
            InvalidSessionStateError: If the snapshot belongs to a completed test
        """
        self._session.resume_from(snapshot)
        self._user_id = user_id
        self._correlation_id = create_correlation_id()

        await self._audit_logger.log_assessment_resumed(
            test_id=snapshot.test_id,
            user_id=user_id,
            question_index=snapshot.question_index,
            answered=snapshot.answered_count,
            correlation_id=self._correlation_id,
        )
        return self._session

    async def abandon_test(self) -> None:
        """Drop the current run and its saved progress."""
        if self._user_id is None:
            return

        test_id = self._session.test_id
        await self._snapshot_storage.clear_snapshot(self._user_id)
        if test_id is not None:
            await self._audit_logger.log_assessment_abandoned(
                test_id=test_id,
                user_id=self._user_id,
                correlation_id=self._correlation_id or create_correlation_id(),
            )
        self._session.reset()

    # -------------------------------------------------------------------------
    # Answering
    # -------------------------------------------------------------------------

    async def select_option(self, option_text: str) -> Optional[VGLAResult]:
        """
        Answer the current question and save progress.

        Returns:
            The VGLAResult when this answer completed the assessment,
            otherwise None.

        Raises:
            InvalidOptionError: Unknown option text (nothing recorded)
            InvalidSessionStateError: No run in progress
            IncompleteAssessmentError: Last question answered with others
                still missing; progress is saved before re-raising
            StorageError: Progress or profile could not be saved. The
                session has already advanced.
        """
        phase_before = self._session.phase

        try:
            self._session.select_option(option_text)
        except IncompleteAssessmentError as e:
            await self._audit_logger.log_finalize_rejected(
                test_id=self._session.test_id,
                missing_question_ids=e.missing_question_ids,
                correlation_id=self._correlation_id,
            )
            await self._save_progress()
            raise

        if self._session.phase != phase_before:
            await self._audit_logger.log_phase_changed(
                test_id=self._session.test_id,
                phase=self._session.phase.value,
                correlation_id=self._correlation_id,
            )

        if self._session.is_completed:
            return await self.save_result()

        await self._save_progress()
        return None

    async def next_question(self) -> None:
        self._session.next_question()
        await self._save_progress()

    async def previous_question(self) -> None:
        self._session.previous_question()
        await self._save_progress()

    async def _save_progress(self) -> None:
        try:
            await self._snapshot_storage.save_snapshot(
                self._user_id,
                self._session.to_snapshot(),
            )
        except StorageError as e:
            await self._audit_logger.log_progress_save_failed(
                test_id=self._session.test_id,
                error_message=str(e),
                correlation_id=self._correlation_id,
            )
            raise

    # -------------------------------------------------------------------------
    # Completion
    # -------------------------------------------------------------------------

    async def save_result(self) -> VGLAResult:
        """
        Fold the completed result into the user's profile and save it.

        Safe to call again after a StorageError: the profile is rebuilt
        from the stored one. Once saved, a result is consumed and cannot
        be folded into the profile a second time.

        Raises:
            InvalidSessionStateError: The session has not completed, or its
                result was already saved
            StorageError: If the profile save fails
        """
        result = self._session.result
        if result is None:
            raise InvalidSessionStateError("No completed assessment to save")
        if self._session.test_id == self._saved_test_id:
            raise InvalidSessionStateError(
                f"Assessment {self._saved_test_id} was already saved"
            )

        existing = await self._profile_storage.get_profile(self._user_id)
        if existing is None:
            profile = self._tracker.initialize(self._user_id, result)
        else:
            profile = self._tracker.update_type(existing, result)

        try:
            await self._profile_storage.save_profile(profile)
        except StorageError as e:
            await self._audit_logger.log_profile_save_failed(
                user_id=self._user_id,
                error_message=str(e),
                correlation_id=self._correlation_id,
            )
            raise

        self._saved_test_id = self._session.test_id
        self._profile = profile
        await self._audit_completion(result, existing, profile)

        try:
            await self._snapshot_storage.clear_snapshot(self._user_id)
        except StorageError as e:
            # The profile is saved; leftover progress is discarded on next check
            await self._audit_logger.log_error(
                error_type="snapshot_clear_failed",
                error_message=str(e),
                details={"user_id": self._user_id},
                correlation_id=self._correlation_id,
            )

        return result

    async def _audit_completion(
        self,
        result: VGLAResult,
        previous: Optional[Profile],
        profile: Profile,
    ) -> None:
        await self._audit_logger.log_assessment_completed(
            test_id=self._session.test_id,
            combination_type=result.combination_type.value,
            scores={d.value: v for d, v in result.scores.items()},
            correlation_id=self._correlation_id,
        )

        if previous is None:
            await self._audit_logger.log_profile_created(
                user_id=profile.user_id,
                combination_type=profile.current_combination_type.value,
                correlation_id=self._correlation_id,
            )
            return

        await self._audit_logger.log_profile_updated(
            user_id=profile.user_id,
            combination_type=profile.current_combination_type.value,
            assessment_count=profile.assessment_count,
            correlation_id=self._correlation_id,
        )
        if previous.current_combination_type != profile.current_combination_type:
            await self._audit_logger.log_type_changed(
                user_id=profile.user_id,
                previous_type=previous.current_combination_type.value,
                new_type=profile.current_combination_type.value,
                correlation_id=self._correlation_id,
            )

    # -------------------------------------------------------------------------
    # Profiles
    # -------------------------------------------------------------------------

    async def get_profile(self, user_id: str) -> Optional[Profile]:
        profile = await self._profile_storage.get_profile(user_id)
        if profile is not None:
            self._profile = profile
        return profile

    async def get_history(self, user_id: str) -> list[HistoryRecord]:
        return await self._profile_storage.list_history(user_id)

    async def check_retake(self, user_id: str) -> bool:
        """
        Pull-based retest check.

        Flags the stored profile the first time the retest date is reached.
        Users without a profile have nothing to retake.
        """
        profile = await self._profile_storage.get_profile(user_id)
        if profile is None:
            return False

        if not self._tracker.check_retake_needed(profile):
            self._profile = profile
            return False

        if not profile.should_retake_test:
            flagged = self._tracker.mark_retake_if_due(profile)
            await self._profile_storage.save_profile(flagged)
            self._profile = flagged
            await self._audit_logger.log_retake_due(
                user_id=user_id,
                next_test_date=flagged.next_test_date,
            )
        else:
            self._profile = profile

        return True


def create_app_components(
    storage_backend: Optional[str] = None,
) -> AssessmentFlow:
    """
    Factory function to create the assessment flow.

    Args:
        storage_backend: "memory" or "google_sheets". Defaults to the
                        VGLA_STORAGE_BACKEND setting. If Google Sheets is
                        not configured, falls back to in-memory storage.
    """
    backend = storage_backend or get_settings().assessment.storage_backend

    if backend == "google_sheets":
        try:
            sheets_client = GoogleSheetsClient()
            return AssessmentFlow(
                snapshot_storage=GoogleSheetsSnapshotStorage(sheets_client),
                profile_storage=GoogleSheetsProfileStorage(sheets_client),
                audit_logger=AuditLogger(GoogleSheetsAuditStorage(sheets_client)),
            )
        except Exception as e:
            # Storage not configured - continue without it
            logger.warning("storage_not_configured", backend=backend, error=str(e))

    return AssessmentFlow(
        snapshot_storage=InMemorySnapshotStorage(),
        profile_storage=InMemoryProfileStorage(),
        audit_logger=AuditLogger(InMemoryAuditStorage()),
    )
