"""
Assessment Session State Machine

Walks one user through the 60-question battery.

STATES:
- NOT_STARTED: no test id, no responses
- IN_PROGRESS: current question index, phase and recorded responses
- COMPLETED: holds the final VGLAResult

Answering a question upserts its response and auto-advances. Answering
question index 29 (the last like-phase item) switches the phase to
dislike within the same call; answering index 59 finalizes.

The session never persists anything itself. After each successful
select_option() the caller is expected to save to_snapshot().
"""

from enum import Enum
from typing import Callable, NamedTuple, Optional
from uuid import uuid4

from vgla_engine.engine import question_bank
from vgla_engine.engine.combination import build_result
from vgla_engine.engine.errors import InvalidSessionStateError
from vgla_engine.models.assessment import (
    QUESTIONS_PER_PHASE,
    TOTAL_QUESTIONS,
    Phase,
    Question,
    Response,
    SessionSnapshot,
    VGLAResult,
    utc_now,
)


FIRST_INDEX = 0
LAST_LIKE_INDEX = QUESTIONS_PER_PHASE - 1
LAST_INDEX = TOTAL_QUESTIONS - 1


class SessionStatus(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class PhaseProgress(NamedTuple):
    current: int
    total: int
    phase: Phase


class SessionStats(NamedTuple):
    elapsed_seconds: float
    questions_answered: int
    phase: Phase


class TestSession:
    """
    In-memory state machine for a single assessment run.

    Args:
        clock: Returns the current time; injectable for tests.
        id_factory: Produces new test ids on start().
    """

    __test__ = False  # not a pytest test class

    def __init__(
        self,
        clock: Callable = utc_now,
        id_factory: Callable[[], str] = lambda: str(uuid4()),
    ):
        self._clock = clock
        self._id_factory = id_factory
        self._questions = question_bank.generate_questions()
        self.reset()

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def start(self) -> None:
        """Begin a fresh run, discarding anything recorded so far."""
        self.reset()
        now = self._clock()
        self._status = SessionStatus.IN_PROGRESS
        self._test_id = self._id_factory()
        self._start_time = now
        self._last_updated_time = now

    def select_option(self, option_text: str) -> Response:
        """
        Record the answer for the current question and move on.

        Raises:
            InvalidSessionStateError: session is not in progress
            InvalidOptionError: text is not a canonical option
            IncompleteAssessmentError: the last question was answered but
                other questions are still unanswered. The answer is kept and
                the session stays on the last question.
        """
        self._require_in_progress("select an option")
        index = question_bank.option_index(option_text)

        now = self._clock()
        question = self.current_question
        response = Response(
            question_id=question.id,
            selected_option=option_text,
            dimension=question_bank.get_dimension_for_option(index),
            timestamp=now,
        )
        self._upsert(response)
        self._last_updated_time = now

        if self._question_index == LAST_LIKE_INDEX:
            self._phase = Phase.DISLIKE

        if self._question_index < LAST_INDEX:
            self._question_index += 1
        else:
            self._finalize()

        return response

    def next_question(self) -> None:
        if self._question_index < LAST_INDEX:
            self._question_index += 1

    def previous_question(self) -> None:
        if self._question_index > FIRST_INDEX:
            self._question_index -= 1

    def resume_from(self, snapshot: SessionSnapshot) -> None:
        """Restore an in-progress run exactly as it was saved."""
        if snapshot.is_completed:
            raise InvalidSessionStateError(
                f"Cannot resume completed test {snapshot.test_id}"
            )

        self._status = SessionStatus.IN_PROGRESS
        self._test_id = snapshot.test_id
        self._question_index = snapshot.question_index
        self._phase = snapshot.phase
        self._responses = list(snapshot.responses)
        self._start_time = snapshot.start_time
        self._last_updated_time = snapshot.last_updated_time
        self._result = None

    def reset(self) -> None:
        self._status = SessionStatus.NOT_STARTED
        self._test_id: Optional[str] = None
        self._question_index = FIRST_INDEX
        self._phase = Phase.LIKE
        self._responses: list[Response] = []
        self._start_time = None
        self._last_updated_time = None
        self._result: Optional[VGLAResult] = None

    def to_snapshot(self) -> SessionSnapshot:
        if self._status == SessionStatus.NOT_STARTED:
            raise InvalidSessionStateError("No assessment in progress to snapshot")

        return SessionSnapshot(
            test_id=self._test_id,
            question_index=self._question_index,
            phase=self._phase,
            responses=list(self._responses),
            start_time=self._start_time,
            last_updated_time=self._last_updated_time,
            is_completed=self._status == SessionStatus.COMPLETED,
        )

    # -------------------------------------------------------------------------
    # Read-only state
    # -------------------------------------------------------------------------

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def test_id(self) -> Optional[str]:
        return self._test_id

    @property
    def question_index(self) -> int:
        return self._question_index

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def responses(self) -> list[Response]:
        return list(self._responses)

    @property
    def result(self) -> Optional[VGLAResult]:
        return self._result

    @property
    def is_completed(self) -> bool:
        return self._status == SessionStatus.COMPLETED

    @property
    def questions(self) -> list[Question]:
        return list(self._questions)

    @property
    def current_question(self) -> Question:
        return self._questions[self._question_index]

    @property
    def current_response(self) -> Optional[Response]:
        question_id = self.current_question.id
        for response in self._responses:
            if response.question_id == question_id:
                return response
        return None

    @property
    def can_go_to_previous_question(self) -> bool:
        return self._question_index > FIRST_INDEX

    @property
    def can_go_to_next_question(self) -> bool:
        return self._question_index < LAST_INDEX

    @property
    def progress(self) -> float:
        """Fraction of the battery passed, based on the question index."""
        return self._question_index / TOTAL_QUESTIONS

    @property
    def phase_progress(self) -> PhaseProgress:
        return PhaseProgress(
            current=self._question_index % QUESTIONS_PER_PHASE,
            total=QUESTIONS_PER_PHASE,
            phase=self._phase,
        )

    @property
    def stats(self) -> SessionStats:
        elapsed = 0.0
        if self._start_time is not None and self._last_updated_time is not None:
            elapsed = (self._last_updated_time - self._start_time).total_seconds()
        return SessionStats(
            elapsed_seconds=elapsed,
            questions_answered=len(self._responses),
            phase=self._phase,
        )

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _require_in_progress(self, action: str) -> None:
        if self._status != SessionStatus.IN_PROGRESS:
            raise InvalidSessionStateError(
                f"Cannot {action} while session is {self._status.value}"
            )

    def _upsert(self, response: Response) -> None:
        for position, existing in enumerate(self._responses):
            if existing.question_id == response.question_id:
                self._responses[position] = response
                return
        self._responses.append(response)

    def _finalize(self) -> None:
        self._result = build_result(self._responses, analysis_date=self._last_updated_time)
        self._status = SessionStatus.COMPLETED
