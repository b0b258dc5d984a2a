"""Exceptions raised by the assessment engine."""

from typing import Iterable


class AssessmentError(Exception):
    """Base exception for assessment engine errors."""
    pass


class InvalidOptionError(AssessmentError, ValueError):
    """Option text or index is not one of the four canonical options."""
    pass


class InvalidSessionStateError(AssessmentError):
    """Operation is not allowed in the session's current state."""
    pass


class IncompleteAssessmentError(AssessmentError):
    """Finalization was attempted with unanswered questions."""

    def __init__(self, missing_question_ids: Iterable[int]):
        self.missing_question_ids = sorted(missing_question_ids)
        super().__init__(
            f"Cannot finalize assessment: {len(self.missing_question_ids)} "
            f"question(s) unanswered {self.missing_question_ids}"
        )
