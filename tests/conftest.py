"""Shared fixtures: a controllable clock and response/result factories."""

from datetime import datetime, timedelta, timezone

import pytest

from vgla_engine.engine import question_bank
from vgla_engine.models.assessment import (
    QUESTIONS_PER_PHASE,
    CombinationType,
    Dimension,
    Response,
    ScoreVector,
    VGLAResult,
)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 1, 15, 9, 0, tzinfo=timezone.utc))


def _as_list(dimensions) -> list[Dimension]:
    if isinstance(dimensions, Dimension):
        return [dimensions] * QUESTIONS_PER_PHASE
    return list(dimensions)


@pytest.fixture
def make_responses():
    """
    Build responses from per-question dimension choices.

    make_responses(likes, dislikes) takes a Dimension (used for every
    question of that phase) or a list of up to 30 Dimensions.
    """
    def factory(likes=(), dislikes=()):
        responses = []
        for offset, choices in ((0, likes), (QUESTIONS_PER_PHASE, dislikes)):
            for index, dimension in enumerate(_as_list(choices)):
                responses.append(Response(
                    question_id=offset + index + 1,
                    selected_option=question_bank.get_option_for_dimension(dimension),
                    dimension=dimension,
                ))
        return responses
    return factory


@pytest.fixture
def make_result():
    """Build a VGLAResult for a combination type with zero scores."""
    def factory(combination: CombinationType) -> VGLAResult:
        return VGLAResult(
            score=ScoreVector(),
            primary_type=combination.primary,
            secondary_type=combination.secondary,
            tertiary_type=Dimension.LOGIC,
            blind_spot=Dimension.ACTION,
            combination_type=combination,
        )
    return factory
