"""
Combination Resolver

Derives the primary/secondary dimensions and the two-letter combination
code from the ranked total scores.

The two leading dimensions form a mixed code (e.g. VG) only while their
totals are within COMBINATION_THRESHOLD of each other; beyond that the
leader dominates and the code is doubled (e.g. VV).
"""

from datetime import datetime
from typing import Iterable, Optional, Sequence

from vgla_engine.engine import scoring
from vgla_engine.engine.errors import IncompleteAssessmentError
from vgla_engine.models.assessment import (
    DIMENSION_ORDER,
    CombinationType,
    Dimension,
    Resolution,
    Response,
    ScoreVector,
    VGLAResult,
    utc_now,
)


COMBINATION_THRESHOLD = 3


def resolve(
    order_total: Sequence[Dimension],
    total: dict[Dimension, int],
) -> Resolution:
    if len(order_total) != len(DIMENSION_ORDER) or set(order_total) != set(DIMENSION_ORDER):
        raise ValueError("order_total must rank all four dimensions exactly once")

    primary = order_total[0]
    secondary = order_total[1]
    gap = abs(total[primary] - total[secondary])

    if gap < COMBINATION_THRESHOLD:
        combination = CombinationType.from_dimensions(primary, secondary)
    else:
        combination = CombinationType.from_dimensions(primary, primary)

    return Resolution(
        primary=primary,
        secondary=secondary,
        combination_type=combination,
        blind_spot=order_total[3],
        gap=gap,
    )


def resolve_score(score: ScoreVector) -> Resolution:
    return resolve(score.order_total, score.total)


def build_result(
    responses: Iterable[Response],
    analysis_date: Optional[datetime] = None,
) -> VGLAResult:
    """
    Score and resolve a complete response set.

    Raises IncompleteAssessmentError if any of the 60 questions is
    unanswered; a profile must never be built from a partial battery.
    """
    responses = list(responses)
    missing = scoring.missing_question_ids(responses)
    if missing:
        raise IncompleteAssessmentError(missing)

    score = scoring.score(responses)
    resolution = resolve_score(score)

    return VGLAResult(
        score=score,
        primary_type=resolution.primary,
        secondary_type=resolution.secondary,
        tertiary_type=score.order_total[2],
        blind_spot=resolution.blind_spot,
        combination_type=resolution.combination_type,
        analysis_date=analysis_date or utc_now(),
    )
