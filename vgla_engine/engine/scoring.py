"""
Scoring Engine

Pure mapping from a set of responses to a ScoreVector.

Like-phase answers (ids 1-30) add one point to the chosen dimension,
dislike-phase answers (ids 31-60) take one away. Rankings are descending
by score; equal scores keep declaration order (V > G > L > A), which
Python's stable sort gives us for free.

Partial response sets are scored as-is. Callers that need a complete
battery check is_complete() first.
"""

from typing import Iterable

from vgla_engine.models.assessment import (
    DIMENSION_ORDER,
    QUESTIONS_PER_PHASE,
    TOTAL_QUESTIONS,
    Dimension,
    Response,
    ScoreVector,
)


def rank_dimensions(scores: dict[Dimension, int]) -> list[Dimension]:
    """Dimensions sorted by score, highest first, ties in declaration order."""
    return sorted(DIMENSION_ORDER, key=lambda dimension: -scores[dimension])


def score(responses: Iterable[Response]) -> ScoreVector:
    like = {dimension: 0 for dimension in DIMENSION_ORDER}
    dislike = {dimension: 0 for dimension in DIMENSION_ORDER}

    for response in responses:
        if response.question_id <= QUESTIONS_PER_PHASE:
            like[response.dimension] += 1
        else:
            dislike[response.dimension] -= 1

    total = {
        dimension: like[dimension] + dislike[dimension]
        for dimension in DIMENSION_ORDER
    }

    return ScoreVector(
        like=like,
        dislike=dislike,
        total=total,
        order_like=rank_dimensions(like),
        order_dislike=rank_dimensions(dislike),
        order_total=rank_dimensions(total),
    )


def missing_question_ids(responses: Iterable[Response]) -> list[int]:
    answered = {response.question_id for response in responses}
    return [
        question_id
        for question_id in range(1, TOTAL_QUESTIONS + 1)
        if question_id not in answered
    ]


def is_complete(responses: Iterable[Response]) -> bool:
    return not missing_question_ids(responses)
