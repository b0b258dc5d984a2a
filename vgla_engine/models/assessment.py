"""
Core Assessment Models for the VGLA Engine

These models define the strict schemas for everything that flows through
the assessment: questions, responses, scores, results and the persisted
session snapshot.

DESIGN DECISION: Dimensions and combination codes are closed enums.
The declared order of Dimension (V, G, L, A) is load-bearing: question
dimension assignment, option mapping and score tie-breaks all use it.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


TOTAL_QUESTIONS = 60
QUESTIONS_PER_PHASE = 30
MAX_DIMENSION_SCORE = 30


def utc_now() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Read a naive timestamp as UTC; aware ones are converted to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class Dimension(str, Enum):
    """
    The four VGLA thinking dimensions.

    Declaration order is the canonical priority used to break score ties.
    """
    VISION = "V"
    GOAL = "G"      # also called "Gracious"
    LOGIC = "L"
    ACTION = "A"

    @property
    def label(self) -> str:
        return _DIMENSION_LABELS[self]


_DIMENSION_LABELS = {
    Dimension.VISION: "Vision",
    Dimension.GOAL: "Gracious",
    Dimension.LOGIC: "Logic",
    Dimension.ACTION: "Action",
}

DIMENSION_ORDER: tuple[Dimension, ...] = tuple(Dimension)


class Phase(str, Enum):
    """Questionnaire phase. Ids 1-30 are LIKE, 31-60 are DISLIKE."""
    LIKE = "like"
    DISLIKE = "dislike"


class CombinationType(str, Enum):
    """
    The 16 canonical combination codes.

    Codes are order-sensitive: VG and GV are different types.
    Doubled codes (VV, GG, LL, AA) are the "pure" types.
    """
    # Vision first
    VV = "VV"
    VG = "VG"
    VL = "VL"
    VA = "VA"
    # Goal first
    GV = "GV"
    GG = "GG"
    GL = "GL"
    GA = "GA"
    # Logic first
    LV = "LV"
    LG = "LG"
    LL = "LL"
    LA = "LA"
    # Action first
    AV = "AV"
    AG = "AG"
    AL = "AL"
    AA = "AA"

    @property
    def primary(self) -> Dimension:
        return Dimension(self.value[0])

    @property
    def secondary(self) -> Dimension:
        return Dimension(self.value[1])

    @property
    def is_pure(self) -> bool:
        return self.value[0] == self.value[1]

    @classmethod
    def from_dimensions(
        cls,
        primary: Dimension,
        secondary: Dimension,
    ) -> "CombinationType":
        return cls(f"{primary.value}{secondary.value}")


# =============================================================================
# QUESTIONNAIRE MODELS
# =============================================================================

class Question(BaseModel):
    """A single forced-choice item of the 60-question battery."""
    model_config = ConfigDict(frozen=True)

    id: int = Field(..., ge=1, le=TOTAL_QUESTIONS)
    text: str = Field(..., min_length=1)
    dimension: Dimension
    phase: Phase

    @model_validator(mode='after')
    def validate_phase_matches_id(self) -> 'Question':
        expected = Phase.LIKE if self.id <= QUESTIONS_PER_PHASE else Phase.DISLIKE
        if self.phase != expected:
            raise ValueError(
                f"Question {self.id} must be in the {expected.value} phase"
            )
        return self


class Response(BaseModel):
    """
    The user's answer to one question.

    A session holds at most one Response per question id; answering the
    same question again replaces it.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    question_id: int = Field(..., ge=1, le=TOTAL_QUESTIONS)
    selected_option: str = Field(..., min_length=1)
    dimension: Dimension
    timestamp: datetime = Field(default_factory=utc_now)

    @field_validator('timestamp')
    @classmethod
    def normalize_timestamp(cls, v: datetime) -> datetime:
        return as_utc(v)

    @property
    def phase(self) -> Phase:
        return Phase.LIKE if self.question_id <= QUESTIONS_PER_PHASE else Phase.DISLIKE


# =============================================================================
# SCORING MODELS
# =============================================================================

def _zero_scores() -> dict[Dimension, int]:
    return {dimension: 0 for dimension in DIMENSION_ORDER}


class ScoreVector(BaseModel):
    """
    Per-dimension like/dislike/total scores and their rankings.

    INVARIANT: total[d] == like[d] + dislike[d] for every dimension,
    like values are never negative and dislike values never positive.
    """

    like: dict[Dimension, int] = Field(default_factory=_zero_scores)
    dislike: dict[Dimension, int] = Field(default_factory=_zero_scores)
    total: dict[Dimension, int] = Field(default_factory=_zero_scores)
    order_like: list[Dimension] = Field(default_factory=lambda: list(DIMENSION_ORDER))
    order_dislike: list[Dimension] = Field(default_factory=lambda: list(DIMENSION_ORDER))
    order_total: list[Dimension] = Field(default_factory=lambda: list(DIMENSION_ORDER))

    @model_validator(mode='after')
    def validate_invariants(self) -> 'ScoreVector':
        for name in ("like", "dislike", "total"):
            if set(getattr(self, name)) != set(DIMENSION_ORDER):
                raise ValueError(f"{name} scores must cover all four dimensions")

        for dimension in DIMENSION_ORDER:
            if self.like[dimension] < 0:
                raise ValueError(f"Like score for {dimension.value} cannot be negative")
            if self.dislike[dimension] > 0:
                raise ValueError(f"Dislike score for {dimension.value} cannot be positive")
            if self.total[dimension] != self.like[dimension] + self.dislike[dimension]:
                raise ValueError(f"Total score for {dimension.value} must equal like + dislike")

        for name in ("order_like", "order_dislike", "order_total"):
            order = getattr(self, name)
            if len(order) != len(DIMENSION_ORDER) or set(order) != set(DIMENSION_ORDER):
                raise ValueError(f"{name} must rank each dimension exactly once")

        return self


class Resolution(BaseModel):
    """Output of the combination resolver."""
    model_config = ConfigDict(frozen=True)

    primary: Dimension
    secondary: Dimension
    combination_type: CombinationType
    blind_spot: Dimension
    gap: int = Field(..., ge=0)


class VGLAResult(BaseModel):
    """
    Final result of a completed assessment.

    Consumed once by the profile tracker and as an opaque value by
    report and personalization collaborators.
    """
    model_config = ConfigDict(frozen=True)

    score: ScoreVector
    primary_type: Dimension
    secondary_type: Dimension
    tertiary_type: Dimension
    blind_spot: Dimension
    combination_type: CombinationType
    analysis_date: datetime = Field(default_factory=utc_now)

    @field_validator('analysis_date')
    @classmethod
    def normalize_analysis_date(cls, v: datetime) -> datetime:
        return as_utc(v)

    @property
    def scores(self) -> dict[Dimension, int]:
        """Total scores per dimension."""
        return dict(self.score.total)

    @property
    def order(self) -> list[Dimension]:
        return list(self.score.order_total)

    @property
    def top_two_gap(self) -> int:
        return abs(
            self.score.total[self.primary_type] - self.score.total[self.secondary_type]
        )

    def radar_data(self) -> list[tuple[Dimension, float]]:
        """Total scores normalized by the per-dimension maximum of 30."""
        return [
            (dimension, self.score.total[dimension] / MAX_DIMENSION_SCORE)
            for dimension in DIMENSION_ORDER
        ]


# =============================================================================
# SESSION SNAPSHOT (persisted progress)
# =============================================================================

class SessionSnapshot(BaseModel):
    """
    Persisted progress of an in-flight assessment.

    Restoring a snapshot and snapshotting again must yield an equal value,
    so every field here is restored verbatim by the session.
    """

    test_id: str = Field(..., min_length=1)
    question_index: int = Field(default=0, ge=0, le=TOTAL_QUESTIONS - 1)
    phase: Phase = Phase.LIKE
    responses: list[Response] = Field(default_factory=list)
    start_time: datetime = Field(default_factory=utc_now)
    last_updated_time: datetime = Field(default_factory=utc_now)
    is_completed: bool = False

    @field_validator('start_time', 'last_updated_time')
    @classmethod
    def normalize_times(cls, v: datetime) -> datetime:
        return as_utc(v)

    @property
    def answered_count(self) -> int:
        return len(self.responses)

    @property
    def elapsed_seconds(self) -> float:
        return (self.last_updated_time - self.start_time).total_seconds()

    def age_at(self, moment: datetime) -> float:
        """Seconds since the snapshot was last updated."""
        return (moment - self.last_updated_time).total_seconds()

    def response_for(self, question_id: int) -> Optional[Response]:
        for response in self.responses:
            if response.question_id == question_id:
                return response
        return None
