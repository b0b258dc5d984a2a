"""
VGLA Question Bank

The battery is fixed: 30 workplace scenarios, each asked twice. The first
pass (ids 1-30) asks for the option the user likes most, the second pass
(ids 31-60) for the option the user likes least.

Every question offers the same four options. The option's position decides
the dimension it scores for, so the option list and DIMENSION_ORDER must
stay aligned.
"""

from functools import lru_cache

from vgla_engine.engine.errors import InvalidOptionError
from vgla_engine.models.assessment import (
    DIMENSION_ORDER,
    QUESTIONS_PER_PHASE,
    Dimension,
    Phase,
    Question,
)


SCENARIOS: tuple[str, ...] = (
    "teamwork",
    "a meeting discussion",
    "kicking off a project",
    "facing a conflict",
    "facing a deadline",
    "learning a new tool",
    "proposing an innovation",
    "assessing a risk",
    "responding to feedback",
    "analysing data",
    "improving a process",
    "cross-team collaboration",
    "serving a customer",
    "handling a crisis",
    "allocating resources",
    "quality control",
    "facing change",
    "delegating a task",
    "mentoring a newcomer",
    "brainstorming",
    "communicating an idea",
    "facing uncertainty",
    "planning your time",
    "writing documentation",
    "sensing how others feel",
    "negotiating",
    "running a small trial",
    "following the rules",
    "setting the pace of work",
    "celebrating results",
)

# Index i scores for DIMENSION_ORDER[i]
OPTIONS: tuple[str, ...] = (
    "I start by describing the long-term direction and meaning",
    "I start by caring for everyone's feelings and a good atmosphere",
    "I start by clarifying the rules, the process and the reasoning",
    "I act right away and make visible progress first",
)

LIKE_PROMPT = "In {scenario}, the approach I lean towards most is:"
DISLIKE_PROMPT = "In {scenario}, the approach I like least / that is least like me is:"


@lru_cache(maxsize=1)
def _question_battery() -> tuple[Question, ...]:
    questions = []

    for index, scenario in enumerate(SCENARIOS):
        questions.append(Question(
            id=index + 1,
            text=LIKE_PROMPT.format(scenario=scenario),
            dimension=DIMENSION_ORDER[index % len(DIMENSION_ORDER)],
            phase=Phase.LIKE,
        ))

    for index, scenario in enumerate(SCENARIOS):
        questions.append(Question(
            id=index + 1 + QUESTIONS_PER_PHASE,
            text=DISLIKE_PROMPT.format(scenario=scenario),
            dimension=DIMENSION_ORDER[index % len(DIMENSION_ORDER)],
            phase=Phase.DISLIKE,
        ))

    return tuple(questions)


def generate_questions() -> list[Question]:
    """Return the full 60-question battery in id order."""
    return list(_question_battery())


def get_question(question_id: int) -> Question:
    """Look up a question by its 1-based id."""
    battery = _question_battery()
    if not 1 <= question_id <= len(battery):
        raise KeyError(f"No question with id {question_id}")
    return battery[question_id - 1]


def get_options() -> list[str]:
    """The four canonical option texts, in dimension order."""
    return list(OPTIONS)


def get_dimension_for_option(option_index: int) -> Dimension:
    """Map an option position to the dimension it scores for."""
    if not 0 <= option_index < len(OPTIONS):
        raise InvalidOptionError(f"Option index out of range: {option_index}")
    return DIMENSION_ORDER[option_index]


def option_index(option_text: str) -> int:
    """Position of a canonical option text."""
    try:
        return OPTIONS.index(option_text)
    except ValueError:
        raise InvalidOptionError(f"Not a valid answer option: {option_text!r}")


def get_option_for_dimension(dimension: Dimension) -> str:
    """The option text that scores for a dimension; inverse of get_dimension_for_option."""
    return OPTIONS[DIMENSION_ORDER.index(dimension)]
