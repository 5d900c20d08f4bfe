"""Domain models for quizzes, questions, options and recorded results."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Direction(str, Enum):
    """Direction for moving a question or option among its siblings."""

    UP = "up"
    DOWN = "down"

    @property
    def step(self) -> int:
        return -1 if self is Direction.UP else 1


class _Omitted(Enum):
    TOKEN = "omitted"


# Marks a field the caller left out of an update request, as opposed to
# explicitly passing ``None`` to clear it.
OMITTED = _Omitted.TOKEN


@dataclass(slots=True)
class Option:
    """One selectable answer of a question."""

    id: str
    question_id: str
    text: str
    is_correct: bool
    order_index: int


@dataclass(slots=True)
class Question:
    """A prompt with its options ordered by ``order_index``."""

    id: str
    quiz_id: str
    text: str
    order_index: int
    created_at: str
    updated_at: str
    options: list[Option] = field(default_factory=list)


@dataclass(slots=True)
class Quiz:
    """A quiz with its questions ordered by ``order_index``."""

    id: str
    title: str
    description: str | None
    created_at: str
    updated_at: str
    questions: list[Question] = field(default_factory=list)


@dataclass(slots=True)
class QuizSummary:
    """Quiz row plus the number of questions it owns."""

    id: str
    title: str
    description: str | None
    created_at: str
    updated_at: str
    question_count: int


@dataclass(slots=True)
class NewOption:
    """Option entry of a save request that creates a new option."""

    text: str
    is_correct: bool
    order_index: int


@dataclass(slots=True)
class ExistingOption:
    """Option entry of a save request that edits a stored option in place."""

    id: str
    text: str
    is_correct: bool
    order_index: int


OptionDraft = NewOption | ExistingOption


@dataclass(slots=True)
class AnswerSubmission:
    """Answer reported by the player for one question."""

    question_id: str
    selected_option_id: str | None
    correct_option_id: str


@dataclass(slots=True)
class ResultAnswer:
    """Stored answer of a completed play-through."""

    question_id: str
    selected_option_id: str | None
    correct_option_id: str
    is_correct: bool


@dataclass(slots=True)
class QuizResult:
    """Write-once score record of a completed play-through."""

    id: str
    quiz_id: str
    created_at: str
    correct_count: int
    total_count: int
    answers: list[ResultAnswer] = field(default_factory=list)


@dataclass(slots=True)
class QuizResultsSummary:
    """Latest result of a quiz and how many attempts were recorded overall."""

    quiz_id: str
    attempt_count: int
    last_result: QuizResult | None = None


@dataclass(slots=True)
class FieldError:
    """Field-tagged error reported back to the caller."""

    field: str
    code: str
    message: str
