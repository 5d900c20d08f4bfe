"""Wire payloads for the request dispatcher.

Requests arrive as camelCase JSON objects and are parsed with pydantic into
the domain types the repository works with. Responses are built by the
``dump_*`` functions, which spell out every wire field explicitly.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from quiz_crafter.core.models import (
    AnswerSubmission,
    Direction,
    ExistingOption,
    FieldError,
    NewOption,
    Option,
    OptionDraft,
    Question,
    Quiz,
    QuizResult,
    QuizResultsSummary,
    QuizSummary,
    ResultAnswer,
)


class _Payload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class QuizRefPayload(_Payload):
    quiz_id: str


class QuizCreatePayload(_Payload):
    title: str
    description: str | None = None


class QuizUpdatePayload(_Payload):
    id: str
    title: str
    description: str | None = None

    @property
    def description_provided(self) -> bool:
        return "description" in self.model_fields_set


class OptionPayload(_Payload):
    id: str | None = None
    text: str
    is_correct: bool = False
    order_index: int

    def to_draft(self) -> OptionDraft:
        if self.id:
            return ExistingOption(
                id=self.id,
                text=self.text,
                is_correct=self.is_correct,
                order_index=self.order_index,
            )
        return NewOption(text=self.text, is_correct=self.is_correct, order_index=self.order_index)


class QuestionSavePayload(_Payload):
    quiz_id: str
    question_id: str | None = None
    text: str
    options: list[OptionPayload] = Field(default_factory=list)

    def option_drafts(self) -> list[OptionDraft]:
        return [option.to_draft() for option in self.options]


class QuestionReorderPayload(_Payload):
    quiz_id: str
    question_id: str
    direction: Direction


class OptionReorderPayload(_Payload):
    quiz_id: str
    question_id: str
    option_id: str
    direction: Direction


class AnswerPayload(_Payload):
    question_id: str
    selected_option_id: str | None = None
    correct_option_id: str

    def to_submission(self) -> AnswerSubmission:
        return AnswerSubmission(
            question_id=self.question_id,
            selected_option_id=self.selected_option_id,
            correct_option_id=self.correct_option_id,
        )


class ResultsSavePayload(_Payload):
    quiz_id: str
    answers: list[AnswerPayload] = Field(default_factory=list)

    def submissions(self) -> list[AnswerSubmission]:
        return [answer.to_submission() for answer in self.answers]


def coerce_quiz_ref(payload: Any) -> Any:
    """Accept a bare quiz id string as shorthand for ``{"quizId": ...}``."""
    if isinstance(payload, str):
        return {"quizId": payload}
    return payload


def validation_errors(exc: ValidationError) -> list[FieldError]:
    """Translate a pydantic error into field-tagged ``invalid`` errors."""
    errors: list[FieldError] = []
    for detail in exc.errors():
        location = ""
        for part in detail["loc"]:
            if isinstance(part, int):
                location += f"[{part}]"
            else:
                # Locations already use aliases when input was given in camelCase.
                name = to_camel(part) if "_" in part else part
                location += f".{name}" if location else name
        errors.append(FieldError(location or "payload", "invalid", detail["msg"]))
    return errors


def dump_error(error: FieldError) -> dict[str, str]:
    return {"field": error.field, "code": error.code, "message": error.message}


def dump_quiz_summary(summary: QuizSummary) -> dict[str, Any]:
    return {
        "id": summary.id,
        "title": summary.title,
        "description": summary.description,
        "createdAt": summary.created_at,
        "updatedAt": summary.updated_at,
        "questionCount": summary.question_count,
    }


def dump_option(option: Option) -> dict[str, Any]:
    return {
        "id": option.id,
        "questionId": option.question_id,
        "text": option.text,
        "isCorrect": option.is_correct,
        "orderIndex": option.order_index,
    }


def dump_question(question: Question) -> dict[str, Any]:
    return {
        "id": question.id,
        "quizId": question.quiz_id,
        "text": question.text,
        "orderIndex": question.order_index,
        "createdAt": question.created_at,
        "updatedAt": question.updated_at,
        "options": [dump_option(option) for option in question.options],
    }


def dump_quiz(quiz: Quiz) -> dict[str, Any]:
    return {
        "id": quiz.id,
        "title": quiz.title,
        "description": quiz.description,
        "createdAt": quiz.created_at,
        "updatedAt": quiz.updated_at,
        "questions": [dump_question(question) for question in quiz.questions],
    }


def dump_result_answer(answer: ResultAnswer) -> dict[str, Any]:
    return {
        "questionId": answer.question_id,
        "selectedOptionId": answer.selected_option_id,
        "correctOptionId": answer.correct_option_id,
        "isCorrect": answer.is_correct,
    }


def dump_result(result: QuizResult) -> dict[str, Any]:
    return {
        "id": result.id,
        "quizId": result.quiz_id,
        "createdAt": result.created_at,
        "answers": [dump_result_answer(answer) for answer in result.answers],
        "correctCount": result.correct_count,
        "totalCount": result.total_count,
    }


def dump_results_summary(summary: QuizResultsSummary) -> dict[str, Any]:
    payload: dict[str, Any] = {"quizId": summary.quiz_id, "attemptCount": summary.attempt_count}
    if summary.last_result is not None:
        payload["lastResult"] = dump_result(summary.last_result)
    return payload
