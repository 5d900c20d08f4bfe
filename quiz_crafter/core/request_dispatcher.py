"""Uniform request surface over the quiz repository.

Every operation returns an envelope, either ``{"ok": True, "data": ...}`` or
``{"ok": False, "errors": [{"field", "code", "message"}, ...]}``. Expected
problems (bad input, unknown ids) always come back as envelopes. Storage
failures are logged and re-raised so the transport can report them as
unexpected errors.
"""

from __future__ import annotations

from collections.abc import Callable
import logging
from typing import Any

from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import SQLAlchemyError

from quiz_crafter.constants.about import APP_VERSION
from quiz_crafter.core import payloads
from quiz_crafter.core.models import OMITTED, FieldError
from quiz_crafter.core.services.quiz_repository import NotFoundError, QuizRepository
from quiz_crafter.core.validation import validate_question, validate_quiz_title

logger = logging.getLogger(__name__)

Envelope = dict[str, Any]

_QUIZ_NOT_FOUND = "Quiz not found."


def success(data: Any) -> Envelope:
    return {"ok": True, "data": data}


def failure(errors: list[FieldError]) -> Envelope:
    return {"ok": False, "errors": [payloads.dump_error(error) for error in errors]}


def not_found(field: str, message: str) -> Envelope:
    return failure([FieldError(field, "not_found", message)])


class RequestDispatcher:
    """Maps named operations and their payloads onto repository calls."""

    def __init__(self, repository: QuizRepository) -> None:
        self._repository = repository
        self._handlers: dict[str, Callable[[Any], Envelope]] = {
            "app:getVersion": lambda _payload: self.get_app_version(),
            "quiz:list": lambda _payload: self.list_quizzes(),
            "quiz:get": self.get_quiz,
            "quiz:create": self.create_quiz,
            "quiz:update": self.update_quiz,
            "quiz:delete": self.delete_quiz,
            "question:save": self.save_question,
            "question:reorder": self.reorder_question,
            "option:reorder": self.reorder_option,
            "results:save": self.save_results,
            "results:get": self.get_results_summary,
        }

    @property
    def operations(self) -> list[str]:
        return list(self._handlers)

    def dispatch(self, operation: str, payload: Any = None) -> Envelope:
        handler = self._handlers.get(operation)
        if handler is None:
            return failure(
                [FieldError("operation", "unknown_operation", f"Unknown operation '{operation}'.")]
            )
        try:
            return handler(payload)
        except SQLAlchemyError:
            logger.exception("Storage failure while handling %s", operation)
            raise

    # --- Operations ---

    def get_app_version(self) -> Envelope:
        return success(APP_VERSION)

    def list_quizzes(self) -> Envelope:
        return success([payloads.dump_quiz_summary(quiz) for quiz in self._repository.list_quizzes()])

    def get_quiz(self, payload: Any) -> Envelope:
        request = _parse(payloads.QuizRefPayload, payloads.coerce_quiz_ref(payload))
        if isinstance(request, list):
            return failure(request)
        quiz = self._repository.get_quiz(request.quiz_id)
        if quiz is None:
            return not_found("quizId", _QUIZ_NOT_FOUND)
        return success(payloads.dump_quiz(quiz))

    def create_quiz(self, payload: Any) -> Envelope:
        request = _parse(payloads.QuizCreatePayload, payload)
        if isinstance(request, list):
            return failure(request)
        errors = validate_quiz_title(request.title)
        if errors:
            return failure(errors)
        summary = self._repository.create_quiz(request.title, request.description)
        return success(payloads.dump_quiz_summary(summary))

    def update_quiz(self, payload: Any) -> Envelope:
        request = _parse(payloads.QuizUpdatePayload, payload)
        if isinstance(request, list):
            return failure(request)
        errors = validate_quiz_title(request.title)
        if errors:
            return failure(errors)
        description = request.description if request.description_provided else OMITTED
        try:
            summary = self._repository.update_quiz(request.id, request.title, description)
        except NotFoundError as exc:
            return not_found(exc.field, exc.message)
        return success(payloads.dump_quiz_summary(summary))

    def delete_quiz(self, payload: Any) -> Envelope:
        request = _parse(payloads.QuizRefPayload, payloads.coerce_quiz_ref(payload))
        if isinstance(request, list):
            return failure(request)
        if not self._repository.delete_quiz(request.quiz_id):
            return not_found("quizId", _QUIZ_NOT_FOUND)
        return success({"id": request.quiz_id})

    def save_question(self, payload: Any) -> Envelope:
        request = _parse(payloads.QuestionSavePayload, payload)
        if isinstance(request, list):
            return failure(request)
        if not self._repository.quiz_exists(request.quiz_id):
            return not_found("quizId", _QUIZ_NOT_FOUND)
        drafts = request.option_drafts()
        errors = validate_question(request.text, drafts)
        if errors:
            return failure(errors)
        try:
            question = self._repository.save_question(
                request.quiz_id, request.question_id, request.text, drafts
            )
        except NotFoundError as exc:
            return not_found(exc.field, exc.message)
        return success(payloads.dump_question(question))

    def reorder_question(self, payload: Any) -> Envelope:
        request = _parse(payloads.QuestionReorderPayload, payload)
        if isinstance(request, list):
            return failure(request)
        if not self._repository.quiz_exists(request.quiz_id):
            return not_found("quizId", _QUIZ_NOT_FOUND)
        try:
            quiz = self._repository.reorder_question(
                request.quiz_id, request.question_id, request.direction
            )
        except NotFoundError as exc:
            return not_found(exc.field, exc.message)
        return success(payloads.dump_quiz(quiz))

    def reorder_option(self, payload: Any) -> Envelope:
        request = _parse(payloads.OptionReorderPayload, payload)
        if isinstance(request, list):
            return failure(request)
        if not self._repository.quiz_exists(request.quiz_id):
            return not_found("quizId", _QUIZ_NOT_FOUND)
        try:
            question = self._repository.reorder_option(
                request.quiz_id, request.question_id, request.option_id, request.direction
            )
        except NotFoundError as exc:
            return not_found(exc.field, exc.message)
        return success(payloads.dump_question(question))

    def save_results(self, payload: Any) -> Envelope:
        request = _parse(payloads.ResultsSavePayload, payload)
        if isinstance(request, list):
            return failure(request)
        if not self._repository.quiz_exists(request.quiz_id):
            return not_found("quizId", _QUIZ_NOT_FOUND)
        try:
            result = self._repository.save_results(request.quiz_id, request.submissions())
        except NotFoundError as exc:
            return not_found(exc.field, exc.message)
        return success(payloads.dump_result(result))

    def get_results_summary(self, payload: Any) -> Envelope:
        request = _parse(payloads.QuizRefPayload, payloads.coerce_quiz_ref(payload))
        if isinstance(request, list):
            return failure(request)
        # Unknown and deleted quizzes simply have no recorded attempts.
        summary = self._repository.get_results_summary(request.quiz_id)
        return success(payloads.dump_results_summary(summary))


def _parse(model: type[BaseModel], payload: Any) -> Any:
    """Return the parsed request, or the list of errors describing why it is malformed."""
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        return payloads.validation_errors(exc)
