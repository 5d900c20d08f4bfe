"""Validation gate for quiz and question data.

Checks never raise for bad input. Each returns the full list of
:class:`FieldError` entries it found, in check order, and an empty list when
the data may be persisted.
"""

from __future__ import annotations

from collections.abc import Sequence

from quiz_crafter.constants.quiz_constants import (
    OPTION_TEXT_MAX_LENGTH,
    OPTIONS_MAX,
    OPTIONS_MIN,
    QUESTION_TEXT_MAX_LENGTH,
    QUIZ_TITLE_MAX_LENGTH,
)
from quiz_crafter.core.models import ExistingOption, FieldError, OptionDraft


def validate_quiz_title(title: str) -> list[FieldError]:
    errors: list[FieldError] = []
    trimmed = title.strip()

    if not trimmed:
        errors.append(FieldError("title", "required", "Quiz title is required."))
    if len(trimmed) > QUIZ_TITLE_MAX_LENGTH:
        errors.append(
            FieldError(
                "title",
                "max_length",
                f"Quiz title must be {QUIZ_TITLE_MAX_LENGTH} characters or fewer.",
            )
        )
    return errors


def validate_question(text: str, options: Sequence[OptionDraft]) -> list[FieldError]:
    """Check a proposed question and its option list."""
    errors: list[FieldError] = []
    trimmed = text.strip()

    if not trimmed:
        errors.append(FieldError("text", "required", "Question text is required."))
    if len(trimmed) > QUESTION_TEXT_MAX_LENGTH:
        errors.append(
            FieldError(
                "text",
                "max_length",
                f"Question text must be {QUESTION_TEXT_MAX_LENGTH} characters or fewer.",
            )
        )

    if not OPTIONS_MIN <= len(options) <= OPTIONS_MAX:
        errors.append(
            FieldError(
                "options",
                "count",
                f"Question must have {OPTIONS_MIN}-{OPTIONS_MAX} options.",
            )
        )

    seen_texts: set[str] = set()
    seen_ids: set[str] = set()
    seen_order: set[int] = set()
    correct_count = 0

    for index, option in enumerate(options):
        prefix = f"options[{index}]"
        option_text = option.text.strip()

        if not option_text:
            errors.append(FieldError(f"{prefix}.text", "required", "Option text is required."))
        if len(option_text) > OPTION_TEXT_MAX_LENGTH:
            errors.append(
                FieldError(
                    f"{prefix}.text",
                    "max_length",
                    f"Option text must be {OPTION_TEXT_MAX_LENGTH} characters or fewer.",
                )
            )
        if option_text:
            key = option_text.casefold()
            if key in seen_texts:
                errors.append(
                    FieldError(f"{prefix}.text", "duplicate", "Option text must be unique.")
                )
            seen_texts.add(key)

        if isinstance(option, ExistingOption):
            if option.id in seen_ids:
                errors.append(
                    FieldError(f"{prefix}.id", "duplicate", "Option appears more than once.")
                )
            seen_ids.add(option.id)

        if option.order_index in seen_order:
            errors.append(
                FieldError(
                    f"{prefix}.orderIndex",
                    "duplicate",
                    "Option order must be unique within the question.",
                )
            )
        seen_order.add(option.order_index)

        if option.is_correct:
            correct_count += 1

    if correct_count != 1:
        errors.append(
            FieldError("options", "correct_count", "Exactly one option must be marked correct.")
        )
    return errors
