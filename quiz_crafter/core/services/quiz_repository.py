"""Persistent store for quizzes, questions, options and results."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import datetime, timezone
import logging
from uuid import uuid4

import sqlalchemy as sa
from sqlalchemy.engine import Connection, RowMapping

from quiz_crafter.core.db.database import Database
from quiz_crafter.core.db.schema import options, questions, quizzes, result_answers, results
from quiz_crafter.core.models import (
    OMITTED,
    AnswerSubmission,
    Direction,
    ExistingOption,
    Option,
    OptionDraft,
    Question,
    Quiz,
    QuizResult,
    QuizResultsSummary,
    QuizSummary,
    ResultAnswer,
)

logger = logging.getLogger(__name__)


class NotFoundError(LookupError):
    """Raised when a referenced quiz, question or option does not exist."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field
        self.message = message


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid4())


def _clean_description(description: str | None) -> str | None:
    if description is None:
        return None
    return description.strip()


class QuizRepository:
    """CRUD and ordering operations, each applied fully or not at all."""

    def __init__(self, database: Database, clock: Callable[[], datetime] = utc_now) -> None:
        self._database = database
        self._clock = clock

    # --- Quizzes ---

    def list_quizzes(self) -> list[QuizSummary]:
        """Return all quizzes, most recently updated first."""
        question_count = sa.func.count(questions.c.id).label("question_count")
        stmt = (
            sa.select(quizzes, question_count)
            .select_from(quizzes.outerjoin(questions, questions.c.quiz_id == quizzes.c.id))
            .group_by(quizzes.c.id)
            .order_by(quizzes.c.updated_at.desc())
        )
        with self._database.connect() as conn:
            rows = conn.execute(stmt).mappings().all()
        return [_map_summary(row, row["question_count"]) for row in rows]

    def get_quiz(self, quiz_id: str) -> Quiz | None:
        with self._database.connect() as conn:
            return self._load_quiz(conn, quiz_id)

    def quiz_exists(self, quiz_id: str) -> bool:
        with self._database.connect() as conn:
            return _quiz_row(conn, quiz_id) is not None

    def create_quiz(self, title: str, description: str | None = None) -> QuizSummary:
        quiz_id = _new_id()
        timestamp = self._timestamp()
        values = {
            "id": quiz_id,
            "title": title.strip(),
            "description": _clean_description(description),
            "created_at": timestamp,
            "updated_at": timestamp,
        }
        with self._database.transaction() as conn:
            conn.execute(sa.insert(quizzes).values(**values))
        logger.debug("Created quiz %s", quiz_id)
        return QuizSummary(
            id=quiz_id,
            title=values["title"],
            description=values["description"],
            created_at=timestamp,
            updated_at=timestamp,
            question_count=0,
        )

    def update_quiz(
        self,
        quiz_id: str,
        title: str,
        description: str | None | object = OMITTED,
    ) -> QuizSummary:
        """Overwrite title and description.

        Leaving ``description`` out keeps the stored value; ``None`` clears it
        and any string is stored trimmed.
        """
        timestamp = self._timestamp()
        with self._database.transaction() as conn:
            existing = _quiz_row(conn, quiz_id)
            if existing is None:
                raise NotFoundError("id", "Quiz not found.")
            if description is OMITTED:
                next_description = existing["description"]
            else:
                next_description = _clean_description(description)  # type: ignore[arg-type]
            conn.execute(
                sa.update(quizzes)
                .where(quizzes.c.id == quiz_id)
                .values(title=title.strip(), description=next_description, updated_at=timestamp)
            )
            count = conn.execute(
                sa.select(sa.func.count()).select_from(questions).where(questions.c.quiz_id == quiz_id)
            ).scalar_one()
        return QuizSummary(
            id=quiz_id,
            title=title.strip(),
            description=next_description,
            created_at=existing["created_at"],
            updated_at=timestamp,
            question_count=count,
        )

    def delete_quiz(self, quiz_id: str) -> bool:
        """Delete a quiz and everything that hangs off it; True if it existed."""
        with self._database.transaction() as conn:
            deleted = conn.execute(sa.delete(quizzes).where(quizzes.c.id == quiz_id)).rowcount
        if deleted:
            logger.debug("Deleted quiz %s", quiz_id)
        return deleted > 0

    # --- Questions & options ---

    def save_question(
        self,
        quiz_id: str,
        question_id: str | None,
        text: str,
        option_drafts: Sequence[OptionDraft],
    ) -> Question:
        """Insert or update a question and reconcile its options.

        A ``question_id`` that matches no stored question is used as the id of
        the inserted row. Stored options missing from ``option_drafts`` are
        deleted. The quiz is looked up inside the same transaction that writes
        the question, its options and the quiz timestamp; the saved question is
        reloaded afterwards.
        """
        timestamp = self._timestamp()
        with self._database.transaction() as conn:
            _require_quiz(conn, quiz_id)
            existing = None
            if question_id:
                existing = conn.execute(
                    sa.select(questions).where(questions.c.id == question_id)
                ).mappings().first()
            if existing is not None and existing["quiz_id"] != quiz_id:
                raise NotFoundError("questionId", "Question not found.")

            stored_option_ids: set[str] = set()
            if existing is not None:
                stored_option_ids = set(
                    conn.execute(
                        sa.select(options.c.id).where(options.c.question_id == question_id)
                    ).scalars()
                )
            for index, draft in enumerate(option_drafts):
                if isinstance(draft, ExistingOption) and draft.id not in stored_option_ids:
                    raise NotFoundError(f"options[{index}].id", "Option not found.")

            if existing is None:
                question_id = question_id or _new_id()
                max_order = conn.execute(
                    sa.select(sa.func.coalesce(sa.func.max(questions.c.order_index), -1)).where(
                        questions.c.quiz_id == quiz_id
                    )
                ).scalar_one()
                conn.execute(
                    sa.insert(questions).values(
                        id=question_id,
                        quiz_id=quiz_id,
                        text=text.strip(),
                        order_index=max_order + 1,
                        created_at=timestamp,
                        updated_at=timestamp,
                    )
                )
            else:
                conn.execute(
                    sa.update(questions)
                    .where(questions.c.id == question_id)
                    .values(text=text.strip(), updated_at=timestamp)
                )

            kept_ids: set[str] = set()
            for draft in option_drafts:
                if isinstance(draft, ExistingOption):
                    kept_ids.add(draft.id)
                    conn.execute(
                        sa.update(options)
                        .where(options.c.id == draft.id)
                        .values(
                            text=draft.text.strip(),
                            is_correct=draft.is_correct,
                            order_index=draft.order_index,
                        )
                    )
                else:
                    conn.execute(
                        sa.insert(options).values(
                            id=_new_id(),
                            question_id=question_id,
                            text=draft.text.strip(),
                            is_correct=draft.is_correct,
                            order_index=draft.order_index,
                        )
                    )

            stale_ids = stored_option_ids - kept_ids
            if stale_ids:
                conn.execute(sa.delete(options).where(options.c.id.in_(stale_ids)))

            self._touch_quiz(conn, quiz_id, timestamp)

        logger.debug(
            "Saved question %s (%s)", question_id, "inserted" if existing is None else "updated"
        )
        with self._database.connect() as conn:
            question = _load_question(conn, question_id)
        if question is None:
            raise RuntimeError("Failed to load saved question.")
        return question

    def reorder_question(self, quiz_id: str, question_id: str, direction: Direction) -> Quiz:
        """Swap a question with its neighbour; moving past either end is a no-op."""
        with self._database.transaction() as conn:
            _require_quiz(conn, quiz_id)
            siblings = conn.execute(
                sa.select(questions.c.id, questions.c.order_index)
                .where(questions.c.quiz_id == quiz_id)
                .order_by(questions.c.order_index)
            ).all()
            index = _position_of(siblings, question_id)
            if index is None:
                raise NotFoundError("questionId", "Question not found.")
            target = index + direction.step
            if 0 <= target < len(siblings):
                _swap_order(conn, questions, siblings[index], siblings[target])
                self._touch_quiz(conn, quiz_id, self._timestamp())
            quiz = self._load_quiz(conn, quiz_id)
        if quiz is None:
            raise RuntimeError("Failed to load reordered quiz.")
        return quiz

    def reorder_option(
        self,
        quiz_id: str,
        question_id: str,
        option_id: str,
        direction: Direction,
    ) -> Question:
        """Swap an option with its neighbour; moving past either end is a no-op."""
        with self._database.transaction() as conn:
            _require_quiz(conn, quiz_id)
            owner = conn.execute(
                sa.select(questions.c.quiz_id).where(questions.c.id == question_id)
            ).scalar_one_or_none()
            if owner != quiz_id:
                raise NotFoundError("questionId", "Question not found.")
            siblings = conn.execute(
                sa.select(options.c.id, options.c.order_index)
                .where(options.c.question_id == question_id)
                .order_by(options.c.order_index)
            ).all()
            index = _position_of(siblings, option_id)
            if index is None:
                raise NotFoundError("optionId", "Option not found.")
            target = index + direction.step
            if 0 <= target < len(siblings):
                timestamp = self._timestamp()
                _swap_order(conn, options, siblings[index], siblings[target])
                conn.execute(
                    sa.update(questions)
                    .where(questions.c.id == question_id)
                    .values(updated_at=timestamp)
                )
                self._touch_quiz(conn, quiz_id, timestamp)
            question = _load_question(conn, question_id)
        if question is None:
            raise RuntimeError("Failed to load reordered question.")
        return question

    # --- Results ---

    def save_results(self, quiz_id: str, answers: Sequence[AnswerSubmission]) -> QuizResult:
        """Score and store one play-through.

        ``correct_option_id`` is taken from the caller as-is; it is not checked
        against the options currently stored for the question.
        """
        result_id = _new_id()
        timestamp = self._timestamp()
        scored = [
            ResultAnswer(
                question_id=answer.question_id,
                selected_option_id=answer.selected_option_id,
                correct_option_id=answer.correct_option_id,
                is_correct=(
                    answer.selected_option_id is not None
                    and answer.selected_option_id == answer.correct_option_id
                ),
            )
            for answer in answers
        ]
        result = QuizResult(
            id=result_id,
            quiz_id=quiz_id,
            created_at=timestamp,
            correct_count=sum(1 for answer in scored if answer.is_correct),
            total_count=len(scored),
            answers=scored,
        )

        with self._database.transaction() as conn:
            _require_quiz(conn, quiz_id)
            conn.execute(
                sa.insert(results).values(
                    id=result.id,
                    quiz_id=quiz_id,
                    created_at=timestamp,
                    correct_count=result.correct_count,
                    total_count=result.total_count,
                )
            )
            if scored:
                conn.execute(
                    sa.insert(result_answers),
                    [
                        {
                            "id": _new_id(),
                            "result_id": result_id,
                            "question_id": answer.question_id,
                            "selected_option_id": answer.selected_option_id,
                            "correct_option_id": answer.correct_option_id,
                            "is_correct": answer.is_correct,
                            "position": position,
                        }
                        for position, answer in enumerate(scored)
                    ],
                )
        logger.debug(
            "Recorded result %s for quiz %s (%d/%d)",
            result_id,
            quiz_id,
            result.correct_count,
            result.total_count,
        )
        return result

    def get_results_summary(self, quiz_id: str) -> QuizResultsSummary:
        with self._database.connect() as conn:
            latest = conn.execute(
                sa.select(results)
                .where(results.c.quiz_id == quiz_id)
                .order_by(results.c.created_at.desc())
                .limit(1)
            ).mappings().first()
            if latest is None:
                return QuizResultsSummary(quiz_id=quiz_id, attempt_count=0)

            answer_rows = conn.execute(
                sa.select(result_answers)
                .where(result_answers.c.result_id == latest["id"])
                .order_by(result_answers.c.position)
            ).mappings().all()
            attempts = conn.execute(
                sa.select(sa.func.count()).select_from(results).where(results.c.quiz_id == quiz_id)
            ).scalar_one()

        result = _map_result(latest)
        result.answers = [_map_answer(row) for row in answer_rows]
        return QuizResultsSummary(quiz_id=quiz_id, attempt_count=attempts, last_result=result)

    # --- Helpers ---

    def _timestamp(self) -> str:
        return self._clock().astimezone(timezone.utc).isoformat(timespec="microseconds").replace(
            "+00:00", "Z"
        )

    def _touch_quiz(self, conn: Connection, quiz_id: str, timestamp: str) -> None:
        conn.execute(sa.update(quizzes).where(quizzes.c.id == quiz_id).values(updated_at=timestamp))

    def _load_quiz(self, conn: Connection, quiz_id: str) -> Quiz | None:
        row = _quiz_row(conn, quiz_id)
        if row is None:
            return None
        quiz = _map_quiz(row)
        question_rows = conn.execute(
            sa.select(questions)
            .where(questions.c.quiz_id == quiz_id)
            .order_by(questions.c.order_index)
        ).mappings().all()
        quiz.questions = [_map_question(row) for row in question_rows]
        if not quiz.questions:
            return quiz

        # One query for the options of every question.
        by_question: dict[str, list[Option]] = {question.id: [] for question in quiz.questions}
        option_rows = conn.execute(
            sa.select(options)
            .where(options.c.question_id.in_(list(by_question)))
            .order_by(options.c.order_index)
        ).mappings()
        for option_row in option_rows:
            option = _map_option(option_row)
            by_question[option.question_id].append(option)
        for question in quiz.questions:
            question.options = by_question[question.id]
        return quiz


def _quiz_row(conn: Connection, quiz_id: str) -> RowMapping | None:
    return conn.execute(sa.select(quizzes).where(quizzes.c.id == quiz_id)).mappings().first()


def _require_quiz(conn: Connection, quiz_id: str) -> None:
    if _quiz_row(conn, quiz_id) is None:
        raise NotFoundError("quizId", "Quiz not found.")


def _load_question(conn: Connection, question_id: str) -> Question | None:
    row = conn.execute(
        sa.select(questions).where(questions.c.id == question_id)
    ).mappings().first()
    if row is None:
        return None
    question = _map_question(row)
    option_rows = conn.execute(
        sa.select(options)
        .where(options.c.question_id == question_id)
        .order_by(options.c.order_index)
    ).mappings()
    question.options = [_map_option(option_row) for option_row in option_rows]
    return question


def _position_of(siblings: Sequence[sa.Row], sibling_id: str) -> int | None:
    return next((i for i, row in enumerate(siblings) if row.id == sibling_id), None)


def _swap_order(conn: Connection, table: sa.Table, first: sa.Row, second: sa.Row) -> None:
    conn.execute(sa.update(table).where(table.c.id == first.id).values(order_index=second.order_index))
    conn.execute(sa.update(table).where(table.c.id == second.id).values(order_index=first.order_index))


def _map_quiz(row: RowMapping) -> Quiz:
    return Quiz(
        id=row["id"],
        title=row["title"],
        description=row["description"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _map_summary(row: RowMapping, question_count: int) -> QuizSummary:
    return QuizSummary(
        id=row["id"],
        title=row["title"],
        description=row["description"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        question_count=question_count,
    )


def _map_question(row: RowMapping) -> Question:
    return Question(
        id=row["id"],
        quiz_id=row["quiz_id"],
        text=row["text"],
        order_index=row["order_index"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _map_option(row: RowMapping) -> Option:
    return Option(
        id=row["id"],
        question_id=row["question_id"],
        text=row["text"],
        is_correct=bool(row["is_correct"]),
        order_index=row["order_index"],
    )


def _map_result(row: RowMapping) -> QuizResult:
    return QuizResult(
        id=row["id"],
        quiz_id=row["quiz_id"],
        created_at=row["created_at"],
        correct_count=row["correct_count"],
        total_count=row["total_count"],
    )


def _map_answer(row: RowMapping) -> ResultAnswer:
    return ResultAnswer(
        question_id=row["question_id"],
        selected_option_id=row["selected_option_id"],
        correct_option_id=row["correct_option_id"],
        is_correct=bool(row["is_correct"]),
    )
