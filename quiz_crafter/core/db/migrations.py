"""Forward-only schema migrations tracked in the ``schema_migrations`` ledger.

Architecture note:
    Migrations are plain functions receiving an alembic ``Operations`` object
    bound to the runner's connection. Alembic is only used as a DDL toolkit
    here; its own revision tracking is not involved. The ledger is a table of
    integer ids so that every install, however old, replays exactly the
    migrations it has not seen yet, in ascending order.

    All pending migrations and their ledger rows are applied inside one
    transaction. If any of them fails nothing is recorded, the schema is left
    as it was, and startup must stop.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
import logging

from alembic.migration import MigrationContext
from alembic.operations import Operations
import sqlalchemy as sa
from sqlalchemy.engine import Engine

from quiz_crafter.core.db.schema import schema_migrations

logger = logging.getLogger(__name__)


class MigrationError(Exception):
    """Raised when the schema cannot be brought up to date."""


@dataclass(frozen=True, slots=True)
class Migration:
    id: int
    description: str
    upgrade: Callable[[Operations], None]


def _create_initial_schema(op: Operations) -> None:
    op.create_table(
        "quizzes",
        sa.Column("id", sa.Text(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("created_at", sa.Text(), nullable=False),
        sa.Column("updated_at", sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "questions",
        sa.Column("id", sa.Text(), nullable=False),
        sa.Column("quiz_id", sa.Text(), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("order_index", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.Text(), nullable=False),
        sa.Column("updated_at", sa.Text(), nullable=False),
        sa.ForeignKeyConstraint(["quiz_id"], ["quizzes.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "options",
        sa.Column("id", sa.Text(), nullable=False),
        sa.Column("question_id", sa.Text(), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("is_correct", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("order_index", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["question_id"], ["questions.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "results",
        sa.Column("id", sa.Text(), nullable=False),
        sa.Column("quiz_id", sa.Text(), nullable=False),
        sa.Column("created_at", sa.Text(), nullable=False),
        sa.Column("correct_count", sa.Integer(), nullable=False),
        sa.Column("total_count", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["quiz_id"], ["quizzes.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "result_answers",
        sa.Column("id", sa.Text(), nullable=False),
        sa.Column("result_id", sa.Text(), nullable=False),
        sa.Column("question_id", sa.Text(), nullable=False),
        sa.Column("selected_option_id", sa.Text(), nullable=True),
        sa.Column("correct_option_id", sa.Text(), nullable=False),
        sa.Column("is_correct", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["result_id"], ["results.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["question_id"], ["questions.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["selected_option_id"], ["options.id"], ondelete="SET NULL"),
        # Deleting the correct option removes the historical answer row.
        sa.ForeignKeyConstraint(["correct_option_id"], ["options.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_questions_quiz_id", "questions", ["quiz_id", "order_index"])
    op.create_index("idx_options_question_id", "options", ["question_id", "order_index"])
    op.create_index("idx_results_quiz_id", "results", ["quiz_id", "created_at"])
    op.create_index("idx_result_answers_result_id", "result_answers", ["result_id"])


def _add_quiz_description(op: Operations) -> None:
    columns = sa.inspect(op.get_bind()).get_columns("quizzes")
    if any(column["name"] == "description" for column in columns):
        return
    op.add_column("quizzes", sa.Column("description", sa.Text(), nullable=True))


def _add_answer_position(op: Operations) -> None:
    op.add_column(
        "result_answers",
        sa.Column("position", sa.Integer(), nullable=False, server_default=sa.text("0")),
    )
    # Rows written before this migration keep their insertion order.
    op.execute(
        """
        UPDATE result_answers
        SET position = (
            SELECT COUNT(*) FROM result_answers AS earlier
            WHERE earlier.result_id = result_answers.result_id
              AND earlier.rowid < result_answers.rowid
        )
        """
    )


MIGRATIONS: list[Migration] = [
    Migration(1, "initial schema", _create_initial_schema),
    Migration(2, "quiz description column", _add_quiz_description),
    Migration(3, "result answer play order", _add_answer_position),
]


def run_migrations(engine: Engine, migrations: Sequence[Migration] = MIGRATIONS) -> list[int]:
    """Apply every migration not yet recorded in the ledger.

    Returns the ids applied by this call, which is empty when the schema was
    already current.
    """
    _check_registry(migrations)
    try:
        with engine.begin() as connection:
            schema_migrations.create(connection, checkfirst=True)
            applied = set(connection.execute(sa.select(schema_migrations.c.id)).scalars())
            pending = [migration for migration in migrations if migration.id not in applied]
            if not pending:
                return []

            op = Operations(MigrationContext.configure(connection))
            applied_at = datetime.now(timezone.utc).isoformat(timespec="microseconds").replace(
                "+00:00", "Z"
            )
            for migration in pending:
                logger.info("Applying migration %d: %s", migration.id, migration.description)
                migration.upgrade(op)
                connection.execute(
                    sa.insert(schema_migrations).values(id=migration.id, applied_at=applied_at)
                )
    except MigrationError:
        raise
    except Exception as exc:
        raise MigrationError(f"Failed to migrate database schema: {exc}") from exc

    return [migration.id for migration in pending]


def _check_registry(migrations: Sequence[Migration]) -> None:
    ids = [migration.id for migration in migrations]
    if any(later <= earlier for earlier, later in zip(ids, ids[1:])):
        raise MigrationError("Migration ids must be unique and strictly increasing.")
