"""Table definitions matching the schema produced by the latest migration.

The migrations in :mod:`quiz_crafter.core.db.migrations` own the DDL; these
tables are only used to build queries.
"""

from __future__ import annotations

import sqlalchemy as sa

metadata = sa.MetaData()

schema_migrations = sa.Table(
    "schema_migrations",
    metadata,
    sa.Column("id", sa.Integer, primary_key=True, autoincrement=False),
    sa.Column("applied_at", sa.Text, nullable=False),
)

quizzes = sa.Table(
    "quizzes",
    metadata,
    sa.Column("id", sa.Text, primary_key=True),
    sa.Column("title", sa.Text, nullable=False),
    sa.Column("description", sa.Text, nullable=True),
    sa.Column("created_at", sa.Text, nullable=False),
    sa.Column("updated_at", sa.Text, nullable=False),
)

questions = sa.Table(
    "questions",
    metadata,
    sa.Column("id", sa.Text, primary_key=True),
    sa.Column(
        "quiz_id",
        sa.Text,
        sa.ForeignKey("quizzes.id", ondelete="CASCADE"),
        nullable=False,
    ),
    sa.Column("text", sa.Text, nullable=False),
    sa.Column("order_index", sa.Integer, nullable=False),
    sa.Column("created_at", sa.Text, nullable=False),
    sa.Column("updated_at", sa.Text, nullable=False),
)

options = sa.Table(
    "options",
    metadata,
    sa.Column("id", sa.Text, primary_key=True),
    sa.Column(
        "question_id",
        sa.Text,
        sa.ForeignKey("questions.id", ondelete="CASCADE"),
        nullable=False,
    ),
    sa.Column("text", sa.Text, nullable=False),
    sa.Column("is_correct", sa.Boolean, nullable=False, server_default=sa.text("0")),
    sa.Column("order_index", sa.Integer, nullable=False),
)

results = sa.Table(
    "results",
    metadata,
    sa.Column("id", sa.Text, primary_key=True),
    sa.Column(
        "quiz_id",
        sa.Text,
        sa.ForeignKey("quizzes.id", ondelete="CASCADE"),
        nullable=False,
    ),
    sa.Column("created_at", sa.Text, nullable=False),
    sa.Column("correct_count", sa.Integer, nullable=False),
    sa.Column("total_count", sa.Integer, nullable=False),
)

result_answers = sa.Table(
    "result_answers",
    metadata,
    sa.Column("id", sa.Text, primary_key=True),
    sa.Column(
        "result_id",
        sa.Text,
        sa.ForeignKey("results.id", ondelete="CASCADE"),
        nullable=False,
    ),
    sa.Column(
        "question_id",
        sa.Text,
        sa.ForeignKey("questions.id", ondelete="CASCADE"),
        nullable=False,
    ),
    sa.Column(
        "selected_option_id",
        sa.Text,
        sa.ForeignKey("options.id", ondelete="SET NULL"),
        nullable=True,
    ),
    sa.Column(
        "correct_option_id",
        sa.Text,
        sa.ForeignKey("options.id", ondelete="CASCADE"),
        nullable=False,
    ),
    sa.Column("is_correct", sa.Boolean, nullable=False),
    sa.Column("position", sa.Integer, nullable=False, server_default=sa.text("0")),
)
