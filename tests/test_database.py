from threading import Event, Thread

import sqlalchemy as sa

from quiz_crafter.core.db import open_database
from quiz_crafter.core.db.schema import metadata, quizzes
from quiz_crafter.core.services.quiz_repository import QuizRepository


def test_in_memory_reads_wait_for_open_write_transaction():
    database = open_database(":memory:")
    repository = QuizRepository(database)
    inside_write = Event()
    release_write = Event()
    outcome = {}

    def _writer():
        with database.transaction() as conn:
            conn.execute(
                sa.insert(quizzes).values(
                    id="q1", title="Capitals", created_at="t", updated_at="t"
                )
            )
            inside_write.set()
            release_write.wait(timeout=5)

    def _reader():
        try:
            outcome["titles"] = [quiz.title for quiz in repository.list_quizzes()]
        except Exception as exc:  # surfaced through the assertion below
            outcome["error"] = exc

    writer = Thread(target=_writer)
    writer.start()
    try:
        assert inside_write.wait(timeout=5)
        reader = Thread(target=_reader)
        reader.start()
        reader.join(timeout=0.2)
        assert reader.is_alive()
    finally:
        release_write.set()
        writer.join(timeout=5)
    reader.join(timeout=5)
    database.close()

    assert "error" not in outcome
    assert outcome["titles"] == ["Capitals"]


def test_file_reads_do_not_wait_for_writers(database):
    inside_write = Event()
    release_write = Event()

    def _writer():
        with database.transaction():
            inside_write.set()
            release_write.wait(timeout=5)

    writer = Thread(target=_writer)
    writer.start()
    try:
        assert inside_write.wait(timeout=5)
        assert QuizRepository(database).list_quizzes() == []
    finally:
        release_write.set()
        writer.join(timeout=5)


def test_migrated_schema_matches_query_tables(database):
    inspector = sa.inspect(database.engine)
    assert set(metadata.tables) <= set(inspector.get_table_names())

    for table in metadata.sorted_tables:
        reflected = {column["name"]: column for column in inspector.get_columns(table.name)}
        assert set(reflected) == set(table.columns.keys()), table.name
        for column in table.columns:
            assert reflected[column.name]["nullable"] == column.nullable, f"{table.name}.{column.name}"

        primary_key = inspector.get_pk_constraint(table.name)["constrained_columns"]
        assert primary_key == [column.name for column in table.primary_key.columns], table.name

        reflected_fks = {
            (tuple(fk["constrained_columns"]), fk["referred_table"], (fk.get("options") or {}).get("ondelete"))
            for fk in inspector.get_foreign_keys(table.name)
        }
        declared_fks = {
            ((fk.parent.name,), fk.column.table.name, fk.ondelete)
            for fk in table.foreign_keys
        }
        assert reflected_fks == declared_fks, table.name
