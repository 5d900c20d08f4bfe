"""Owned storage handle around a single SQLite file."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager, nullcontext
import logging
from pathlib import Path
from threading import RLock

import sqlalchemy as sa
from sqlalchemy import event
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.pool import StaticPool

from quiz_crafter.constants.storage_constants import IN_MEMORY_DATABASE
from quiz_crafter.core.db.migrations import Migration, MIGRATIONS, run_migrations

logger = logging.getLogger(__name__)


class Database:
    """Serializes writers over one SQLite engine.

    Each :meth:`transaction` block is a single SQLite transaction; blocks from
    different threads never interleave. Reads through :meth:`connect` take no
    application lock, except for in-memory databases: those share one SQLite
    connection, so reads wait for any open write transaction.
    """

    def __init__(self, path: Path | str) -> None:
        self._path = str(path)
        self._write_lock = RLock()
        self._engine = _create_engine(self._path)

    @property
    def path(self) -> str:
        return self._path

    @property
    def engine(self) -> Engine:
        return self._engine

    @contextmanager
    def transaction(self) -> Iterator[Connection]:
        """Yield a connection inside one all-or-nothing transaction."""
        with self._write_lock:
            with self._engine.begin() as connection:
                yield connection

    @contextmanager
    def connect(self) -> Iterator[Connection]:
        """Yield a connection for read-only queries."""
        guard = self._write_lock if self._path == IN_MEMORY_DATABASE else nullcontext()
        with guard:
            with self._engine.connect() as connection:
                yield connection

    def migrate(self, migrations: list[Migration] | None = None) -> list[int]:
        with self._write_lock:
            return run_migrations(self._engine, MIGRATIONS if migrations is None else migrations)

    def close(self) -> None:
        self._engine.dispose()


def open_database(path: Path | str, migrations: list[Migration] | None = None) -> Database:
    """Create the storage handle for ``path`` and bring its schema up to date.

    Raises ``MigrationError`` when the schema cannot be migrated; the handle is
    closed before the error propagates so nothing runs against a partial schema.
    """
    if str(path) != IN_MEMORY_DATABASE:
        Path(path).expanduser().parent.mkdir(parents=True, exist_ok=True)
    database = Database(path)
    try:
        applied = database.migrate(migrations)
    except Exception:
        database.close()
        raise
    logger.info("Opened database at %s (%d migration(s) applied)", database.path, len(applied))
    return database


def _create_engine(path: str) -> Engine:
    if path == IN_MEMORY_DATABASE:
        engine = sa.create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        resolved = Path(path).expanduser()
        engine = sa.create_engine(
            f"sqlite:///{resolved}",
            connect_args={"check_same_thread": False},
        )

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record) -> None:
        # Let SQLAlchemy emit BEGIN itself so DDL runs inside transactions too.
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys = ON")
        cursor.execute("PRAGMA journal_mode = WAL")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(connection) -> None:
        connection.exec_driver_sql("BEGIN")

    return engine
