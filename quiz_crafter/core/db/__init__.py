"""SQLite storage: schema, migrations and the owned database handle."""

from .database import Database, open_database
from .migrations import MIGRATIONS, Migration, MigrationError, run_migrations

__all__ = [
    "Database",
    "MIGRATIONS",
    "Migration",
    "MigrationError",
    "open_database",
    "run_migrations",
]
