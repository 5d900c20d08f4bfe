"""Storage configuration constants."""

from pathlib import Path

DEFAULT_DATA_DIR: Path = Path.home() / ".quiz-crafter"
DEFAULT_DATABASE_FILENAME: str = "quiz-crafter.sqlite"
DEFAULT_DATABASE_PATH: Path = DEFAULT_DATA_DIR / DEFAULT_DATABASE_FILENAME
IN_MEMORY_DATABASE: str = ":memory:"
