from datetime import datetime, timedelta, timezone

import pytest

from quiz_crafter.core.db import open_database
from quiz_crafter.core.models import NewOption
from quiz_crafter.core.request_dispatcher import RequestDispatcher
from quiz_crafter.core.services.quiz_repository import QuizRepository


class SteppingClock:
    """Deterministic clock that advances one second per reading."""

    def __init__(self, start=datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)):
        self.current = start

    def __call__(self):
        self.current += timedelta(seconds=1)
        return self.current


@pytest.fixture
def db_path(tmp_path):
    """Path of a fresh SQLite file inside pytest's temporary directory"""
    return tmp_path / "quiz-crafter.sqlite"


@pytest.fixture
def database(db_path):
    """Migrated storage handle, closed after the test"""
    handle = open_database(db_path)
    yield handle
    handle.close()


@pytest.fixture
def clock():
    return SteppingClock()


@pytest.fixture
def repository(database, clock):
    return QuizRepository(database, clock=clock)


@pytest.fixture
def dispatcher(repository):
    return RequestDispatcher(repository)


@pytest.fixture
def quiz(repository):
    """A stored quiz without questions"""
    return repository.create_quiz("Capitals", "European capitals")


@pytest.fixture
def make_question(repository):
    """Returns a helper that stores a question with new options"""

    def _make(quiz_id, text="Capital of France?", texts=("Lyon", "Paris", "Nice"), correct=1):
        drafts = [
            NewOption(text=option_text, is_correct=index == correct, order_index=index)
            for index, option_text in enumerate(texts)
        ]
        return repository.save_question(quiz_id, None, text, drafts)

    return _make
