"""Application entry point for QuizCrafter."""

from __future__ import annotations

import sys

from quiz_crafter.core.db import MigrationError, open_database
from quiz_crafter.core.request_dispatcher import RequestDispatcher
from quiz_crafter.core.services.quiz_repository import QuizRepository
from quiz_crafter.server.api_server import start_api_server
from quiz_crafter.utils.logging_config import configure_logging
from quiz_crafter.utils.settings import load_settings


def main() -> int:
    """Open and migrate the quiz store, then serve the dispatcher locally."""
    settings = load_settings()
    logger = configure_logging(settings.log_level)
    logger.info("Starting QuizCrafter…")

    try:
        database = open_database(settings.database_path)
    except MigrationError:
        logger.exception("Failed to initialize database at %s", settings.database_path)
        return 1

    dispatcher = RequestDispatcher(QuizRepository(database))
    server_thread = start_api_server(dispatcher, host=settings.host, port=settings.port)
    logger.info("Quiz API available at http://%s:%d/api", settings.host, settings.port)

    try:
        server_thread.join()
    except KeyboardInterrupt:
        logger.info("Shutting down QuizCrafter.")
    finally:
        database.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
