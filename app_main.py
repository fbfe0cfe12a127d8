"""Application entry point: serve the quiz engine API over an in-memory store.

Usage: python app_main.py [quiz_file.txt ...]

Question secrets are encrypted with the base64 key in ``QUIZ_ENCRYPTION_KEY``;
without it a throwaway key is generated for this process.
"""

from __future__ import annotations

import os
from pathlib import Path
import sys

from quiz_engine.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from quiz_engine.constants.quiz_constants import EXPIRY_SWEEP_INTERVAL_SECONDS, QUIZ_ENCRYPTION_KEY_ENV
from quiz_engine.core.question_crypto import QuestionCipher
from quiz_engine.core.quiz_importer import load_quiz_from_file
from quiz_engine.core.quiz_manager import QuizManager
from quiz_engine.core.services.quiz_data_service import InMemoryQuizDataService
from quiz_engine.server.api_server import start_api_server
from quiz_engine.utils.logging_config import configure_logging


def main() -> None:
    """Initialize logging, load quiz files, start the API server and sweep expired attempts."""
    logger = configure_logging()
    logger.info("Starting quiz engine API…")

    if os.environ.get(QUIZ_ENCRYPTION_KEY_ENV):
        cipher = QuestionCipher.from_environment()
    else:
        logger.warning("%s is not set; using a temporary encryption key", QUIZ_ENCRYPTION_KEY_ENV)
        cipher = QuestionCipher.generate()

    data_service = InMemoryQuizDataService(cipher)
    for raw_path in sys.argv[1:]:
        imported = load_quiz_from_file(Path(raw_path))
        data_service.add_quiz(imported.quiz)
        for question in imported.questions:
            data_service.add_question(question)
        logger.info(
            "Loaded quiz '%s' (%s) with %d questions",
            imported.quiz.title,
            imported.quiz.id,
            len(imported.questions),
        )

    quiz_manager = QuizManager(data_service)
    server_thread = start_api_server(quiz_manager=quiz_manager, host=DEFAULT_HOST, port=DEFAULT_PORT)
    logger.info("API available at http://%s:%d/", DEFAULT_HOST, DEFAULT_PORT)

    try:
        while server_thread.is_alive():
            server_thread.join(timeout=EXPIRY_SWEEP_INTERVAL_SECONDS)
            expired = quiz_manager.expire_stale_attempts()
            if expired:
                logger.info("Finalized %d expired attempts", len(expired))
    except KeyboardInterrupt:
        logger.info("Shutting down quiz engine API")


if __name__ == "__main__":
    main()
