"""Data access boundary for quizzes, questions, attempts and responses.

``QuizDataService`` is the contract the orchestration layer talks to. The
in-memory implementation is used by tests and the demo server; it enforces
the two write invariants that any real store must also guarantee:

* at most one IN_PROGRESS attempt per (quiz, student), and
* an attempt is finalized exactly once.

Questions are kept as :class:`EncryptedQuestion` records and only decrypted
when they are read back.
"""

from __future__ import annotations

from copy import deepcopy
import logging
from threading import Lock
from typing import Protocol

from quiz_engine.core.errors import (
    AttemptConflictError,
    AttemptNotFoundError,
    QuizNotFoundError,
    QuizValidationError,
)
from quiz_engine.core.models import (
    COUNTED_STATUSES,
    AttemptStatus,
    Quiz,
    QuizAttempt,
    QuizQuestion,
    QuizResponse,
)
from quiz_engine.core.question_crypto import EncryptedQuestion, QuestionCipher
from quiz_engine.core.validation import validate_question, validate_quiz_settings

logger = logging.getLogger(__name__)


class QuizDataService(Protocol):
    """Storage operations consumed by :class:`QuizManager`."""

    def get_quiz(self, quiz_id: str) -> Quiz: ...

    def list_quizzes(self, class_id: str | None = None) -> list[Quiz]: ...

    def list_questions(self, quiz_id: str) -> list[QuizQuestion]: ...

    def list_attempts(self, quiz_id: str | None = None, student_id: str | None = None) -> list[QuizAttempt]: ...

    def get_attempt(self, attempt_id: str) -> QuizAttempt: ...

    def create_attempt(self, attempt: QuizAttempt) -> QuizAttempt: ...

    def save_response(self, response: QuizResponse) -> QuizResponse: ...

    def finalize_attempt(
        self,
        attempt_id: str,
        attempt: QuizAttempt,
        responses: list[QuizResponse],
    ) -> QuizAttempt: ...

    def regrade_attempt(
        self,
        attempt_id: str,
        attempt: QuizAttempt,
        responses: list[QuizResponse],
    ) -> QuizAttempt: ...

    def list_responses(self, attempt_id: str) -> list[QuizResponse]: ...


class InMemoryQuizDataService:
    """Thread-safe in-memory store; every read returns copies."""

    def __init__(self, cipher: QuestionCipher | None = None) -> None:
        self._lock = Lock()
        self._cipher = cipher or QuestionCipher.generate()
        self._quizzes: dict[str, Quiz] = {}
        self._questions: dict[str, dict[str, EncryptedQuestion]] = {}
        self._attempts: dict[str, QuizAttempt] = {}
        self._responses: dict[str, dict[str, QuizResponse]] = {}

    # --- Authoring ---

    def add_quiz(self, quiz: Quiz) -> Quiz:
        errors = validate_quiz_settings(quiz)
        if errors:
            raise QuizValidationError(errors)
        with self._lock:
            self._quizzes[quiz.id] = deepcopy(quiz)
            self._questions.setdefault(quiz.id, {})
        return deepcopy(quiz)

    def add_question(self, question: QuizQuestion) -> QuizQuestion:
        errors = validate_question(question)
        if errors:
            raise QuizValidationError(errors)
        record = self._cipher.encrypt_question(question)
        with self._lock:
            if question.quiz_id not in self._quizzes:
                raise QuizNotFoundError(f"Quiz {question.quiz_id} not found")
            # Adding an existing id replaces the question, e.g. to correct its answer key.
            self._questions[question.quiz_id][question.id] = record
        return deepcopy(question)

    # --- Reads ---

    def get_quiz(self, quiz_id: str) -> Quiz:
        with self._lock:
            quiz = self._quizzes.get(quiz_id)
            if quiz is None:
                raise QuizNotFoundError(f"Quiz {quiz_id} not found")
            return deepcopy(quiz)

    def list_quizzes(self, class_id: str | None = None) -> list[Quiz]:
        with self._lock:
            return [
                deepcopy(quiz)
                for quiz in self._quizzes.values()
                if class_id is None or quiz.class_id == class_id
            ]

    def list_questions(self, quiz_id: str) -> list[QuizQuestion]:
        """Decrypted questions of a quiz in question order."""
        return [self._cipher.decrypt_question(record) for record in self.list_question_records(quiz_id)]

    def list_question_records(self, quiz_id: str) -> list[EncryptedQuestion]:
        """Stored question records with their secrets still sealed."""
        with self._lock:
            if quiz_id not in self._quizzes:
                raise QuizNotFoundError(f"Quiz {quiz_id} not found")
            records = sorted(self._questions[quiz_id].values(), key=lambda q: q.question_order)
            return deepcopy(records)

    def list_attempts(self, quiz_id: str | None = None, student_id: str | None = None) -> list[QuizAttempt]:
        with self._lock:
            return [
                deepcopy(attempt)
                for attempt in self._attempts.values()
                if (quiz_id is None or attempt.quiz_id == quiz_id)
                and (student_id is None or attempt.student_id == student_id)
            ]

    def get_attempt(self, attempt_id: str) -> QuizAttempt:
        with self._lock:
            return deepcopy(self._require_attempt(attempt_id))

    def list_responses(self, attempt_id: str) -> list[QuizResponse]:
        with self._lock:
            self._require_attempt(attempt_id)
            return deepcopy(list(self._responses.get(attempt_id, {}).values()))

    # --- Writes ---

    def create_attempt(self, attempt: QuizAttempt) -> QuizAttempt:
        """Insert a new IN_PROGRESS attempt, refusing a concurrent one."""
        with self._lock:
            if attempt.quiz_id not in self._quizzes:
                raise QuizNotFoundError(f"Quiz {attempt.quiz_id} not found")
            if attempt.attempt_status != AttemptStatus.IN_PROGRESS:
                raise AttemptConflictError("New attempts must start IN_PROGRESS.")
            if attempt.id in self._attempts:
                raise AttemptConflictError(f"Attempt {attempt.id} already exists.")
            for existing in self._attempts.values():
                if (
                    existing.quiz_id == attempt.quiz_id
                    and existing.student_id == attempt.student_id
                    and existing.attempt_status == AttemptStatus.IN_PROGRESS
                ):
                    logger.warning(
                        "Refused second in-progress attempt for student %s on quiz %s",
                        attempt.student_id,
                        attempt.quiz_id,
                    )
                    raise AttemptConflictError("An attempt is already in progress for this quiz.")
            self._attempts[attempt.id] = deepcopy(attempt)
            self._responses[attempt.id] = {}
            return deepcopy(attempt)

    def save_response(self, response: QuizResponse) -> QuizResponse:
        """Insert or overwrite the response for (attempt, question)."""
        with self._lock:
            attempt = self._require_attempt(response.attempt_id)
            if attempt.attempt_status != AttemptStatus.IN_PROGRESS:
                raise AttemptConflictError("Attempt has already been submitted.")
            self._responses[attempt.id][response.question_id] = deepcopy(response)
            return deepcopy(response)

    def finalize_attempt(
        self,
        attempt_id: str,
        attempt: QuizAttempt,
        responses: list[QuizResponse],
    ) -> QuizAttempt:
        """Compare-and-swap an IN_PROGRESS attempt into its terminal state."""
        with self._lock:
            stored = self._require_attempt(attempt_id)
            if stored.attempt_status != AttemptStatus.IN_PROGRESS:
                raise AttemptConflictError(
                    f"Attempt {attempt_id} is already {stored.attempt_status.value}."
                )
            if attempt.attempt_status == AttemptStatus.IN_PROGRESS:
                raise AttemptConflictError("Finalized attempts must have a terminal status.")
            self._attempts[attempt_id] = deepcopy(attempt)
            self._responses[attempt_id] = {r.question_id: deepcopy(r) for r in responses}
            return deepcopy(attempt)

    def regrade_attempt(
        self,
        attempt_id: str,
        attempt: QuizAttempt,
        responses: list[QuizResponse],
    ) -> QuizAttempt:
        """Replace the grade of a scored attempt without changing its status."""
        with self._lock:
            stored = self._require_attempt(attempt_id)
            if stored.attempt_status not in COUNTED_STATUSES:
                raise AttemptConflictError(
                    f"Attempt {attempt_id} is {stored.attempt_status.value} and cannot be regraded."
                )
            if attempt.attempt_status != stored.attempt_status:
                raise AttemptConflictError("Regrading cannot change the attempt status.")
            self._attempts[attempt_id] = deepcopy(attempt)
            self._responses[attempt_id] = {r.question_id: deepcopy(r) for r in responses}
            return deepcopy(attempt)

    def _require_attempt(self, attempt_id: str) -> QuizAttempt:
        attempt = self._attempts.get(attempt_id)
        if attempt is None:
            raise AttemptNotFoundError(f"Attempt {attempt_id} not found")
        return attempt
