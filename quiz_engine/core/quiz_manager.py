"""Orchestration of quiz attempts on top of a QuizDataService.

The manager only wires pure engine functions to storage calls. Expiry is
detected lazily when an attempt is resumed, written to or submitted, or when
``expire_stale_attempts`` is run by an external sweep.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
import logging
import random
from threading import Lock
from uuid import uuid4

from quiz_engine.core.attempt_results import (
    QuizAttemptResult,
    StudentAttemptStatus,
    create_quiz_attempt_result,
    create_student_attempt_status,
)
from quiz_engine.core.eligibility import (
    EligibilityResult,
    can_attempt_quiz,
    find_in_progress,
    next_attempt_number,
    remaining_attempts,
    resolve_expiry_status,
    transition,
)
from quiz_engine.core.engine_settings import EngineSettings
from quiz_engine.core.errors import AttemptConflictError, AttemptNotAllowedError, QuizValidationError
from quiz_engine.core.models import AttemptStatus, Quiz, QuizAttempt, QuizQuestion, QuizResponse
from quiz_engine.core.question_presenter import prepare_questions_for_attempt
from quiz_engine.core.scoring import score_attempt
from quiz_engine.core.services.quiz_data_service import QuizDataService
from quiz_engine.core.services.scoreboard import LeaderboardEntry, build_leaderboard
from quiz_engine.core.statistics import (
    ClassQuizReport,
    QuestionStatistics,
    QuizStatistics,
    StudentQuizSummary,
    calculate_class_quiz_report,
    calculate_question_statistics,
    calculate_quiz_statistics,
    calculate_student_quiz_summary,
)
from quiz_engine.core.time_model import RemainingTime, elapsed_seconds, remaining_time, utc_now

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ResponseSubmission:
    """Answer payload for one question as sent by a student."""

    question_id: str
    selected_answers: list[str] = field(default_factory=list)
    time_spent_seconds: int = 0


@dataclass(slots=True)
class StartedAttempt:
    attempt: QuizAttempt
    questions: list[QuizQuestion]
    remaining_time: RemainingTime
    resumed: bool


class QuizManager:
    """Facade over the engine: eligibility, lifecycle, scoring and reports."""

    def __init__(self, data_service: QuizDataService, settings: EngineSettings | None = None) -> None:
        self._lock = Lock()
        self._data = data_service
        self._settings = settings or EngineSettings()

    @property
    def settings(self) -> EngineSettings:
        return self._settings

    # --- Eligibility ---

    def check_eligibility(self, quiz_id: str, student_id: str, now: datetime | None = None) -> EligibilityResult:
        now = now or utc_now()
        with self._lock:
            quiz = self._data.get_quiz(quiz_id)
            return can_attempt_quiz(quiz, self._data.list_attempts(quiz_id, student_id), now)

    def get_remaining_attempts(self, quiz_id: str, student_id: str) -> int:
        with self._lock:
            quiz = self._data.get_quiz(quiz_id)
            return remaining_attempts(quiz.max_attempts, self._data.list_attempts(quiz_id, student_id))

    # --- Attempt lifecycle ---

    def start_attempt(
        self,
        quiz_id: str,
        student_id: str,
        student_name: str | None = None,
        now: datetime | None = None,
    ) -> StartedAttempt:
        """Start a new attempt or resume the student's in-progress one."""
        now = now or utc_now()
        with self._lock:
            quiz = self._data.get_quiz(quiz_id)
            attempts = self._data.list_attempts(quiz_id, student_id)

            in_progress = find_in_progress(attempts)
            if in_progress is not None and self._is_expired(quiz, in_progress, now):
                self._finalize_expired(quiz, in_progress, now)
                attempts = self._data.list_attempts(quiz_id, student_id)
                in_progress = None

            eligibility = can_attempt_quiz(quiz, attempts, now)
            if not eligibility.can_attempt:
                logger.warning(
                    "Student %s may not attempt quiz %s: %s", student_id, quiz_id, eligibility.reason
                )
                raise AttemptNotAllowedError(eligibility.reason or "Attempt not allowed")

            resumed = in_progress is not None
            if in_progress is not None:
                attempt = in_progress
            else:
                attempt = self._data.create_attempt(
                    QuizAttempt(
                        id=uuid4().hex,
                        quiz_id=quiz.id,
                        student_id=student_id,
                        student_name=student_name,
                        class_id=quiz.class_id,
                        attempt_number=next_attempt_number(attempts),
                        started_at=now,
                        max_score=quiz.max_score,
                    )
                )
                logger.info(
                    "Started attempt %s (#%d) for student %s on quiz %s",
                    attempt.id,
                    attempt.attempt_number,
                    student_id,
                    quiz_id,
                )

            questions = prepare_questions_for_attempt(
                self._data.list_questions(quiz_id),
                quiz.shuffle_questions,
                quiz.shuffle_options,
                rng=self._attempt_rng(attempt),
            )
            return StartedAttempt(
                attempt=attempt,
                questions=questions,
                remaining_time=self._remaining(quiz, attempt, now),
                resumed=resumed,
            )

    def save_response(
        self,
        attempt_id: str,
        question_id: str,
        selected_answers: list[str],
        time_spent_seconds: int = 0,
        now: datetime | None = None,
    ) -> QuizResponse:
        """Auto-save an ungraded answer; a later save for the same question overwrites it."""
        now = now or utc_now()
        with self._lock:
            attempt = self._data.get_attempt(attempt_id)
            if attempt.is_terminal:
                raise AttemptConflictError("Attempt has already been submitted.")
            quiz = self._data.get_quiz(attempt.quiz_id)
            if self._is_expired(quiz, attempt, now):
                raise AttemptConflictError("Attempt time has expired.")

            questions = {q.id: q for q in self._data.list_questions(quiz.id)}
            self._check_submission(questions, ResponseSubmission(question_id, selected_answers))
            return self._data.save_response(
                QuizResponse(
                    attempt_id=attempt_id,
                    question_id=question_id,
                    selected_answers=list(selected_answers),
                    time_spent_seconds=time_spent_seconds,
                )
            )

    def submit_attempt(
        self,
        attempt_id: str,
        responses: list[ResponseSubmission] | None = None,
        now: datetime | None = None,
    ) -> QuizAttemptResult:
        """Finalize an attempt.

        Before expiry the submitted responses are merged over the saved ones
        and the attempt is COMPLETED. After expiry the submitted payload is
        ignored and only previously saved responses are scored (TIMEOUT).
        """
        now = now or utc_now()
        with self._lock:
            attempt = self._data.get_attempt(attempt_id)
            transition(attempt, AttemptStatus.COMPLETED)
            quiz = self._data.get_quiz(attempt.quiz_id)
            questions = self._data.list_questions(quiz.id)

            if self._is_expired(quiz, attempt, now):
                finalized, graded = self._finalize_expired(quiz, attempt, now, questions)
            else:
                saved = {r.question_id: r for r in self._data.list_responses(attempt_id)}
                question_map = {q.id: q for q in questions}
                for submission in responses or []:
                    self._check_submission(question_map, submission)
                    saved[submission.question_id] = QuizResponse(
                        attempt_id=attempt_id,
                        question_id=submission.question_id,
                        selected_answers=list(submission.selected_answers),
                        time_spent_seconds=submission.time_spent_seconds,
                    )
                finalized, graded = self._finalize_scored(
                    quiz, attempt, list(saved.values()), questions, AttemptStatus.COMPLETED, now
                )

            return create_quiz_attempt_result(finalized, quiz, graded, questions)

    def abandon_attempt(self, attempt_id: str, now: datetime | None = None) -> QuizAttempt:
        """Discard an in-progress attempt without scoring it."""
        now = now or utc_now()
        with self._lock:
            attempt = self._data.get_attempt(attempt_id)
            transition(attempt, AttemptStatus.ABANDONED)
            return self._finalize_abandoned(attempt, self._data.list_responses(attempt_id), now)

    def expire_stale_attempts(self, now: datetime | None = None) -> list[QuizAttempt]:
        """Finalize every in-progress attempt whose combined window has lapsed."""
        now = now or utc_now()
        expired: list[QuizAttempt] = []
        with self._lock:
            quizzes: dict[str, Quiz] = {}
            for attempt in self._data.list_attempts():
                if attempt.attempt_status != AttemptStatus.IN_PROGRESS:
                    continue
                quiz = quizzes.get(attempt.quiz_id)
                if quiz is None:
                    quiz = quizzes[attempt.quiz_id] = self._data.get_quiz(attempt.quiz_id)
                if not self._is_expired(quiz, attempt, now):
                    continue
                try:
                    finalized, _ = self._finalize_expired(quiz, attempt, now)
                except AttemptConflictError:
                    logger.warning("Attempt %s was finalized concurrently; skipping", attempt.id)
                    continue
                expired.append(finalized)
        return expired

    def get_remaining_time(self, attempt_id: str, now: datetime | None = None) -> RemainingTime:
        now = now or utc_now()
        with self._lock:
            attempt = self._data.get_attempt(attempt_id)
            if attempt.is_terminal:
                return RemainingTime(remaining_seconds=0, is_expired=True, is_warning=False, is_critical=False)
            return self._remaining(self._data.get_quiz(attempt.quiz_id), attempt, now)

    def get_attempt_result(self, attempt_id: str) -> QuizAttemptResult:
        with self._lock:
            attempt = self._data.get_attempt(attempt_id)
            if not attempt.is_terminal:
                raise AttemptConflictError("Attempt is still in progress.")
            quiz = self._data.get_quiz(attempt.quiz_id)
            return create_quiz_attempt_result(
                attempt,
                quiz,
                self._data.list_responses(attempt_id),
                self._data.list_questions(quiz.id),
            )

    def recalculate_attempt_score(self, attempt_id: str) -> QuizAttemptResult:
        """Re-score a COMPLETED or TIMEOUT attempt against the current questions.

        Used after an answer key or point value has been corrected. Status,
        submission time and time taken are kept.
        """
        with self._lock:
            attempt = self._data.get_attempt(attempt_id)
            if not attempt.is_terminal or not attempt.is_graded:
                raise AttemptConflictError(f"Attempt {attempt_id} has no score to recalculate.")
            quiz = self._data.get_quiz(attempt.quiz_id)
            questions = self._data.list_questions(quiz.id)
            result = score_attempt(
                self._data.list_responses(attempt_id),
                questions,
                quiz.max_score,
                quiz.passing_score,
                self._settings.scoring_policy(),
            )
            regraded = self._data.regrade_attempt(
                attempt_id,
                replace(
                    attempt,
                    score=result.score,
                    max_score=result.max_score,
                    percentage=result.percentage,
                    passed=result.passed,
                ),
                result.responses,
            )
            logger.info(
                "Attempt %s rescored from %s to %s/%s",
                attempt_id,
                attempt.score,
                result.score,
                result.max_score,
            )
            return create_quiz_attempt_result(regraded, quiz, result.responses, questions)

    # --- Reports ---

    def get_quiz_statistics(self, quiz_id: str, total_students: int) -> QuizStatistics:
        with self._lock:
            self._data.get_quiz(quiz_id)
            return calculate_quiz_statistics(total_students, self._data.list_attempts(quiz_id))

    def get_question_statistics(self, quiz_id: str) -> list[QuestionStatistics]:
        with self._lock:
            questions = self._data.list_questions(quiz_id)
            graded: list[QuizResponse] = []
            for attempt in self._data.list_attempts(quiz_id):
                if attempt.is_terminal and attempt.is_graded:
                    graded.extend(self._data.list_responses(attempt.id))
            return [calculate_question_statistics(question, graded) for question in questions]

    def get_student_summary(self, student_id: str, class_id: str | None = None) -> StudentQuizSummary:
        with self._lock:
            return calculate_student_quiz_summary(
                self._data.list_quizzes(class_id),
                self._data.list_attempts(student_id=student_id),
            )

    def get_class_report(self, class_id: str, class_name: str, total_students: int) -> ClassQuizReport:
        with self._lock:
            quizzes = self._data.list_quizzes(class_id)
            attempts = [a for quiz in quizzes for a in self._data.list_attempts(quiz.id)]
            return calculate_class_quiz_report(class_id, class_name, quizzes, attempts, total_students)

    def get_leaderboard(self, quiz_id: str, limit: int | None = None) -> list[LeaderboardEntry]:
        with self._lock:
            self._data.get_quiz(quiz_id)
            size = self._settings.leaderboard_size if limit is None else limit
            return build_leaderboard(self._data.list_attempts(quiz_id), size)

    def get_student_attempt_statuses(self, quiz_id: str) -> list[StudentAttemptStatus]:
        with self._lock:
            self._data.get_quiz(quiz_id)
            by_student: dict[str, list[QuizAttempt]] = {}
            for attempt in self._data.list_attempts(quiz_id):
                by_student.setdefault(attempt.student_id, []).append(attempt)
            return [
                create_student_attempt_status(
                    student_id,
                    next((a.student_name for a in attempts if a.student_name), None),
                    attempts,
                )
                for student_id, attempts in sorted(by_student.items())
            ]

    # --- Internals (caller holds the lock) ---

    def _attempt_rng(self, attempt: QuizAttempt) -> random.Random:
        # Seeded per attempt so a resumed attempt sees the same order.
        return random.Random(f"{self._settings.shuffle_seed}:{attempt.id}")

    @staticmethod
    def _remaining(quiz: Quiz, attempt: QuizAttempt, now: datetime) -> RemainingTime:
        return remaining_time(attempt.started_at, quiz.time_limit_minutes, quiz.submission_window_minutes, now)

    def _is_expired(self, quiz: Quiz, attempt: QuizAttempt, now: datetime) -> bool:
        return self._remaining(quiz, attempt, now).is_expired

    @staticmethod
    def _check_submission(questions: dict[str, QuizQuestion], submission: ResponseSubmission) -> None:
        question = questions.get(submission.question_id)
        if question is None:
            raise QuizValidationError([f"Question {submission.question_id} is not part of this quiz"])
        unknown = [key for key in submission.selected_answers if key not in question.options]
        if unknown:
            raise QuizValidationError([f"Invalid option keys: {', '.join(unknown)}"])

    def _finalize_expired(
        self,
        quiz: Quiz,
        attempt: QuizAttempt,
        now: datetime,
        questions: list[QuizQuestion] | None = None,
    ) -> tuple[QuizAttempt, list[QuizResponse]]:
        saved = self._data.list_responses(attempt.id)
        status = resolve_expiry_status(any(r.is_answered for r in saved), self._settings)
        if status == AttemptStatus.ABANDONED:
            return self._finalize_abandoned(attempt, saved, now), saved
        if questions is None:
            questions = self._data.list_questions(quiz.id)
        return self._finalize_scored(quiz, attempt, saved, questions, status, now)

    def _finalize_scored(
        self,
        quiz: Quiz,
        attempt: QuizAttempt,
        responses: list[QuizResponse],
        questions: list[QuizQuestion],
        status: AttemptStatus,
        now: datetime,
    ) -> tuple[QuizAttempt, list[QuizResponse]]:
        result = score_attempt(
            responses,
            questions,
            quiz.max_score,
            quiz.passing_score,
            self._settings.scoring_policy(),
        )
        finalized = replace(
            attempt,
            attempt_status=status,
            submitted_at=now,
            time_taken_seconds=elapsed_seconds(attempt.started_at, now),
            score=result.score,
            max_score=result.max_score,
            percentage=result.percentage,
            passed=result.passed,
        )
        stored = self._data.finalize_attempt(attempt.id, finalized, result.responses)
        logger.info(
            "Attempt %s finalized as %s with score %s/%s",
            attempt.id,
            status.value,
            result.score,
            result.max_score,
        )
        return stored, result.responses

    def _finalize_abandoned(self, attempt: QuizAttempt, responses: list[QuizResponse], now: datetime) -> QuizAttempt:
        finalized = replace(
            attempt,
            attempt_status=AttemptStatus.ABANDONED,
            submitted_at=now,
            time_taken_seconds=elapsed_seconds(attempt.started_at, now),
        )
        stored = self._data.finalize_attempt(attempt.id, finalized, responses)
        logger.info("Attempt %s abandoned", attempt.id)
        return stored
