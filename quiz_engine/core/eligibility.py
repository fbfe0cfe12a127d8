"""Attempt eligibility checks and the attempt state machine.

    NOT_STARTED (virtual) -> IN_PROGRESS -> COMPLETED | TIMEOUT | ABANDONED

Terminal attempts never move again; a retry is a new attempt record.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from quiz_engine.core.engine_settings import EngineSettings
from quiz_engine.core.errors import AttemptConflictError
from quiz_engine.core.models import (
    COUNTED_STATUSES,
    AttemptStatus,
    Quiz,
    QuizAttempt,
    StudentQuizStatus,
)
from quiz_engine.core.time_model import availability_status

RESUME_REASON = "Resume existing attempt"


@dataclass(slots=True)
class EligibilityResult:
    can_attempt: bool
    reason: str | None = None


@dataclass(slots=True)
class EditCheck:
    can_edit: bool
    restrictions: list[str] = field(default_factory=list)


def can_attempt_quiz(quiz: Quiz, existing_attempts: list[QuizAttempt], now: datetime) -> EligibilityResult:
    """Decide whether a student may start or resume an attempt."""
    if not quiz.is_active:
        return EligibilityResult(False, "Quiz is not active")

    status = availability_status(now, quiz.available_from, quiz.available_to)
    if status == "upcoming":
        return EligibilityResult(False, "Quiz has not started yet")
    if status == "ended":
        return EligibilityResult(False, "Quiz has ended")

    if any(a.attempt_status == AttemptStatus.IN_PROGRESS for a in existing_attempts):
        return EligibilityResult(True, RESUME_REASON)

    if count_used_attempts(existing_attempts) >= quiz.max_attempts:
        return EligibilityResult(False, "Maximum attempts reached")

    return EligibilityResult(True)


def count_used_attempts(attempts: list[QuizAttempt]) -> int:
    return sum(1 for a in attempts if a.attempt_status in COUNTED_STATUSES)


def remaining_attempts(max_attempts: int, existing_attempts: list[QuizAttempt]) -> int:
    return max(0, max_attempts - count_used_attempts(existing_attempts))


def next_attempt_number(existing_attempts: list[QuizAttempt]) -> int:
    return max((a.attempt_number for a in existing_attempts), default=0) + 1


def find_in_progress(attempts: list[QuizAttempt]) -> QuizAttempt | None:
    return next((a for a in attempts if a.attempt_status == AttemptStatus.IN_PROGRESS), None)


def transition(attempt: QuizAttempt, target: AttemptStatus) -> None:
    """Validate a state change of ``attempt`` to ``target``.

    Only IN_PROGRESS attempts may move, and only to a terminal status.
    """
    if attempt.attempt_status != AttemptStatus.IN_PROGRESS:
        raise AttemptConflictError(
            f"Attempt {attempt.id} is already {attempt.attempt_status.value} and cannot be changed."
        )
    if target == AttemptStatus.IN_PROGRESS:
        raise AttemptConflictError(f"Attempt {attempt.id} is already in progress.")


def resolve_expiry_status(has_answers: bool, settings: EngineSettings) -> AttemptStatus:
    """Terminal status for an attempt whose combined window has lapsed."""
    if not has_answers and settings.abandon_unanswered_on_expiry:
        return AttemptStatus.ABANDONED
    return AttemptStatus.TIMEOUT


def can_edit_quiz(quiz: Quiz, has_attempts: bool, now: datetime) -> EditCheck:
    """Report editing restrictions; blocking the edit is the caller's job."""
    restrictions: list[str] = []
    if has_attempts:
        restrictions.append("Cannot change max score after students attempt")
        restrictions.append("Cannot remove questions after students attempt")
        restrictions.append("Cannot change question points after students attempt")

    if availability_status(now, quiz.available_from, quiz.available_to) == "active":
        restrictions.append("Limited editing while quiz is active")

    return EditCheck(can_edit=True, restrictions=restrictions)


def determine_student_quiz_status(attempt: QuizAttempt | None) -> StudentQuizStatus:
    if attempt is None or attempt.attempt_status == AttemptStatus.ABANDONED:
        return StudentQuizStatus.NOT_STARTED
    if attempt.attempt_status == AttemptStatus.IN_PROGRESS:
        return StudentQuizStatus.IN_PROGRESS
    if attempt.attempt_status == AttemptStatus.TIMEOUT:
        return StudentQuizStatus.TIMED_OUT
    if attempt.passed is True:
        return StudentQuizStatus.PASSED
    if attempt.passed is False:
        return StudentQuizStatus.FAILED
    return StudentQuizStatus.COMPLETED
