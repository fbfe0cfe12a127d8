from datetime import timedelta

import pytest

from helpers import NOW, make_attempt, make_quiz
from quiz_engine.core.eligibility import (
    RESUME_REASON,
    can_attempt_quiz,
    can_edit_quiz,
    determine_student_quiz_status,
    next_attempt_number,
    remaining_attempts,
    resolve_expiry_status,
    transition,
)
from quiz_engine.core.engine_settings import EngineSettings
from quiz_engine.core.errors import AttemptConflictError
from quiz_engine.core.models import AttemptStatus, StudentQuizStatus


def test_inactive_quiz_is_refused_first():
    result = can_attempt_quiz(make_quiz(is_active=False), [], NOW)
    assert not result.can_attempt
    assert result.reason == "Quiz is not active"


def test_quiz_not_started_yet():
    quiz = make_quiz(available_from=NOW + timedelta(hours=1), available_to=NOW + timedelta(days=1))
    result = can_attempt_quiz(quiz, [], NOW)
    assert not result.can_attempt
    assert result.reason == "Quiz has not started yet"


def test_quiz_has_ended():
    quiz = make_quiz(available_from=NOW - timedelta(days=2), available_to=NOW - timedelta(days=1))
    result = can_attempt_quiz(quiz, [], NOW)
    assert not result.can_attempt
    assert result.reason == "Quiz has ended"


def test_first_attempt_allowed_without_reason():
    result = can_attempt_quiz(make_quiz(), [], NOW)
    assert result.can_attempt
    assert result.reason is None


def test_maximum_attempts_reached():
    attempts = [
        make_attempt("a1", "s1", AttemptStatus.COMPLETED, score=5),
        make_attempt("a2", "s1", AttemptStatus.TIMEOUT, score=2, attempt_number=2),
    ]
    result = can_attempt_quiz(make_quiz(max_attempts=2), attempts, NOW)
    assert not result.can_attempt
    assert result.reason == "Maximum attempts reached"


def test_in_progress_attempt_is_resumed_regardless_of_count():
    attempts = [
        make_attempt("a1", "s1", AttemptStatus.COMPLETED, score=5),
        make_attempt("a2", "s1", AttemptStatus.COMPLETED, score=6, attempt_number=2),
        make_attempt("a3", "s1", AttemptStatus.IN_PROGRESS, attempt_number=3),
    ]
    result = can_attempt_quiz(make_quiz(max_attempts=2), attempts, NOW)
    assert result.can_attempt
    assert result.reason == RESUME_REASON == "Resume existing attempt"


def test_abandoned_attempts_do_not_consume_budget():
    attempts = [make_attempt("a1", "s1", AttemptStatus.ABANDONED)]
    assert can_attempt_quiz(make_quiz(max_attempts=1), attempts, NOW).can_attempt
    assert remaining_attempts(1, attempts) == 1


def test_remaining_attempts_never_negative():
    attempts = [make_attempt(f"a{i}", "s1", AttemptStatus.COMPLETED, score=1) for i in range(3)]
    assert remaining_attempts(2, attempts) == 0
    assert remaining_attempts(5, attempts) == 2
    assert remaining_attempts(3, []) == 3


def test_next_attempt_number_is_monotonic():
    assert next_attempt_number([]) == 1
    attempts = [
        make_attempt("a1", "s1", AttemptStatus.ABANDONED, attempt_number=1),
        make_attempt("a2", "s1", AttemptStatus.COMPLETED, attempt_number=2),
    ]
    assert next_attempt_number(attempts) == 3


@pytest.mark.parametrize("status", [AttemptStatus.COMPLETED, AttemptStatus.TIMEOUT, AttemptStatus.ABANDONED])
def test_terminal_attempts_cannot_transition(status):
    attempt = make_attempt("a1", "s1", status)
    with pytest.raises(AttemptConflictError):
        transition(attempt, AttemptStatus.COMPLETED)


def test_in_progress_can_move_to_terminal_only():
    attempt = make_attempt("a1", "s1", AttemptStatus.IN_PROGRESS)
    transition(attempt, AttemptStatus.TIMEOUT)
    with pytest.raises(AttemptConflictError):
        transition(attempt, AttemptStatus.IN_PROGRESS)


def test_expiry_status_policy():
    assert resolve_expiry_status(False, EngineSettings()) == AttemptStatus.TIMEOUT
    assert resolve_expiry_status(True, EngineSettings()) == AttemptStatus.TIMEOUT
    strict = EngineSettings(abandon_unanswered_on_expiry=True)
    assert resolve_expiry_status(False, strict) == AttemptStatus.ABANDONED
    assert resolve_expiry_status(True, strict) == AttemptStatus.TIMEOUT


def test_edit_restrictions_after_attempts():
    check = can_edit_quiz(make_quiz(), has_attempts=True, now=NOW)
    assert check.can_edit
    assert check.restrictions == [
        "Cannot change max score after students attempt",
        "Cannot remove questions after students attempt",
        "Cannot change question points after students attempt",
        "Limited editing while quiz is active",
    ]


def test_no_restrictions_for_upcoming_quiz_without_attempts():
    quiz = make_quiz(available_from=NOW + timedelta(days=1), available_to=NOW + timedelta(days=2))
    assert can_edit_quiz(quiz, has_attempts=False, now=NOW).restrictions == []


def test_student_quiz_status():
    assert determine_student_quiz_status(None) == StudentQuizStatus.NOT_STARTED
    assert determine_student_quiz_status(make_attempt("a", "s", AttemptStatus.ABANDONED)) == StudentQuizStatus.NOT_STARTED
    assert determine_student_quiz_status(make_attempt("a", "s", AttemptStatus.IN_PROGRESS)) == StudentQuizStatus.IN_PROGRESS
    assert determine_student_quiz_status(make_attempt("a", "s", AttemptStatus.TIMEOUT)) == StudentQuizStatus.TIMED_OUT
    assert determine_student_quiz_status(make_attempt("a", "s", passed=True)) == StudentQuizStatus.PASSED
    assert determine_student_quiz_status(make_attempt("a", "s", passed=False)) == StudentQuizStatus.FAILED
    assert determine_student_quiz_status(make_attempt("a", "s", passed=None)) == StudentQuizStatus.COMPLETED
