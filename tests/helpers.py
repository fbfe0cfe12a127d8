"""Factories shared by the test modules."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from quiz_engine.core.models import AttemptStatus, QuestionType, Quiz, QuizAttempt, QuizQuestion, QuizResponse

NOW = datetime(2026, 3, 2, 10, 0, tzinfo=timezone.utc)


def make_quiz(**overrides) -> Quiz:
    values = dict(
        id="quiz-1",
        class_id="class-1",
        title="Fractions",
        available_from=NOW - timedelta(days=1),
        available_to=NOW + timedelta(days=1),
        max_score=10,
        passing_score=6,
        time_limit_minutes=30,
        submission_window_minutes=5,
        max_attempts=2,
    )
    values.update(overrides)
    return Quiz(**values)


def make_single_question(**overrides) -> QuizQuestion:
    values = dict(
        id="q1",
        quiz_id="quiz-1",
        question_text="What is $1/2 + 1/4$?",
        options={"A": "1/6", "B": "3/4", "C": "2/6", "D": "1"},
        correct_answers=["B"],
        question_type=QuestionType.SINGLE_CHOICE,
        points=4,
        negative_points=1,
        question_order=1,
        explanation="Common denominator of 4.",
    )
    values.update(overrides)
    return QuizQuestion(**values)


def make_multi_question(**overrides) -> QuizQuestion:
    values = dict(
        id="q2",
        quiz_id="quiz-1",
        question_text="Which equal one half?",
        options={"A": "2/4", "B": "2/3", "C": "0.5"},
        correct_answers=["A", "C"],
        question_type=QuestionType.MULTI_CHOICE,
        points=6,
        negative_points=2,
        question_order=2,
        explanation="2/4 and 0.5 are both one half.",
    )
    values.update(overrides)
    return QuizQuestion(**values)


def make_attempt(
    attempt_id: str,
    student_id: str,
    status: AttemptStatus = AttemptStatus.COMPLETED,
    score: float | None = None,
    quiz_id: str = "quiz-1",
    attempt_number: int = 1,
    time_taken_seconds: int | None = None,
    passed: bool | None = None,
    percentage: float | None = None,
    max_score: float = 10,
    started_at: datetime = NOW,
    student_name: str | None = None,
) -> QuizAttempt:
    if percentage is None and score is not None:
        percentage = round(score / max_score * 100, 2)
    return QuizAttempt(
        id=attempt_id,
        quiz_id=quiz_id,
        student_id=student_id,
        student_name=student_name,
        attempt_number=attempt_number,
        started_at=started_at,
        attempt_status=status,
        score=score,
        max_score=max_score,
        percentage=percentage,
        passed=passed,
        time_taken_seconds=time_taken_seconds,
    )


def make_response(
    question_id: str,
    selected: list[str],
    is_correct: bool | None = None,
    attempt_id: str = "attempt-1",
    time_spent_seconds: int = 0,
) -> QuizResponse:
    return QuizResponse(
        attempt_id=attempt_id,
        question_id=question_id,
        selected_answers=selected,
        is_correct=is_correct,
        time_spent_seconds=time_spent_seconds,
    )
