"""Post-submission views of attempts for students and teachers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from quiz_engine.core.models import COUNTED_STATUSES, QuestionType, Quiz, QuizAttempt, QuizQuestion, QuizResponse


@dataclass(slots=True)
class ResponseForReview:
    question_id: str
    question_text: str
    question_type: QuestionType
    options: dict[str, str]
    selected_answers: list[str]
    is_correct: bool | None
    points_earned: float
    points_deducted: float
    correct_answers: list[str] | None = None
    explanation: str | None = None


@dataclass(slots=True)
class QuizAttemptResult:
    attempt_id: str
    quiz_id: str
    quiz_title: str
    attempt_status: str
    score: float
    max_score: float
    percentage: float
    passed: bool | None
    passing_score: float | None
    time_taken_seconds: int
    time_limit_minutes: int | None
    total_questions: int
    correct_count: int
    incorrect_count: int
    unanswered_count: int
    show_correct_answers: bool
    responses: list[ResponseForReview] | None = None


@dataclass(slots=True)
class StudentAttemptStatus:
    student_id: str
    student_name: str
    has_attempted: bool
    total_attempts: int
    best_score: float | None
    best_percentage: float | None
    passed: bool | None
    last_attempt_at: datetime | None
    attempt_ids: list[str] = field(default_factory=list)


def create_response_for_review(
    response: QuizResponse,
    question: QuizQuestion,
    show_correct_answers: bool,
) -> ResponseForReview:
    """Review item; answers and explanation are only revealed when allowed."""
    return ResponseForReview(
        question_id=response.question_id,
        question_text=question.question_text,
        question_type=question.question_type,
        options=dict(question.options),
        selected_answers=list(response.selected_answers),
        is_correct=response.is_correct,
        points_earned=response.points_earned,
        points_deducted=response.points_deducted,
        correct_answers=list(question.correct_answers) if show_correct_answers else None,
        explanation=question.explanation if show_correct_answers else None,
    )


def create_quiz_attempt_result(
    attempt: QuizAttempt,
    quiz: Quiz,
    responses: list[QuizResponse],
    questions: list[QuizQuestion],
) -> QuizAttemptResult:
    """Assemble the result screen for a finalized attempt.

    A response with an empty selection counts as unanswered, not incorrect.
    """
    question_map = {question.id: question for question in questions}
    known = [r for r in responses if r.question_id in question_map]
    answered = [r for r in known if r.is_answered]
    correct_count = sum(1 for r in answered if r.is_correct is True)

    review: list[ResponseForReview] | None = None
    if quiz.show_correct_answers:
        review = [create_response_for_review(r, question_map[r.question_id], True) for r in known]

    return QuizAttemptResult(
        attempt_id=attempt.id,
        quiz_id=quiz.id,
        quiz_title=quiz.title,
        attempt_status=attempt.attempt_status.value,
        score=attempt.score or 0,
        max_score=quiz.max_score,
        percentage=attempt.percentage or 0.0,
        passed=attempt.passed,
        passing_score=quiz.passing_score,
        time_taken_seconds=attempt.time_taken_seconds or 0,
        time_limit_minutes=quiz.time_limit_minutes,
        total_questions=len(questions),
        correct_count=correct_count,
        incorrect_count=len(answered) - correct_count,
        unanswered_count=len(questions) - len(answered),
        show_correct_answers=quiz.show_correct_answers,
        responses=review,
    )


def create_student_attempt_status(
    student_id: str,
    student_name: str | None,
    attempts: list[QuizAttempt],
) -> StudentAttemptStatus:
    """Teacher-facing status row for one student on one quiz."""
    counted = [a for a in attempts if a.attempt_status in COUNTED_STATUSES]

    best: QuizAttempt | None = None
    for attempt in counted:
        if best is None or (attempt.score is not None and (best.score is None or attempt.score > best.score)):
            best = attempt

    last = max(attempts, key=lambda a: a.started_at, default=None)

    return StudentAttemptStatus(
        student_id=student_id,
        student_name=student_name or "Unknown Student",
        has_attempted=bool(attempts),
        total_attempts=len(counted),
        best_score=best.score if best else None,
        best_percentage=best.percentage if best else None,
        passed=best.passed if best else None,
        last_attempt_at=last.started_at if last else None,
        attempt_ids=[a.id for a in sorted(attempts, key=lambda a: a.attempt_number)],
    )
