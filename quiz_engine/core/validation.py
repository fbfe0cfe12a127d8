"""Authoring-time checks for quizzes and questions.

Every check returns a list of human-readable errors; an empty list means the
definition is valid. Nothing here coerces input.
"""

from __future__ import annotations

from datetime import datetime

from quiz_engine.constants.quiz_constants import (
    MAX_ATTEMPTS_LIMIT,
    MAX_QUESTION_POINTS,
    MAX_QUIZ_SCORE,
    MAX_SUBMISSION_WINDOW_MINUTES,
    MAX_TIME_LIMIT_MINUTES,
    MIN_OPTIONS_PER_QUESTION,
)
from quiz_engine.core.models import QuestionType, Quiz, QuizQuestion


def validate_question_structure(
    question_type: QuestionType,
    options: dict[str, str],
    correct_answers: list[str],
) -> list[str]:
    errors: list[str] = []

    if len(options) < MIN_OPTIONS_PER_QUESTION:
        errors.append(f"At least {MIN_OPTIONS_PER_QUESTION} options required")

    if not correct_answers:
        errors.append("At least one correct answer required")

    invalid = [answer for answer in correct_answers if answer not in options]
    if invalid:
        errors.append(f"Invalid correct answers: {', '.join(invalid)}")

    if question_type == QuestionType.SINGLE_CHOICE and len(correct_answers) != 1:
        errors.append("Single choice question must have exactly one correct answer")

    return errors


def validate_question_points(points: float, negative_points: float) -> list[str]:
    errors: list[str] = []
    if points <= 0:
        errors.append("Points must be positive")
    elif points > MAX_QUESTION_POINTS:
        errors.append(f"Maximum points per question is {MAX_QUESTION_POINTS:g}")
    if negative_points < 0:
        errors.append("Negative points cannot be negative")
    elif negative_points > MAX_QUESTION_POINTS:
        errors.append(f"Maximum negative points is {MAX_QUESTION_POINTS:g}")
    return errors


def validate_question(question: QuizQuestion) -> list[str]:
    """Run every question check, including non-empty text."""
    errors: list[str] = []
    if not question.question_text.strip():
        errors.append("Question text is required")
    if any(not text.strip() for text in question.options.values()):
        errors.append("Option text cannot be empty")
    errors.extend(
        validate_question_structure(question.question_type, question.options, question.correct_answers)
    )
    errors.extend(validate_question_points(question.points, question.negative_points))
    return errors


def validate_quiz_time_range(available_from: datetime, available_to: datetime) -> list[str]:
    if available_from >= available_to:
        return ["Available from must be before available to"]
    return []


def validate_quiz_settings(quiz: Quiz) -> list[str]:
    errors = validate_quiz_time_range(quiz.available_from, quiz.available_to)

    if not quiz.title.strip():
        errors.append("Title is required")

    if quiz.time_limit_minutes is not None:
        if quiz.time_limit_minutes <= 0:
            errors.append("Time limit must be positive")
        elif quiz.time_limit_minutes > MAX_TIME_LIMIT_MINUTES:
            errors.append(f"Maximum time limit is {MAX_TIME_LIMIT_MINUTES} minutes")

    if not 0 <= quiz.submission_window_minutes <= MAX_SUBMISSION_WINDOW_MINUTES:
        errors.append(f"Submission window must be between 0 and {MAX_SUBMISSION_WINDOW_MINUTES} minutes")

    if not 1 <= quiz.max_attempts <= MAX_ATTEMPTS_LIMIT:
        errors.append(f"Max attempts must be between 1 and {MAX_ATTEMPTS_LIMIT}")

    if quiz.max_score <= 0:
        errors.append("Max score must be positive")
    elif quiz.max_score > MAX_QUIZ_SCORE:
        errors.append(f"Maximum score is {MAX_QUIZ_SCORE:g}")

    if quiz.passing_score is not None:
        if quiz.passing_score < 0:
            errors.append("Passing score cannot be negative")
        elif quiz.passing_score > quiz.max_score:
            errors.append("Passing score cannot exceed max score")

    return errors
