from datetime import timedelta

from helpers import NOW, make_quiz, make_single_question
from quiz_engine.core.models import QuestionType
from quiz_engine.core.validation import (
    validate_question,
    validate_question_points,
    validate_question_structure,
    validate_quiz_settings,
    validate_quiz_time_range,
)


def test_valid_single_choice_question():
    assert validate_question_structure(QuestionType.SINGLE_CHOICE, {"A": "x", "B": "y"}, ["A"]) == []


def test_too_few_options():
    errors = validate_question_structure(QuestionType.MULTI_CHOICE, {"A": "x"}, ["A"])
    assert errors == ["At least 2 options required"]


def test_missing_correct_answer():
    errors = validate_question_structure(QuestionType.MULTI_CHOICE, {"A": "x", "B": "y"}, [])
    assert "At least one correct answer required" in errors


def test_correct_answer_not_in_options():
    errors = validate_question_structure(QuestionType.MULTI_CHOICE, {"A": "x", "B": "y"}, ["A", "E", "F"])
    assert errors == ["Invalid correct answers: E, F"]


def test_single_choice_needs_exactly_one_answer():
    errors = validate_question_structure(QuestionType.SINGLE_CHOICE, {"A": "x", "B": "y"}, ["A", "B"])
    assert errors == ["Single choice question must have exactly one correct answer"]


def test_question_points():
    assert validate_question_points(1, 0) == []
    assert validate_question_points(0, 0) == ["Points must be positive"]
    assert validate_question_points(2, -1) == ["Negative points cannot be negative"]


def test_validate_question_checks_text_and_options():
    question = make_single_question(question_text="  ", options={"A": "x", "B": " "}, correct_answers=["A"])
    errors = validate_question(question)
    assert "Question text is required" in errors
    assert "Option text cannot be empty" in errors


def test_time_range():
    assert validate_quiz_time_range(NOW, NOW + timedelta(minutes=1)) == []
    assert validate_quiz_time_range(NOW, NOW) == ["Available from must be before available to"]
    assert validate_quiz_time_range(NOW, NOW - timedelta(days=1)) == ["Available from must be before available to"]


def test_quiz_settings_valid():
    assert validate_quiz_settings(make_quiz()) == []
    assert validate_quiz_settings(make_quiz(time_limit_minutes=None, passing_score=None)) == []


def test_quiz_settings_collects_every_error():
    quiz = make_quiz(
        available_to=NOW - timedelta(days=2),
        time_limit_minutes=600,
        submission_window_minutes=-1,
        max_attempts=0,
        passing_score=20,
    )
    errors = validate_quiz_settings(quiz)
    assert "Available from must be before available to" in errors
    assert "Maximum time limit is 480 minutes" in errors
    assert "Submission window must be between 0 and 60 minutes" in errors
    assert "Max attempts must be between 1 and 10" in errors
    assert "Passing score cannot exceed max score" in errors
