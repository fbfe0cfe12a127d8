from datetime import datetime, timezone

import pytest

from quiz_engine.core.errors import QuizValidationError
from quiz_engine.core.models import QuestionType
from quiz_engine.core.quiz_importer import (
    DEFAULT_AVAILABILITY,
    QuizImportError,
    load_quiz_from_file,
    parse_quiz_text,
)

QUIZ_TEXT = """\
TITLE: Fractions check
CLASS: class-7b
TIMELIMIT: 30
ATTEMPTS: 2
PASSING: 3
FROM: 2026-01-10T08:00:00+00:00
TO: 2026-01-17T20:00:00+00:00
SHUFFLE: questions, options
SHOWANSWERS: yes

Q: What is $1/2 + 1/4$?
A: 3/4
B: 2/6
CORRECT: A
POINTS: 2
NEGATIVE: 0.5
EXPLANATION: Use a common denominator.
---
Q: Which equal one half?
Written as decimals or fractions.
A: 0.5
B: 2/4
C: 1/3
CORRECT: a, b
TOPIC: Fractions
"""


def test_parse_settings_and_questions():
    imported = parse_quiz_text(QUIZ_TEXT, "fractions")
    quiz = imported.quiz
    assert quiz.id == "fractions"
    assert quiz.title == "Fractions check"
    assert quiz.class_id == "class-7b"
    assert quiz.time_limit_minutes == 30
    assert quiz.submission_window_minutes == 5
    assert quiz.max_attempts == 2
    assert quiz.passing_score == 3
    assert quiz.max_score == 3
    assert quiz.available_from == datetime(2026, 1, 10, 8, tzinfo=timezone.utc)
    assert quiz.shuffle_questions and quiz.shuffle_options
    assert quiz.show_correct_answers

    first, second = imported.questions
    assert first.id == "fractions-q1"
    assert first.question_type == QuestionType.SINGLE_CHOICE
    assert first.options == {"A": "3/4", "B": "2/6"}
    assert first.points == 2
    assert first.negative_points == 0.5
    assert first.explanation == "Use a common denominator."

    assert second.question_order == 2
    assert second.question_text == "Which equal one half?\nWritten as decimals or fractions."
    assert second.question_type == QuestionType.MULTI_CHOICE
    assert second.correct_answers == ["A", "B"]
    assert second.points == 1
    assert second.topic == "Fractions"


def test_defaults_without_settings_block():
    imported = parse_quiz_text("Q: Pick A\nA: yes\nB: no\nCORRECT: A\n", "plain")
    quiz = imported.quiz
    assert quiz.title == "plain"
    assert quiz.class_id == "default"
    assert quiz.time_limit_minutes is None
    assert quiz.max_attempts == 1
    assert quiz.available_to - quiz.available_from == DEFAULT_AVAILABILITY
    assert not quiz.shuffle_questions


def test_invalid_question_reports_its_number():
    text = "Q: Only one option\nA: lonely\nCORRECT: B\n"
    with pytest.raises(QuizValidationError) as excinfo:
        parse_quiz_text(text, "broken")
    assert "Question 1: At least 2 options required" in excinfo.value.errors
    assert "Question 1: Invalid correct answers: B" in excinfo.value.errors


@pytest.mark.parametrize(
    "text",
    [
        "",
        "TITLE: Settings only\n",
        "stray text\nQ: Hello\nA: x\nB: y\nCORRECT: A\n",
        "Q: Hello\nA: x\nB: y\nCORRECT: A\nPOINTS: many\n",
        "FROM: 2026-01-10T08:00:00\n\nQ: Hello\nA: x\nB: y\nCORRECT: A\n",
    ],
)
def test_malformed_files(text):
    with pytest.raises(QuizImportError):
        parse_quiz_text(text, "bad")


def test_load_from_file_uses_stem_as_id(tmp_path):
    path = tmp_path / "week-3.txt"
    path.write_text(QUIZ_TEXT, encoding="utf-8")
    imported = load_quiz_from_file(path)
    assert imported.source_path == path
    assert imported.quiz.id == "week-3"
    assert imported.questions[0].quiz_id == "week-3"


def test_type_marker_overrides_inferred_type():
    text = "Q: Select every prime.\nA: 2\nB: 4\nCORRECT: A\nTYPE: multi\n---\nQ: Pick one.\nA: yes\nB: no\nCORRECT: B\nTYPE: MCQ_SINGLE\n"
    first, second = parse_quiz_text(text, "primes").questions
    assert first.question_type == QuestionType.MULTI_CHOICE
    assert first.correct_answers == ["A"]
    assert second.question_type == QuestionType.SINGLE_CHOICE


def test_unknown_type_marker():
    with pytest.raises(QuizImportError, match="Unknown question type"):
        parse_quiz_text("Q: Pick.\nA: yes\nB: no\nCORRECT: A\nTYPE: essay\n", "bad")
