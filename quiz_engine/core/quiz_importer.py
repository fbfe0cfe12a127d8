"""Utilities for importing a quiz from a human-friendly text file.

File format (blocks separated by blank lines or '---'). An optional first
block holds quiz settings; every other block is one question:

    TITLE: Fractions check
    CLASS: class-7b
    TIMELIMIT: 30          (minutes, optional; omit for an untimed quiz)
    WINDOW: 5              (submission window in minutes, optional)
    ATTEMPTS: 2            (optional, default 1)
    PASSING: 6             (optional)
    MAXSCORE: 10           (optional, defaults to the sum of question points)
    FROM: 2026-01-10T08:00:00+00:00   (optional, defaults to now)
    TO: 2026-01-17T20:00:00+00:00     (optional, defaults to FROM + 7 days)
    SHUFFLE: questions, options   (optional)
    SHOWANSWERS: yes       (optional)

    Q: What is $1/2 + 1/4$?
    A: 3/4
    B: 2/6
    C: 0.75
    CORRECT: A, C          (two or more keys make a multi-choice question)
    TYPE: multi            (optional: single or multi, overrides the inference)
    POINTS: 2              (optional, default 1)
    NEGATIVE: 0.5          (optional, default 0)
    EXPLANATION: Both are the same number.

Lines that do not start with a marker continue the previous section.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path

from quiz_engine.constants.quiz_constants import DEFAULT_MAX_ATTEMPTS, DEFAULT_SUBMISSION_WINDOW_MINUTES
from quiz_engine.core.errors import QuizValidationError
from quiz_engine.core.models import QuestionType, Quiz, QuizQuestion
from quiz_engine.core.time_model import utc_now
from quiz_engine.core.validation import validate_question, validate_quiz_settings

# Used when a file gives no FROM/TO: open now, for one week.
DEFAULT_AVAILABILITY = timedelta(days=7)


class QuizImportError(Exception):
    """Raised when a quiz definition cannot be parsed."""


@dataclass(slots=True)
class ImportedQuiz:
    """Container for imported quiz metadata and questions."""

    source_path: Path | None
    quiz: Quiz
    questions: list[QuizQuestion]


_SETTING_KEYS = {
    "TITLE", "CLASS", "TIMELIMIT", "WINDOW", "ATTEMPTS", "PASSING",
    "MAXSCORE", "FROM", "TO", "SHUFFLE", "SHOWANSWERS",
}
_QUESTION_KEYS = {"Q", "TYPE", "CORRECT", "POINTS", "NEGATIVE", "EXPLANATION", "TOPIC"}
_QUESTION_TYPES = {
    "single": QuestionType.SINGLE_CHOICE,
    "multi": QuestionType.MULTI_CHOICE,
    QuestionType.SINGLE_CHOICE.value.lower(): QuestionType.SINGLE_CHOICE,
    QuestionType.MULTI_CHOICE.value.lower(): QuestionType.MULTI_CHOICE,
}
_TRUE_VALUES = {"yes", "true", "1", "on"}


def load_quiz_from_file(file_path: Path, quiz_id: str | None = None) -> ImportedQuiz:
    text = file_path.read_text(encoding="utf-8")
    imported = parse_quiz_text(text, quiz_id or file_path.stem)
    imported.source_path = file_path
    return imported


def parse_quiz_text(text: str, quiz_id: str) -> ImportedQuiz:
    blocks = _split_blocks(text)
    if not blocks:
        raise QuizImportError("Quiz file did not contain any questions.")

    settings: dict[str, str] = {}
    if _is_settings_block(blocks[0]):
        settings = _parse_settings(blocks.pop(0))

    questions = [_parse_question(block, quiz_id, order) for order, block in enumerate(blocks, start=1)]
    if not questions:
        raise QuizImportError("Quiz file did not contain any questions.")

    quiz = _build_quiz(settings, quiz_id, questions)
    errors = validate_quiz_settings(quiz)
    for question in questions:
        errors.extend(f"Question {question.question_order}: {e}" for e in validate_question(question))
    if errors:
        raise QuizValidationError(errors)
    return ImportedQuiz(source_path=None, quiz=quiz, questions=questions)


def _split_blocks(text: str) -> list[str]:
    blocks: list[str] = []
    current_block: list[str] = []
    for raw_line in text.splitlines():
        stripped = raw_line.strip()
        if stripped == "---" or not stripped:
            if current_block:
                blocks.append("\n".join(current_block))
                current_block = []
            continue
        current_block.append(stripped)
    if current_block:
        blocks.append("\n".join(current_block))
    return blocks


def _marker(line: str) -> tuple[str, str] | None:
    if ":" not in line:
        return None
    key, value = line.split(":", 1)
    key = key.strip().upper()
    if not key or " " in key:
        return None
    return key, value.strip()


def _is_settings_block(block: str) -> bool:
    first = _marker(block.splitlines()[0])
    return first is not None and first[0] in _SETTING_KEYS


def _parse_settings(block: str) -> dict[str, str]:
    settings: dict[str, str] = {}
    for line in block.splitlines():
        marker = _marker(line)
        if marker is None or marker[0] not in _SETTING_KEYS:
            raise QuizImportError(f"Unknown quiz setting: '{line}'.")
        settings[marker[0]] = marker[1]
    return settings


def _parse_question(block: str, quiz_id: str, order: int) -> QuizQuestion:
    sections: dict[str, list[str]] = {}
    options: dict[str, list[str]] = {}
    current: list[str] | None = None

    for line in block.splitlines():
        marker = _marker(line)
        if marker is not None and (marker[0] in _QUESTION_KEYS or _is_option_key(marker[0])):
            key, value = marker
            current = sections.setdefault(key, []) if key in _QUESTION_KEYS else options.setdefault(key, [])
            current.append(value)
            continue
        if current is None:
            raise QuizImportError(f"Encountered text outside of a known section: '{line}'.")
        current.append(line)

    question_text = "\n".join(sections.get("Q", [])).strip()
    if not question_text:
        raise QuizImportError("Question text missing (Q: ...)")

    correct_raw = " ".join(sections.get("CORRECT", []))
    correct_answers = [key.strip().upper() for key in correct_raw.split(",") if key.strip()]
    question_type = _question_type(sections, correct_answers)

    explanation = "\n".join(sections.get("EXPLANATION", [])).strip() or None
    topic = " ".join(sections.get("TOPIC", [])).strip() or None

    return QuizQuestion(
        id=f"{quiz_id}-q{order}",
        quiz_id=quiz_id,
        question_text=question_text,
        options={key: "\n".join(lines).strip() for key, lines in options.items()},
        correct_answers=correct_answers,
        question_type=question_type,
        points=_number(sections, "POINTS", 1),
        negative_points=_number(sections, "NEGATIVE", 0),
        question_order=order,
        explanation=explanation,
        topic=topic,
    )


def _question_type(sections: dict[str, list[str]], correct_answers: list[str]) -> QuestionType:
    raw = " ".join(sections.get("TYPE", [])).strip().lower()
    if not raw:
        return QuestionType.MULTI_CHOICE if len(correct_answers) > 1 else QuestionType.SINGLE_CHOICE
    try:
        return _QUESTION_TYPES[raw]
    except KeyError as exc:
        raise QuizImportError(f"Unknown question type: '{raw}' (use single or multi).") from exc


def _is_option_key(key: str) -> bool:
    return len(key) == 1 and key.isalpha()


def _number(sections: dict[str, list[str]], key: str, default: float) -> float:
    raw = " ".join(sections.get(key, [])).strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise QuizImportError(f"{key} must be a number.") from exc


def _integer(settings: dict[str, str], key: str, default: int | None) -> int | None:
    raw = settings.get(key, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise QuizImportError(f"{key} must be an integer.") from exc


def _timestamp(settings: dict[str, str], key: str, default: datetime) -> datetime:
    raw = settings.get(key)
    if not raw:
        return default
    try:
        value = datetime.fromisoformat(raw)
    except ValueError as exc:
        raise QuizImportError(f"{key} must be an ISO 8601 timestamp.") from exc
    if value.tzinfo is None:
        raise QuizImportError(f"{key} must include a UTC offset.")
    return value


def _build_quiz(settings: dict[str, str], quiz_id: str, questions: list[QuizQuestion]) -> Quiz:
    shuffle = {part.strip().lower() for part in settings.get("SHUFFLE", "").split(",")}
    max_score = settings.get("MAXSCORE")
    passing = settings.get("PASSING")
    try:
        max_score_value = float(max_score) if max_score else sum(q.points for q in questions)
        passing_value = float(passing) if passing else None
    except ValueError as exc:
        raise QuizImportError("MAXSCORE and PASSING must be numbers.") from exc

    available_from = _timestamp(settings, "FROM", utc_now())
    return Quiz(
        id=quiz_id,
        class_id=settings.get("CLASS", "default"),
        title=settings.get("TITLE", quiz_id),
        available_from=available_from,
        available_to=_timestamp(settings, "TO", available_from + DEFAULT_AVAILABILITY),
        max_score=max_score_value,
        time_limit_minutes=_integer(settings, "TIMELIMIT", None),
        submission_window_minutes=_integer(settings, "WINDOW", DEFAULT_SUBMISSION_WINDOW_MINUTES),
        max_attempts=_integer(settings, "ATTEMPTS", DEFAULT_MAX_ATTEMPTS),
        passing_score=passing_value,
        shuffle_questions="questions" in shuffle,
        shuffle_options="options" in shuffle,
        show_correct_answers=settings.get("SHOWANSWERS", "").strip().lower() in _TRUE_VALUES,
    )
