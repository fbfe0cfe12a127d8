"""Prepare question payloads for students without leaking scoring secrets.

Option shuffling only changes the display order of the option mapping. Keys
stay attached to their original text, so a selected key always means the same
option to the scoring engine and no reverse mapping has to be stored.
"""

from __future__ import annotations

from dataclasses import replace
import random

from quiz_engine.core.models import QuizQuestion


def prepare_questions_for_attempt(
    questions: list[QuizQuestion],
    shuffle_questions: bool,
    shuffle_options: bool,
    rng: random.Random | None = None,
) -> list[QuizQuestion]:
    """Order, optionally shuffle and sanitize questions for an attempt."""
    rng = rng or random.Random()

    if shuffle_questions:
        prepared = list(questions)
        rng.shuffle(prepared)
    else:
        prepared = sorted(questions, key=lambda q: q.question_order)

    if shuffle_options:
        prepared = [replace(q, options=shuffle_option_order(q.options, rng)) for q in prepared]

    return sanitize_questions_for_student(prepared)


def sanitize_questions_for_student(questions: list[QuizQuestion]) -> list[QuizQuestion]:
    """Strip correct answers and explanations from every question."""
    return [
        replace(
            question,
            options=dict(question.options),
            correct_answers=[],
            explanation=None,
        )
        for question in questions
    ]


def shuffle_option_order(options: dict[str, str], rng: random.Random) -> dict[str, str]:
    """Return a copy of ``options`` with a random display order."""
    items = list(options.items())
    rng.shuffle(items)
    return dict(items)


def options_to_list(options: dict[str, str]) -> list[dict[str, str]]:
    return [{"key": key, "text": options[key]} for key in sorted(options)]


def options_from_list(items: list[dict[str, str]]) -> dict[str, str]:
    return {item["key"]: item["text"] for item in items}


def generate_option_key(index: int) -> str:
    """Alphabetic option key for a zero-based index: A..Z, AA, AB, ..."""
    if index < 0:
        raise ValueError("Option index must not be negative.")
    key = ""
    index += 1
    while index > 0:
        index, remainder = divmod(index - 1, 26)
        key = chr(65 + remainder) + key
    return key
