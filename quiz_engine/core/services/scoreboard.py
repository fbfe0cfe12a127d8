"""Leaderboard built from each student's best completed attempt."""

from __future__ import annotations

from dataclasses import dataclass
import math

from quiz_engine.constants.quiz_constants import DEFAULT_LEADERBOARD_SIZE
from quiz_engine.core.models import AttemptStatus, QuizAttempt


@dataclass(slots=True)
class LeaderboardEntry:
    """Immutable snapshot returned to consumers."""

    rank: int
    student_id: str
    student_name: str
    score: float
    percentage: float
    time_taken_seconds: int | None
    attempt_number: int
    attempt_id: str


def _time_key(attempt: QuizAttempt) -> float:
    if attempt.time_taken_seconds is None:
        return math.inf
    return attempt.time_taken_seconds


def _is_better(candidate: QuizAttempt, current: QuizAttempt) -> bool:
    if candidate.score != current.score:
        return candidate.score > current.score
    return _time_key(candidate) < _time_key(current)


def best_attempts_by_student(attempts: list[QuizAttempt]) -> dict[str, QuizAttempt]:
    """Keep the highest-scoring completed attempt per student; faster wins ties."""
    best: dict[str, QuizAttempt] = {}
    for attempt in attempts:
        if attempt.attempt_status != AttemptStatus.COMPLETED or attempt.score is None:
            continue
        current = best.get(attempt.student_id)
        if current is None or _is_better(attempt, current):
            best[attempt.student_id] = attempt
    return best


def build_leaderboard(attempts: list[QuizAttempt], limit: int = DEFAULT_LEADERBOARD_SIZE) -> list[LeaderboardEntry]:
    """Return the top ``limit`` students of one quiz sorted by score and time.

    Ranks are dense: students with the same score and time share a rank and
    the next distinct result takes the following rank.
    """
    sorted_attempts = sorted(
        best_attempts_by_student(attempts).values(),
        key=lambda a: (-a.score, _time_key(a)),
    )

    entries: list[LeaderboardEntry] = []
    rank = 0
    previous_key: tuple[float, float] | None = None
    for attempt in sorted_attempts[: max(0, limit)]:
        key = (attempt.score, _time_key(attempt))
        if key != previous_key:
            rank += 1
            previous_key = key
        entries.append(
            LeaderboardEntry(
                rank=rank,
                student_id=attempt.student_id,
                student_name=attempt.student_name or "Unknown Student",
                score=attempt.score,
                percentage=attempt.percentage or 0.0,
                time_taken_seconds=attempt.time_taken_seconds,
                attempt_number=attempt.attempt_number,
                attempt_id=attempt.id,
            )
        )
    return entries
