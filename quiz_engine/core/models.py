"""Domain models for the quiz attempt and scoring engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from quiz_engine.constants.quiz_constants import (
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_SUBMISSION_WINDOW_MINUTES,
)


class QuestionType(str, Enum):
    """Supported question types."""

    SINGLE_CHOICE = "MCQ_SINGLE"
    MULTI_CHOICE = "MCQ_MULTI"


class AttemptStatus(str, Enum):
    """Lifecycle states of a quiz attempt."""

    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    TIMEOUT = "TIMEOUT"
    ABANDONED = "ABANDONED"


class StudentQuizStatus(str, Enum):
    """Per-student quiz status derived from the latest attempt."""

    NOT_STARTED = "NOT_STARTED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    PASSED = "PASSED"
    FAILED = "FAILED"
    TIMED_OUT = "TIMED_OUT"


TERMINAL_STATUSES: frozenset[AttemptStatus] = frozenset(
    {AttemptStatus.COMPLETED, AttemptStatus.TIMEOUT, AttemptStatus.ABANDONED}
)
# Statuses that consume the attempt budget.
COUNTED_STATUSES: frozenset[AttemptStatus] = frozenset(
    {AttemptStatus.COMPLETED, AttemptStatus.TIMEOUT}
)


@dataclass(slots=True)
class Quiz:
    """A timed multiple-choice quiz assigned to a class."""

    id: str
    class_id: str
    title: str
    available_from: datetime
    available_to: datetime
    max_score: float
    branch_id: str | None = None
    teacher_id: str | None = None
    description: str | None = None
    time_limit_minutes: int | None = None
    submission_window_minutes: int = DEFAULT_SUBMISSION_WINDOW_MINUTES
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    passing_score: float | None = None
    shuffle_questions: bool = False
    shuffle_options: bool = False
    show_correct_answers: bool = False
    is_active: bool = True


@dataclass(slots=True)
class QuizQuestion:
    """Single- or multi-choice question keyed by option letters."""

    id: str
    quiz_id: str
    question_text: str
    options: dict[str, str]
    correct_answers: list[str]
    question_type: QuestionType = QuestionType.SINGLE_CHOICE
    points: float = 1
    negative_points: float = 0
    question_order: int = 1
    explanation: str | None = None
    topic: str | None = None


@dataclass(slots=True)
class QuizAttempt:
    """One student's pass at a quiz.

    The grading fields (``score``, ``percentage``, ``passed`` and
    ``time_taken_seconds``) stay ``None`` until the attempt is finalized;
    use :attr:`is_graded` rather than testing them individually.
    """

    id: str
    quiz_id: str
    student_id: str
    attempt_number: int
    started_at: datetime
    class_id: str | None = None
    student_name: str | None = None
    attempt_status: AttemptStatus = AttemptStatus.IN_PROGRESS
    submitted_at: datetime | None = None
    score: float | None = None
    max_score: float | None = None
    percentage: float | None = None
    passed: bool | None = None
    time_taken_seconds: int | None = None

    @property
    def is_terminal(self) -> bool:
        return self.attempt_status in TERMINAL_STATUSES

    @property
    def is_graded(self) -> bool:
        return self.score is not None


@dataclass(slots=True)
class QuizResponse:
    """A student's answer to one question within an attempt."""

    attempt_id: str
    question_id: str
    selected_answers: list[str] = field(default_factory=list)
    is_correct: bool | None = None
    points_earned: float = 0
    points_deducted: float = 0
    time_spent_seconds: int = 0

    @property
    def is_answered(self) -> bool:
        return bool(self.selected_answers)
