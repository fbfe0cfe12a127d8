"""Exceptions raised by the quiz engine and its data service."""

from __future__ import annotations


class QuizEngineError(Exception):
    """Base class for quiz engine errors."""


class QuizValidationError(QuizEngineError, ValueError):
    """Raised when a quiz or question definition fails validation."""

    def __init__(self, errors: list[str]) -> None:
        super().__init__("; ".join(errors))
        self.errors = list(errors)


class AttemptConflictError(QuizEngineError, RuntimeError):
    """Raised when an attempt lifecycle rule would be violated.

    Covers finalizing an already terminal attempt, opening a second
    IN_PROGRESS attempt for the same student and quiz, and writing
    responses into a closed attempt.
    """


class AttemptNotAllowedError(QuizEngineError):
    """Raised when a student is not eligible to start an attempt."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class QuizNotFoundError(QuizEngineError, LookupError):
    """Raised when a quiz id is unknown."""


class AttemptNotFoundError(QuizEngineError, LookupError):
    """Raised when an attempt id is unknown."""


class QuestionCryptoError(QuizEngineError):
    """Raised when question secrets cannot be encrypted or decrypted."""
