"""Encryption of question secrets at rest.

Question text, options, correct answers and explanation are sealed with a
NaCl secret box under one symmetric quiz key. Scoring metadata (type, points,
order, topic) stays in the clear so records can be listed and sorted without
the key. Every sealed field carries its own random nonce, so no nonce is
ever used twice under the same key.
"""

from __future__ import annotations

from dataclasses import dataclass
import json
import os

from nacl.encoding import Base64Encoder
from nacl.exceptions import CryptoError
from nacl.secret import SecretBox
import nacl.utils

from quiz_engine.constants.quiz_constants import QUIZ_ENCRYPTION_KEY_ENV
from quiz_engine.core.errors import QuestionCryptoError
from quiz_engine.core.models import QuestionType, QuizQuestion


@dataclass(slots=True)
class EncryptedQuestion:
    """Stored form of a question; secret fields are base64 secret-box messages."""

    id: str
    quiz_id: str
    question_type: QuestionType
    points: float
    negative_points: float
    question_order: int
    topic: str | None
    encrypted_question_text: str
    encrypted_options: str
    encrypted_correct_answers: str
    encrypted_explanation: str | None = None


def generate_key() -> str:
    """Return a new random base64 key suitable for ``QUIZ_ENCRYPTION_KEY``."""
    return Base64Encoder.encode(nacl.utils.random(SecretBox.KEY_SIZE)).decode("ascii")


class QuestionCipher:
    """Seals and opens question secrets with a single 32-byte key."""

    def __init__(self, key: bytes) -> None:
        if len(key) != SecretBox.KEY_SIZE:
            raise QuestionCryptoError(
                f"Invalid key length. Expected {SecretBox.KEY_SIZE} bytes, got {len(key)} bytes."
            )
        self._box = SecretBox(key)

    @classmethod
    def from_base64(cls, key_base64: str) -> QuestionCipher:
        try:
            key = Base64Encoder.decode(key_base64.encode("ascii"))
        except ValueError as exc:
            raise QuestionCryptoError("Invalid encryption key format. Key must be valid base64.") from exc
        return cls(key)

    @classmethod
    def from_environment(cls, variable: str = QUIZ_ENCRYPTION_KEY_ENV) -> QuestionCipher:
        key_base64 = os.environ.get(variable)
        if not key_base64:
            raise QuestionCryptoError(f"Quiz encryption key not configured. Set {variable}.")
        return cls.from_base64(key_base64)

    @classmethod
    def generate(cls) -> QuestionCipher:
        """Cipher with a throwaway random key, for stores that never persist."""
        return cls(nacl.utils.random(SecretBox.KEY_SIZE))

    def encrypt_question(self, question: QuizQuestion) -> EncryptedQuestion:
        return EncryptedQuestion(
            id=question.id,
            quiz_id=question.quiz_id,
            question_type=question.question_type,
            points=question.points,
            negative_points=question.negative_points,
            question_order=question.question_order,
            topic=question.topic,
            encrypted_question_text=self._seal(question.question_text),
            encrypted_options=self._seal(json.dumps(question.options)),
            encrypted_correct_answers=self._seal(json.dumps(question.correct_answers)),
            encrypted_explanation=self._seal(question.explanation) if question.explanation is not None else None,
        )

    def decrypt_question(self, record: EncryptedQuestion) -> QuizQuestion:
        explanation = None
        if record.encrypted_explanation is not None:
            explanation = self._open(record.encrypted_explanation)
        return QuizQuestion(
            id=record.id,
            quiz_id=record.quiz_id,
            question_text=self._open(record.encrypted_question_text),
            options=json.loads(self._open(record.encrypted_options)),
            correct_answers=json.loads(self._open(record.encrypted_correct_answers)),
            question_type=record.question_type,
            points=record.points,
            negative_points=record.negative_points,
            question_order=record.question_order,
            explanation=explanation,
            topic=record.topic,
        )

    def _seal(self, plaintext: str) -> str:
        return self._box.encrypt(plaintext.encode("utf-8"), encoder=Base64Encoder).decode("ascii")

    def _open(self, message: str) -> str:
        try:
            plaintext = self._box.decrypt(message.encode("ascii"), encoder=Base64Encoder)
            return plaintext.decode("utf-8")
        except (CryptoError, ValueError) as exc:
            raise QuestionCryptoError(
                "Decryption failed. The data may be corrupted or the key is wrong."
            ) from exc
