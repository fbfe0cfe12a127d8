from dataclasses import replace

import pytest

from helpers import NOW, make_attempt, make_quiz, make_response, make_single_question
from quiz_engine.core.errors import (
    AttemptConflictError,
    AttemptNotFoundError,
    QuizNotFoundError,
    QuizValidationError,
)
from quiz_engine.core.models import AttemptStatus
from quiz_engine.core.question_crypto import QuestionCipher
from quiz_engine.core.services.quiz_data_service import InMemoryQuizDataService


def _in_progress(attempt_id="attempt-1", student_id="s1"):
    return make_attempt(attempt_id, student_id, AttemptStatus.IN_PROGRESS)


def test_questions_are_listed_in_order(data_service):
    assert [q.id for q in data_service.list_questions("quiz-1")] == ["q1", "q2"]


def test_reads_return_copies(data_service):
    quiz = data_service.get_quiz("quiz-1")
    quiz.title = "changed"
    assert data_service.get_quiz("quiz-1").title == "Fractions"


def test_unknown_quiz(data_service):
    with pytest.raises(QuizNotFoundError):
        data_service.get_quiz("nope")
    with pytest.raises(QuizNotFoundError):
        data_service.list_questions("nope")
    with pytest.raises(QuizNotFoundError):
        data_service.add_question(make_single_question(quiz_id="nope"))


def test_invalid_definitions_are_rejected(data_service):
    with pytest.raises(QuizValidationError) as excinfo:
        data_service.add_quiz(make_quiz(id="quiz-2", max_attempts=0))
    assert excinfo.value.errors == ["Max attempts must be between 1 and 10"]

    with pytest.raises(QuizValidationError):
        data_service.add_question(make_single_question(correct_answers=["Z"]))


def test_list_quizzes_by_class(data_service):
    data_service.add_quiz(make_quiz(id="quiz-2", class_id="class-2"))
    assert [q.id for q in data_service.list_quizzes("class-2")] == ["quiz-2"]
    assert len(data_service.list_quizzes()) == 2


def test_second_in_progress_attempt_conflicts(data_service):
    data_service.create_attempt(_in_progress())
    with pytest.raises(AttemptConflictError):
        data_service.create_attempt(_in_progress("attempt-2"))
    data_service.create_attempt(_in_progress("attempt-3", student_id="s2"))
    assert len(data_service.list_attempts("quiz-1")) == 2
    assert len(data_service.list_attempts(student_id="s1")) == 1


def test_save_response_overwrites_by_question(data_service):
    data_service.create_attempt(_in_progress())
    data_service.save_response(make_response("q1", ["A"]))
    data_service.save_response(make_response("q1", ["B"]))
    [response] = data_service.list_responses("attempt-1")
    assert response.selected_answers == ["B"]


def test_finalize_is_compare_and_swap(data_service):
    attempt = data_service.create_attempt(_in_progress())
    data_service.save_response(make_response("q1", ["A"]))
    done = replace(attempt, attempt_status=AttemptStatus.COMPLETED, score=4, submitted_at=NOW)
    graded = [make_response("q1", ["B"], is_correct=True)]

    stored = data_service.finalize_attempt("attempt-1", done, graded)
    assert stored.attempt_status == AttemptStatus.COMPLETED
    assert data_service.list_responses("attempt-1")[0].is_correct is True

    with pytest.raises(AttemptConflictError):
        data_service.finalize_attempt("attempt-1", done, graded)
    with pytest.raises(AttemptConflictError):
        data_service.save_response(make_response("q2", ["A"]))


def test_finalize_requires_terminal_status(data_service):
    attempt = data_service.create_attempt(_in_progress())
    with pytest.raises(AttemptConflictError):
        data_service.finalize_attempt("attempt-1", attempt, [])


def test_unknown_attempt(data_service):
    with pytest.raises(AttemptNotFoundError):
        data_service.get_attempt("missing")
    with pytest.raises(AttemptNotFoundError):
        data_service.save_response(make_response("q1", ["A"], attempt_id="missing"))


def test_questions_are_stored_encrypted(data_service):
    [record, _] = data_service.list_question_records("quiz-1")
    assert record.id == "q1"
    assert not hasattr(record, "correct_answers")
    assert "Common denominator" not in record.encrypted_explanation
    assert data_service.list_questions("quiz-1")[0] == make_single_question()


def test_store_with_shared_key_reads_its_own_records():
    cipher = QuestionCipher.generate()
    service = InMemoryQuizDataService(cipher)
    service.add_quiz(make_quiz())
    service.add_question(make_single_question())
    [record] = service.list_question_records("quiz-1")
    assert cipher.decrypt_question(record).correct_answers == ["B"]


def test_regrade_keeps_status_and_only_applies_to_scored_attempts(data_service):
    attempt = data_service.create_attempt(_in_progress())
    with pytest.raises(AttemptConflictError):
        data_service.regrade_attempt("attempt-1", attempt, [])

    done = replace(attempt, attempt_status=AttemptStatus.TIMEOUT, score=1, submitted_at=NOW)
    data_service.finalize_attempt("attempt-1", done, [])
    regraded = data_service.regrade_attempt("attempt-1", replace(done, score=4), [make_response("q1", ["B"], True)])
    assert regraded.score == 4
    assert data_service.get_attempt("attempt-1").attempt_status == AttemptStatus.TIMEOUT
    with pytest.raises(AttemptConflictError):
        data_service.regrade_attempt("attempt-1", replace(done, attempt_status=AttemptStatus.COMPLETED), [])
