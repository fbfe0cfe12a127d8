"""FastAPI server exposing quiz attempts, results and reports."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import asdict
from threading import Thread

from fastapi import Depends, FastAPI, HTTPException, Query
from pydantic import BaseModel, Field
import uvicorn

from quiz_engine import __version__
from quiz_engine.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from quiz_engine.core.errors import (
    AttemptConflictError,
    AttemptNotAllowedError,
    AttemptNotFoundError,
    QuizNotFoundError,
    QuizValidationError,
)
from quiz_engine.core.markdown_renderer import renderer
from quiz_engine.core.models import QuizQuestion
from quiz_engine.core.quiz_manager import QuizManager, ResponseSubmission
from quiz_engine.core.time_model import RemainingTime, format_remaining_time


class StartAttemptPayload(BaseModel):
    """Payload schema for starting or resuming an attempt."""

    student_id: str = Field(min_length=1)
    student_name: str | None = None


class ResponsePayload(BaseModel):
    """Payload schema for a single answer."""

    question_id: str = Field(min_length=1)
    selected_answers: list[str] = Field(default_factory=list)
    time_spent_seconds: int = Field(default=0, ge=0)


class SubmitPayload(BaseModel):
    """Payload schema for submitting an attempt."""

    responses: list[ResponsePayload] = Field(default_factory=list)


@contextmanager
def _translate_errors() -> Iterator[None]:
    try:
        yield
    except (QuizNotFoundError, AttemptNotFoundError) as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except AttemptNotAllowedError as exc:
        raise HTTPException(status_code=403, detail=exc.reason) from exc
    except AttemptConflictError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except QuizValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.errors) from exc


def _remaining_payload(remaining: RemainingTime) -> dict[str, object]:
    return {
        "remaining_seconds": None if remaining.is_unlimited else round(remaining.remaining_seconds),
        "display": format_remaining_time(remaining.remaining_seconds),
        "is_unlimited": remaining.is_unlimited,
        "is_expired": remaining.is_expired,
        "is_warning": remaining.is_warning,
        "is_critical": remaining.is_critical,
    }


def _question_payload(question: QuizQuestion) -> dict[str, object]:
    payload = asdict(question)
    payload.update(renderer.render_question(question))
    return payload


def _get_quiz_manager_dependency(quiz_manager: QuizManager):
    def dependency() -> QuizManager:
        return quiz_manager

    return dependency


def create_api_app(quiz_manager: QuizManager) -> FastAPI:
    """Create a FastAPI application wired to the provided quiz manager."""
    app = FastAPI(title="Quiz Engine API", version=__version__)
    quiz_manager_dep = _get_quiz_manager_dependency(quiz_manager)

    @app.get("/quizzes/{quiz_id}/eligibility")
    def get_eligibility(
        quiz_id: str,
        student_id: str = Query(min_length=1),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        with _translate_errors():
            result = manager.check_eligibility(quiz_id, student_id)
            return {
                "can_attempt": result.can_attempt,
                "reason": result.reason,
                "remaining_attempts": manager.get_remaining_attempts(quiz_id, student_id),
            }

    @app.post("/quizzes/{quiz_id}/attempts", status_code=201)
    def start_attempt(
        quiz_id: str,
        payload: StartAttemptPayload,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        with _translate_errors():
            started = manager.start_attempt(quiz_id, payload.student_id, student_name=payload.student_name)
        return {
            "attempt": asdict(started.attempt),
            "questions": [_question_payload(q) for q in started.questions],
            "remaining_time": _remaining_payload(started.remaining_time),
            "resumed": started.resumed,
        }

    @app.put("/attempts/{attempt_id}/responses")
    def save_response(
        attempt_id: str,
        payload: ResponsePayload,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        with _translate_errors():
            response = manager.save_response(
                attempt_id,
                payload.question_id,
                payload.selected_answers,
                payload.time_spent_seconds,
            )
        return asdict(response)

    @app.post("/attempts/{attempt_id}/submit")
    def submit_attempt(
        attempt_id: str,
        payload: SubmitPayload,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        submissions = [
            ResponseSubmission(
                question_id=r.question_id,
                selected_answers=r.selected_answers,
                time_spent_seconds=r.time_spent_seconds,
            )
            for r in payload.responses
        ]
        with _translate_errors():
            result = manager.submit_attempt(attempt_id, submissions)
        return asdict(result)

    @app.post("/attempts/{attempt_id}/abandon")
    def abandon_attempt(
        attempt_id: str,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        with _translate_errors():
            return asdict(manager.abandon_attempt(attempt_id))

    @app.post("/attempts/{attempt_id}/recalculate")
    def recalculate_attempt_score(
        attempt_id: str,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        with _translate_errors():
            return asdict(manager.recalculate_attempt_score(attempt_id))

    @app.get("/attempts/{attempt_id}/remaining-time")
    def get_remaining_time(
        attempt_id: str,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        with _translate_errors():
            return _remaining_payload(manager.get_remaining_time(attempt_id))

    @app.get("/attempts/{attempt_id}/result")
    def get_attempt_result(
        attempt_id: str,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        with _translate_errors():
            return asdict(manager.get_attempt_result(attempt_id))

    @app.get("/quizzes/{quiz_id}/statistics")
    def get_quiz_statistics(
        quiz_id: str,
        total_students: int = Query(ge=0),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        with _translate_errors():
            return asdict(manager.get_quiz_statistics(quiz_id, total_students))

    @app.get("/quizzes/{quiz_id}/question-statistics")
    def get_question_statistics(
        quiz_id: str,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> list[dict[str, object]]:
        with _translate_errors():
            return [asdict(stats) for stats in manager.get_question_statistics(quiz_id)]

    @app.get("/quizzes/{quiz_id}/leaderboard")
    def get_leaderboard(
        quiz_id: str,
        limit: int | None = Query(default=None, ge=1),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> list[dict[str, object]]:
        with _translate_errors():
            return [asdict(entry) for entry in manager.get_leaderboard(quiz_id, limit)]

    @app.get("/quizzes/{quiz_id}/students")
    def get_student_attempt_statuses(
        quiz_id: str,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> list[dict[str, object]]:
        with _translate_errors():
            return [asdict(status) for status in manager.get_student_attempt_statuses(quiz_id)]

    @app.get("/students/{student_id}/summary")
    def get_student_summary(
        student_id: str,
        class_id: str | None = None,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        return asdict(manager.get_student_summary(student_id, class_id))

    @app.get("/classes/{class_id}/report")
    def get_class_report(
        class_id: str,
        total_students: int = Query(ge=0),
        class_name: str = "",
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        return asdict(manager.get_class_report(class_id, class_name or class_id, total_students))

    return app


def start_api_server(
    quiz_manager: QuizManager,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> Thread:
    """Start the FastAPI server in a background daemon thread."""
    app = create_api_app(quiz_manager)
    config = uvicorn.Config(app=app, host=host, port=port, log_level="info")
    server = uvicorn.Server(config)

    def run_server() -> None:
        server.run()

    thread = Thread(target=run_server, name="QuizApiServer", daemon=True)
    thread.start()
    return thread
