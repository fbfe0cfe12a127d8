"""Convert submitted answers into points, percentages and pass/fail outcomes."""

from __future__ import annotations

from dataclasses import dataclass, replace

from quiz_engine.constants.quiz_constants import SCORE_THRESHOLDS
from quiz_engine.core.models import QuestionType, QuizQuestion, QuizResponse


@dataclass(slots=True)
class ScoringPolicy:
    """Attempt-level scoring rules.

    ``clamp_negative_scores`` floors the attempt total at zero when negative
    marking drives it below; by default negative totals are reported as is.
    """

    clamp_negative_scores: bool = False


@dataclass(slots=True)
class ResponseScore:
    earned: float
    deducted: float
    is_correct: bool


@dataclass(slots=True)
class AttemptScore:
    """Result of scoring every response of an attempt."""

    score: float
    max_score: float
    percentage: float
    passed: bool | None
    total_earned: float
    total_deducted: float
    responses: list[QuizResponse]


def score_response(
    selected_answers: list[str],
    correct_answers: list[str],
    question_type: QuestionType,
    points: float,
    negative_points: float,
) -> ResponseScore:
    """Score one response with the all-or-nothing rule.

    An empty selection is treated as unattempted and is never penalised.
    """
    if not selected_answers:
        return ResponseScore(earned=0, deducted=0, is_correct=False)

    if question_type == QuestionType.SINGLE_CHOICE:
        is_correct = len(selected_answers) == 1 and selected_answers[0] in correct_answers
    else:
        is_correct = set(selected_answers) == set(correct_answers)

    if is_correct:
        return ResponseScore(earned=points, deducted=0, is_correct=True)
    return ResponseScore(earned=0, deducted=negative_points, is_correct=False)


def score_attempt(
    responses: list[QuizResponse],
    questions: list[QuizQuestion],
    max_score: float,
    passing_score: float | None,
    policy: ScoringPolicy | None = None,
) -> AttemptScore:
    """Grade all responses and aggregate them into an attempt score.

    Responses to questions that are not part of ``questions`` are dropped.
    There is one response per question: when several rows share a question
    id the last one wins.
    """
    policy = policy or ScoringPolicy()
    question_map = {question.id: question for question in questions}
    latest = {response.question_id: response for response in responses}

    graded: list[QuizResponse] = []
    total_earned = 0.0
    total_deducted = 0.0
    for response in latest.values():
        question = question_map.get(response.question_id)
        if question is None:
            continue
        result = score_response(
            response.selected_answers,
            question.correct_answers,
            question.question_type,
            question.points,
            question.negative_points,
        )
        total_earned += result.earned
        total_deducted += result.deducted
        graded.append(
            replace(
                response,
                selected_answers=list(response.selected_answers),
                is_correct=result.is_correct,
                points_earned=result.earned,
                points_deducted=result.deducted,
            )
        )

    score = total_earned - total_deducted
    if policy.clamp_negative_scores:
        score = max(0.0, score)

    return AttemptScore(
        score=score,
        max_score=max_score,
        percentage=calculate_percentage(score, max_score),
        passed=is_passing(score, passing_score),
        total_earned=total_earned,
        total_deducted=total_deducted,
        responses=graded,
    )


def calculate_percentage(score: float, max_score: float) -> float:
    if max_score <= 0:
        return 0.0
    return round(score / max_score * 100, 2)


def is_passing(score: float, passing_score: float | None) -> bool | None:
    if passing_score is None:
        return None
    return score >= passing_score


def format_score(score: float | None, max_score: float, show_percentage: bool = True) -> str:
    if score is None:
        return "Not graded"
    formatted = f"{score:g}/{max_score:g}"
    if show_percentage:
        return f"{formatted} ({calculate_percentage(score, max_score):g}%)"
    return formatted


def get_score_performance_level(percentage: float) -> str:
    if percentage >= SCORE_THRESHOLDS["EXCELLENT"]:
        return "Excellent"
    if percentage >= SCORE_THRESHOLDS["GOOD"]:
        return "Good"
    if percentage >= SCORE_THRESHOLDS["SATISFACTORY"]:
        return "Satisfactory"
    if percentage >= SCORE_THRESHOLDS["PASSING"]:
        return "Passing"
    return "Needs Improvement"


def get_score_color(percentage: float) -> str:
    if percentage >= SCORE_THRESHOLDS["GOOD"]:
        return "success"
    if percentage >= SCORE_THRESHOLDS["PASSING"]:
        return "warning"
    return "destructive"
