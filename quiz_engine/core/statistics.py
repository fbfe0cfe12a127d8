"""Pure aggregations over scored attempts and responses.

None of these functions raise on empty input: counts fall back to zero,
averages to ``None`` and rates to ``0``.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from quiz_engine.core.models import AttemptStatus, Quiz, QuizAttempt, QuizQuestion, QuizResponse


@dataclass(slots=True)
class QuizStatistics:
    total_students: int
    attempted_count: int
    not_attempted_count: int
    completed_count: int
    in_progress_count: int
    passed_count: int
    failed_count: int
    average_score: float | None
    highest_score: float | None
    lowest_score: float | None
    average_time_seconds: int | None
    attempt_rate: float
    pass_rate: float


@dataclass(slots=True)
class QuestionStatistics:
    question_id: str
    question_text: str
    total_responses: int
    correct_count: int
    incorrect_count: int
    correct_rate: float
    average_time_seconds: int | None
    most_selected_option: str | None
    option_distribution: dict[str, int] = field(default_factory=dict)


@dataclass(slots=True)
class StudentQuizSummary:
    total_quizzes: int
    attempted_count: int
    pending_count: int
    passed_count: int
    failed_count: int
    average_score: float | None
    average_percentage: float | None
    total_time_spent_seconds: int
    best_performance_quiz_id: str | None


@dataclass(slots=True)
class StudentsSummary:
    total: int
    with_attempts: int
    with_all_passed: int


@dataclass(slots=True)
class ClassQuizReport:
    class_id: str
    class_name: str
    total_quizzes: int
    active_quizzes: int
    average_attempt_rate: float
    average_pass_rate: float
    average_score: float | None
    students_summary: StudentsSummary


def _rate(part: float, whole: float) -> float:
    if whole <= 0:
        return 0.0
    return round(part / whole * 100, 2)


def _mean(values: list[float]) -> float | None:
    if not values:
        return None
    return round(sum(values) / len(values), 2)


def _mean_seconds(values: list[int]) -> int | None:
    if not values:
        return None
    return round(sum(values) / len(values))


def _completed(attempts: list[QuizAttempt]) -> list[QuizAttempt]:
    return [a for a in attempts if a.attempt_status == AttemptStatus.COMPLETED]


def calculate_quiz_statistics(total_students: int, attempts: list[QuizAttempt]) -> QuizStatistics:
    """Summarise every attempt made on one quiz."""
    completed = _completed(attempts)
    in_progress = [a for a in attempts if a.attempt_status == AttemptStatus.IN_PROGRESS]
    attempted_count = len({a.student_id for a in attempts})

    scores = [a.score for a in completed if a.score is not None]
    times = [a.time_taken_seconds for a in completed if a.time_taken_seconds is not None]
    passed_count = sum(1 for a in completed if a.passed is True)
    failed_count = sum(1 for a in completed if a.passed is False)

    return QuizStatistics(
        total_students=total_students,
        attempted_count=attempted_count,
        not_attempted_count=max(0, total_students - attempted_count),
        completed_count=len(completed),
        in_progress_count=len(in_progress),
        passed_count=passed_count,
        failed_count=failed_count,
        average_score=_mean(scores),
        highest_score=max(scores) if scores else None,
        lowest_score=min(scores) if scores else None,
        average_time_seconds=_mean_seconds(times),
        attempt_rate=_rate(attempted_count, total_students),
        pass_rate=_rate(passed_count, len(completed)),
    )


def calculate_question_statistics(question: QuizQuestion, responses: list[QuizResponse]) -> QuestionStatistics:
    """Correctness, timing and option distribution for one question."""
    question_responses = [r for r in responses if r.question_id == question.id]
    total = len(question_responses)
    correct_count = sum(1 for r in question_responses if r.is_correct is True)
    times = [r.time_spent_seconds for r in question_responses if r.time_spent_seconds > 0]

    distribution = {key: 0 for key in question.options}
    for response in question_responses:
        for answer in response.selected_answers:
            if answer in distribution:
                distribution[answer] += 1

    most_selected: str | None = None
    highest = 0
    for key, count in distribution.items():
        if count > highest:
            highest = count
            most_selected = key

    return QuestionStatistics(
        question_id=question.id,
        question_text=question.question_text,
        total_responses=total,
        correct_count=correct_count,
        incorrect_count=total - correct_count,
        correct_rate=_rate(correct_count, total),
        average_time_seconds=_mean_seconds(times),
        most_selected_option=most_selected,
        option_distribution=distribution,
    )


def calculate_student_quiz_summary(quizzes: list[Quiz], attempts: list[QuizAttempt]) -> StudentQuizSummary:
    """Summarise one student's attempts across a set of quizzes."""
    quiz_ids = {quiz.id for quiz in quizzes}
    relevant = [a for a in attempts if a.quiz_id in quiz_ids]
    attempted_count = len({a.quiz_id for a in relevant})

    completed = _completed(relevant)
    scores = [a.score for a in completed if a.score is not None]
    percentages = [a.percentage for a in completed if a.percentage is not None]
    times = [a.time_taken_seconds for a in completed if a.time_taken_seconds is not None]

    best_quiz_id: str | None = None
    best_percentage = -1.0
    for attempt in completed:
        if attempt.percentage is not None and attempt.percentage > best_percentage:
            best_percentage = attempt.percentage
            best_quiz_id = attempt.quiz_id

    return StudentQuizSummary(
        total_quizzes=len(quizzes),
        attempted_count=attempted_count,
        pending_count=len(quizzes) - attempted_count,
        passed_count=sum(1 for a in completed if a.passed is True),
        failed_count=sum(1 for a in completed if a.passed is False),
        average_score=_mean(scores),
        average_percentage=_mean(percentages),
        total_time_spent_seconds=sum(times),
        best_performance_quiz_id=best_quiz_id,
    )


def calculate_class_quiz_report(
    class_id: str,
    class_name: str,
    quizzes: list[Quiz],
    attempts: list[QuizAttempt],
    total_students: int,
) -> ClassQuizReport:
    """Class-wide report.

    Rates are an average of per-quiz rates, so every quiz weighs the same
    regardless of how many students attempted it. Pass rates only include
    quizzes that have completed attempts.
    """
    attempt_rates: list[float] = []
    pass_rates: list[float] = []
    scores: list[float] = []
    students_with_attempts: set[str] = set()

    for quiz in quizzes:
        quiz_attempts = [a for a in attempts if a.quiz_id == quiz.id]
        quiz_students = {a.student_id for a in quiz_attempts}
        attempt_rates.append(len(quiz_students) / total_students * 100 if total_students > 0 else 0.0)

        completed = _completed(quiz_attempts)
        if completed:
            passed = sum(1 for a in completed if a.passed is True)
            pass_rates.append(passed / len(completed) * 100)

        students_with_attempts.update(quiz_students)
        scores.extend(a.score for a in quiz_attempts if a.score is not None)

    passed_pairs = {(a.student_id, a.quiz_id) for a in attempts if a.passed is True}
    with_all_passed = 0
    if quizzes:
        with_all_passed = sum(
            1
            for student_id in students_with_attempts
            if all((student_id, quiz.id) in passed_pairs for quiz in quizzes)
        )

    return ClassQuizReport(
        class_id=class_id,
        class_name=class_name,
        total_quizzes=len(quizzes),
        active_quizzes=sum(1 for quiz in quizzes if quiz.is_active),
        average_attempt_rate=_mean(attempt_rates) or 0.0,
        average_pass_rate=_mean(pass_rates) or 0.0,
        average_score=_mean(scores),
        students_summary=StudentsSummary(
            total=total_students,
            with_attempts=len(students_with_attempts),
            with_all_passed=with_all_passed,
        ),
    )
