"""Availability windows, countdowns and duration formatting."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import math

from quiz_engine.constants.quiz_constants import (
    CRITICAL_THRESHOLD_MINUTES,
    SECONDS_PER_MINUTE,
    WARNING_THRESHOLD_MINUTES,
)


@dataclass(slots=True)
class RemainingTime:
    """Countdown snapshot for an attempt."""

    remaining_seconds: float
    is_expired: bool
    is_warning: bool
    is_critical: bool

    @property
    def is_unlimited(self) -> bool:
        return math.isinf(self.remaining_seconds)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def is_within_availability(now: datetime, available_from: datetime, available_to: datetime) -> bool:
    """Return True when ``now`` lies inside the inclusive availability window."""
    return available_from <= now <= available_to


def availability_status(now: datetime, available_from: datetime, available_to: datetime) -> str:
    """Classify ``now`` against the window as ``upcoming``, ``active`` or ``ended``."""
    if now < available_from:
        return "upcoming"
    if now > available_to:
        return "ended"
    return "active"


def elapsed_seconds(start: datetime, end: datetime) -> int:
    """Whole seconds between two timestamps, never negative."""
    return max(0, math.floor((end - start).total_seconds()))


def remaining_time(
    started_at: datetime,
    time_limit_minutes: int | None,
    submission_window_minutes: int,
    now: datetime,
) -> RemainingTime:
    """Compute the countdown for an attempt.

    The submission window is added on top of the nominal limit so a student
    who finished in time is not penalised for submit latency. Untimed quizzes
    never expire.
    """
    if time_limit_minutes is None:
        return RemainingTime(
            remaining_seconds=math.inf,
            is_expired=False,
            is_warning=False,
            is_critical=False,
        )

    total_allowed = (time_limit_minutes + submission_window_minutes) * SECONDS_PER_MINUTE
    elapsed = (now - started_at).total_seconds()
    remaining = max(0.0, total_allowed - elapsed)

    is_expired = remaining <= 0
    is_warning = not is_expired and remaining <= WARNING_THRESHOLD_MINUTES * SECONDS_PER_MINUTE
    is_critical = not is_expired and remaining <= CRITICAL_THRESHOLD_MINUTES * SECONDS_PER_MINUTE
    return RemainingTime(
        remaining_seconds=remaining,
        is_expired=is_expired,
        is_warning=is_warning,
        is_critical=is_critical,
    )


def format_remaining_time(remaining_seconds: float) -> str:
    """Render a countdown as ``m:ss`` or ``h:mm:ss``."""
    if math.isinf(remaining_seconds):
        return "No limit"
    if remaining_seconds <= 0:
        return "Time expired"

    minutes = int(remaining_seconds // 60)
    seconds = int(remaining_seconds % 60)
    if minutes >= 60:
        hours, minutes = divmod(minutes, 60)
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes}:{seconds:02d}"


def format_time_seconds(seconds: int) -> str:
    if seconds < 0:
        return "0s"
    hours, rest = divmod(int(seconds), 3600)
    minutes, secs = divmod(rest, 60)
    if hours > 0:
        return f"{hours}h {minutes}m {secs}s"
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


def format_time_minutes(minutes: int | None) -> str:
    if minutes is None:
        return "No limit"
    if minutes <= 0:
        return "0 min"
    hours, mins = divmod(minutes, 60)
    if hours > 0:
        return f"{hours}h {mins}m" if mins > 0 else f"{hours}h"
    return f"{mins} min"
