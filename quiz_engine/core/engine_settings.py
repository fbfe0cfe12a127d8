"""Runtime policy settings for the quiz manager."""

from __future__ import annotations

from dataclasses import dataclass

from quiz_engine.constants.quiz_constants import DEFAULT_LEADERBOARD_SIZE
from quiz_engine.core.scoring import ScoringPolicy


@dataclass(slots=True)
class EngineSettings:
    """Policy knobs shared by the orchestration layer.

    clamp_negative_scores: floor attempt totals at zero.
    abandon_unanswered_on_expiry: finalize an expired attempt without any
        answered response as ABANDONED instead of TIMEOUT.
    leaderboard_size: default number of leaderboard entries.
    shuffle_seed: combined with the attempt id to seed question/option
        shuffling, so each attempt keeps one order; with None the order
        depends on the attempt id alone.
    """

    clamp_negative_scores: bool = False
    abandon_unanswered_on_expiry: bool = False
    leaderboard_size: int = DEFAULT_LEADERBOARD_SIZE
    shuffle_seed: int | None = None

    def scoring_policy(self) -> ScoringPolicy:
        return ScoringPolicy(clamp_negative_scores=self.clamp_negative_scores)
