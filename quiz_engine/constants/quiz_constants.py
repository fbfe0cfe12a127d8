"""Quiz-related constants shared across the engine, facade and API layers."""

SECONDS_PER_MINUTE: int = 60
WARNING_THRESHOLD_MINUTES: int = 5
CRITICAL_THRESHOLD_MINUTES: int = 1

DEFAULT_SUBMISSION_WINDOW_MINUTES: int = 5
DEFAULT_MAX_ATTEMPTS: int = 1
DEFAULT_LEADERBOARD_SIZE: int = 10

# Percentage thresholds for performance levels; the single source for
# labels, colours and any other derived presentation.
SCORE_THRESHOLDS: dict[str, int] = {
    "EXCELLENT": 90,
    "GOOD": 80,
    "SATISFACTORY": 70,
    "PASSING": 60,
}

# Authoring limits.
MIN_OPTIONS_PER_QUESTION: int = 2
MAX_TIME_LIMIT_MINUTES: int = 480
MAX_SUBMISSION_WINDOW_MINUTES: int = 60
MAX_ATTEMPTS_LIMIT: int = 10
MAX_QUIZ_SCORE: float = 10000
MAX_QUESTION_POINTS: float = 1000

# Environment variable holding the base64 question encryption key.
QUIZ_ENCRYPTION_KEY_ENV: str = "QUIZ_ENCRYPTION_KEY"

# Seconds between sweeps that finalize expired in-progress attempts.
EXPIRY_SWEEP_INTERVAL_SECONDS: int = 30
