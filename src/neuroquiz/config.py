"""Constants and setup normalization for the adaptive quiz."""
import math
import os
from pathlib import Path

from neuroquiz.models import SessionConfig

MIN_LEVEL = 1
MAX_LEVEL = 3
MIN_DIFFICULTY = 1
MAX_DIFFICULTY = 3
POINTS_PER_DIFFICULTY = 10

# Correct answers per streak band; each new band may raise difficulty once.
STREAK_THRESHOLD = 7
# Correct:wrong ratio at or below which difficulty is forced down.
LOW_RATIO_THRESHOLD = 1 / 9

LITERACY_TO_DIFFICULTY = {
    "Beginner": 1,
    "Intermediate": 2,
    "Expert": 3,
}

LEVEL_NAMES = {
    1: "Elementary",
    2: "Secondary",
    3: "University",
}

DIFFICULTY_NAMES = {
    1: "Easy",
    2: "Medium",
    3: "Hard",
}

# The CLI offers a manual level upgrade every N consecutive correct answers.
STREAK_REWARD_INTERVAL = 5

DEFAULT_DB_PATH = os.getenv(
    "NEUROQUIZ_DB", str(Path.home() / ".neuroquiz" / "neuroquiz.db")
)


def clamp(value, low, high):
    return min(high, max(low, value))


def round_half_up(value: float, digits: int = 0) -> float:
    """Round halves upward, so 2.5 -> 3 and -2.5 -> -2."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def get_level_label(level: int) -> str:
    return LEVEL_NAMES.get(level, LEVEL_NAMES[MIN_LEVEL])


def get_difficulty_label(difficulty: int) -> str:
    return DIFFICULTY_NAMES.get(difficulty, DIFFICULTY_NAMES[MIN_DIFFICULTY])


def normalize_level(value) -> int:
    """Parse a stored level, falling back to the lowest level."""
    try:
        level = int(value)
    except (TypeError, ValueError):
        return MIN_LEVEL
    if MIN_LEVEL <= level <= MAX_LEVEL:
        return level
    return MIN_LEVEL


def normalize_literacy(value) -> str:
    if value in LITERACY_TO_DIFFICULTY:
        return value
    lowered = str(value or "").strip().lower()
    for name in LITERACY_TO_DIFFICULTY:
        if name.lower() == lowered:
            return name
    return "Beginner"


def difficulty_for_literacy(literacy_level) -> int:
    return LITERACY_TO_DIFFICULTY.get(normalize_literacy(literacy_level), MIN_DIFFICULTY)


def build_session_config(
    level=MIN_LEVEL,
    literacy_level: str = "Beginner",
    category: str | None = None,
    question_limit: int | None = None,
    user_name: str = "User",
) -> SessionConfig:
    """Create a SessionConfig from loosely-typed setup values.

    Args:
        level: Starting curriculum tier (1-3); anything else becomes 1.
        literacy_level: Beginner / Intermediate / Expert, mapped to the
            starting difficulty.
        category: Category filter, or None/empty for the whole pool.
        question_limit: Maximum questions; None or non-positive means no limit.
        user_name: Display name carried into the performance summary.

    Returns:
        An immutable SessionConfig.
    """
    literacy = normalize_literacy(literacy_level)
    limit = None
    if question_limit is not None:
        try:
            limit = int(question_limit)
        except (TypeError, ValueError):
            limit = None
        if limit is not None and limit <= 0:
            limit = None
    return SessionConfig(
        initial_level=normalize_level(level),
        initial_difficulty=difficulty_for_literacy(literacy),
        literacy_level=literacy,
        category=category or None,
        question_limit=limit,
        user_name=user_name or "User",
    )
