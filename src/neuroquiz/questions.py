"""Question bank loading and normalization."""
import json
import logging
import math
from functools import cmp_to_key
from pathlib import Path

import yaml

from neuroquiz.config import (
    MAX_DIFFICULTY, MAX_LEVEL, MIN_DIFFICULTY, MIN_LEVEL, clamp, round_half_up,
)
from neuroquiz.models import Question

logger = logging.getLogger(__name__)

CONTENT_DIR = Path(__file__).parent / "content"

# Historical field names for the correct-answer index, highest precedence first.
CORRECT_INDEX_KEYS = ("correct_index", "correctIndex", "correctAnswer", "answerIndex", "answer")

DIFFICULTY_NAMES = {"easy": 1, "medium": 2, "hard": 3}


def _is_number(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not math.isnan(value)


def _to_ladder(value, low: int, high: int) -> int:
    """Round half up and clamp; infinities land on the nearest bound."""
    if math.isinf(value):
        return high if value > 0 else low
    return clamp(int(round_half_up(value)), low, high)


def _normalize_id(value):
    if value is None or isinstance(value, (int, float, str)):
        return value
    return str(value)


def map_difficulty(value, fallback_level=None) -> int:
    """Resolve a difficulty from a name, a number, or the question level."""
    if isinstance(value, str):
        named = DIFFICULTY_NAMES.get(value.strip().lower())
        if named is not None:
            return named
    if _is_number(value):
        return _to_ladder(value, MIN_DIFFICULTY, MAX_DIFFICULTY)
    if _is_number(fallback_level):
        return _to_ladder(fallback_level, MIN_DIFFICULTY, MAX_DIFFICULTY)
    return MIN_DIFFICULTY


def resolve_correct_index(raw: dict) -> int:
    """Return the correct-answer index using CORRECT_INDEX_KEYS precedence.

    The first key holding a non-None value wins. Values that cannot be read
    as a number fall back to 0.
    """
    for key in CORRECT_INDEX_KEYS:
        value = raw.get(key)
        if value is None:
            continue
        try:
            return int(float(value))
        except (TypeError, ValueError, OverflowError):
            return 0
    return 0


def normalize_question(raw) -> Question:
    if isinstance(raw, Question):
        return raw
    if not isinstance(raw, dict):
        raw = {}

    raw_level = raw.get("level")
    level = _to_ladder(raw_level, MIN_LEVEL, MAX_LEVEL) if _is_number(raw_level) else MIN_LEVEL
    difficulty = map_difficulty(raw.get("difficulty"), raw_level)
    options = raw.get("options")
    text = raw.get("question")
    if text is None:
        text = raw.get("text", "")

    # Categories become dict keys in summaries, which must survive JSON.
    return Question(
        id=_normalize_id(raw.get("id")),
        text=str(text),
        options=tuple(str(o) for o in options) if isinstance(options, (list, tuple)) else (),
        correct_index=resolve_correct_index(raw),
        category=str(raw.get("category") or "General"),
        level=level,
        difficulty=difficulty,
        explanation=str(raw.get("explanation") or ""),
    )


def _compare_ids(a: Question, b: Question) -> int:
    if _is_number(a.id) and _is_number(b.id):
        return (a.id > b.id) - (a.id < b.id)
    left, right = str(a.id), str(b.id)
    return (left > right) - (left < right)


def sort_questions(questions: list) -> list:
    """Sort by numeric id, falling back to string comparison for mixed ids."""
    return sorted(questions, key=cmp_to_key(_compare_ids))


def normalize_pool(records) -> list[Question]:
    return sort_questions([normalize_question(r) for r in records or []])


def load_question_file(file_path: str) -> list:
    """Read raw question records from a JSON or YAML file.

    The file may hold a list of records or a mapping with a "questions" list.
    """
    path = Path(file_path)
    suffix = path.suffix.lower()
    if suffix in (".yaml", ".yml"):
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    else:
        data = json.loads(path.read_text(encoding="utf-8"))

    if isinstance(data, dict):
        data = data.get("questions", [])
    if not isinstance(data, list):
        logger.warning("No question list found in %s", path.name)
        return []
    logger.info("Loaded %d questions from %s", len(data), path.name)
    return data


def load_default_pool() -> list[Question]:
    """The bundled general-knowledge bank used when no bank is supplied."""
    return normalize_pool(load_question_file(str(CONTENT_DIR / "questions.json")))


def get_categories(questions: list[Question]) -> list[str]:
    """Distinct categories in first-seen order."""
    seen = []
    for q in questions:
        if q.category and q.category not in seen:
            seen.append(q.category)
    return seen
