import random

import pytest


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_neuroquiz.db")
    return db_path


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: int = 1_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def rng():
    return random.Random(1234)


def make_pool(count, level=1, difficulty=1, category="Science", start_id=1):
    """Raw question records whose correct answer is always option 0."""
    return [
        {
            "id": start_id + i,
            "question": f"Question {start_id + i}?",
            "options": ["right", "wrong", "also wrong", "nope"],
            "correctIndex": 0,
            "category": category,
            "level": level,
            "difficulty": difficulty,
            "explanation": f"Because {start_id + i}.",
        }
        for i in range(count)
    ]
