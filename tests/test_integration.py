"""End-to-end: default bank -> adaptive session -> summary -> profile -> storage."""
import json
import random

from neuroquiz.cognitive import analyze_cognitive_profile
from neuroquiz.config import build_session_config
from neuroquiz.db import init_db
from neuroquiz.engine import AdaptiveSession
from neuroquiz.storage import get_stored_summary, record_quiz_result


def test_full_session_on_default_bank(tmp_db, clock):
    events = []
    engine = AdaptiveSession(
        config=build_session_config(user_name="Ada"),
        rng=random.Random(7),
        clock=clock,
        on_event=lambda name, data: events.append(name),
    )
    assert engine.get_question_count() == 15

    seen = set()
    while not engine.is_complete():
        view = engine.get_current_question()
        assert view["id"] not in seen
        seen.add(view["id"])
        clock.advance(2500)
        engine.submit_answer(engine.state.current_question.correct_index)

    summary = engine.get_performance_summary()
    assert summary["total_questions"] == 15
    assert summary["accuracy"] == 100
    assert summary["best_streak"] == 15
    # Difficulty rises at streaks 7 and 14
    assert summary["final_difficulty"] == 3
    assert summary["total_score"] == 7 * 10 + 7 * 20 + 30
    assert events.count("difficulty_increase_streak") == 2

    profile = analyze_cognitive_profile(summary)
    assert profile["professional_summary"].startswith("Based on your interaction pattern, ")
    assert set(profile["cda"]["knowledge_mastery"]) == set(summary["category_performance"])

    init_db(tmp_db)
    result_id = record_quiz_result(tmp_db, summary)
    restored = get_stored_summary(tmp_db, result_id)
    assert restored == json.loads(json.dumps(summary))
    assert analyze_cognitive_profile(restored) == profile


def test_struggling_session_walks_down_and_recovers(clock):
    pool = [
        {"id": i, "question": f"Q{i}", "options": ["a", "b"], "correctIndex": 0,
         "level": 1 + i % 3, "difficulty": 1 + i % 2, "category": "Math"}
        for i in range(30)
    ]
    config = build_session_config(level=2, literacy_level="Beginner")
    engine = AdaptiveSession(pool, config, rng=random.Random(3), clock=clock)
    # Wrong first answer at difficulty 1 drops a level
    engine.get_current_question()
    engine.submit_answer(1)
    assert engine.get_state()["current_level"] == 1
    assert engine.get_state()["has_dropped_level"] is True
    for _ in range(7):
        engine.get_current_question()
        engine.submit_answer(0)
    state = engine.get_state()
    assert state["current_level"] == 2
    assert state["promotion_count"] == 1
    assert state["has_dropped_level"] is False
