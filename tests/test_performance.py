# tests/test_performance.py
import json

from conftest import make_pool
from neuroquiz.config import build_session_config
from neuroquiz.engine import AdaptiveSession
from neuroquiz.models import SessionConfig, SessionState
from neuroquiz.performance import (
    build_category_performance, build_performance_summary, calculate_best_streak,
)


def play(engine, clock, answers, step_ms=1500):
    for selected in answers:
        engine.get_current_question()
        clock.advance(step_ms)
        engine.submit_answer(selected)


def test_summary_counts_and_timing(rng, clock):
    config = build_session_config(literacy_level="Intermediate", user_name="Ada")
    engine = AdaptiveSession(make_pool(6), config, rng=rng, clock=clock)
    play(engine, clock, [0, 0, 1, 0])
    summary = engine.get_performance_summary()
    assert summary["user_name"] == "Ada"
    assert summary["total_questions"] == 4
    assert summary["correct_answers"] == 3
    assert summary["wrong_answers"] == 1
    assert summary["accuracy"] == 75
    assert summary["percentage"] == 75
    assert summary["total_time_ms"] == 6000
    assert summary["time_taken"] == 6
    assert summary["average_time_ms"] == 1500
    assert summary["questions_per_minute"] == 40.0
    assert summary["best_streak"] == 2
    assert summary["streak"] == 1
    assert summary["initial_difficulty"] == 2
    assert summary["net_difficulty_change"] == summary["final_difficulty"] - 2
    assert summary["total_score"] == engine.get_state()["score"]


def test_accuracy_rounds_half_up(rng, clock):
    engine = AdaptiveSession(make_pool(3), build_session_config(), rng=rng, clock=clock)
    play(engine, clock, [0, 0, 1])
    assert engine.get_performance_summary()["accuracy"] == 67


def test_category_performance(rng, clock):
    pool = make_pool(2, category="History") + make_pool(2, category="Science", start_id=10)
    engine = AdaptiveSession(pool, build_session_config(), rng=rng, clock=clock)
    while not engine.is_complete():
        view = engine.get_current_question()
        engine.submit_answer(0 if view["category"] == "History" else 1)
    perf = engine.get_performance_summary()["category_performance"]
    assert perf == {
        "History": {"correct": 2, "total": 2},
        "Science": {"correct": 0, "total": 2},
    }


def test_summary_is_json_serializable(rng, clock):
    engine = AdaptiveSession(make_pool(5), build_session_config(category="Science"), rng=rng, clock=clock)
    play(engine, clock, [0, 1, 0])
    summary = engine.get_performance_summary()
    assert json.loads(json.dumps(summary)) == summary
    assert summary["session_config"]["category"] == "Science"
    assert len(summary["answered_question_ids"]) == 3
    assert summary["performance_history"][0]["selected_index"] == 0


def test_best_streak_is_historical_maximum():
    history = [{"is_correct": c} for c in (True, True, True, False, True)]
    assert calculate_best_streak(history) == 3


def test_build_category_performance_preserves_order():
    history = [
        {"category": "Math", "is_correct": True},
        {"category": "Art", "is_correct": False},
        {"category": "Math", "is_correct": False},
    ]
    perf = build_category_performance(history)
    assert list(perf) == ["Math", "Art"]
    assert perf["Math"] == {"correct": 1, "total": 2}


# --- Edge case tests ---


def test_empty_session_summary():
    summary = build_performance_summary(SessionState(current_level=1, current_difficulty=1), SessionConfig())
    assert summary["total_questions"] == 0
    assert summary["accuracy"] == 0
    assert summary["average_time_ms"] == 0
    assert summary["questions_per_minute"] == 0
    assert summary["best_streak"] == 0
    assert summary["performance_history"] == []
    assert summary["category_performance"] == {}


def test_questions_per_minute_zero_under_half_a_second(rng, clock):
    engine = AdaptiveSession(make_pool(2), build_session_config(), rng=rng, clock=clock)
    play(engine, clock, [0], step_ms=200)
    assert engine.get_performance_summary()["questions_per_minute"] == 0
