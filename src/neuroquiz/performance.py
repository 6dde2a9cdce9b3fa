"""Performance summary for a finished adaptive session."""
from neuroquiz.config import round_half_up
from neuroquiz.models import SessionConfig, SessionState


def calculate_best_streak(history: list) -> int:
    """Longest run of consecutive correct answers, in history order."""
    best = 0
    current = 0
    for entry in history:
        if entry["is_correct"]:
            current += 1
            best = max(best, current)
        else:
            current = 0
    return best


def build_category_performance(history: list) -> dict:
    summary = {}
    for entry in history:
        tally = summary.setdefault(entry["category"], {"correct": 0, "total": 0})
        tally["total"] += 1
        if entry["is_correct"]:
            tally["correct"] += 1
    return summary


def build_performance_summary(state: SessionState, config: SessionConfig) -> dict:
    """Derive the end-of-session summary from the session state.

    The result holds only dicts, lists, strings, numbers, booleans and None so
    it can be stored as JSON and fed back into the cognitive analyzer.
    """
    history = [entry.to_dict() for entry in state.performance_history]
    total = state.total_answered
    accuracy = int(round_half_up(state.correct_count / total * 100)) if total else 0
    total_time_seconds = int(round_half_up(state.total_time_ms / 1000))
    average_time_ms = int(round_half_up(state.total_time_ms / total)) if total else 0
    if total_time_seconds > 0:
        questions_per_minute = round_half_up(total / (total_time_seconds / 60), 1)
    else:
        questions_per_minute = 0

    answered_ids = []
    for entry in history:
        if entry["question_id"] not in answered_ids:
            answered_ids.append(entry["question_id"])

    return {
        "user_name": config.user_name,
        "total_questions": total,
        "correct_answers": state.correct_count,
        "wrong_answers": state.wrong_count,
        "percentage": accuracy,
        "accuracy": accuracy,
        "time_taken": total_time_seconds,
        "total_time_ms": state.total_time_ms,
        "average_time_ms": average_time_ms,
        "questions_per_minute": questions_per_minute,
        "best_streak": calculate_best_streak(history),
        "total_score": state.score,
        "current_level": state.current_level,
        "current_difficulty": state.current_difficulty,
        "initial_level": config.initial_level,
        "final_level": state.current_level,
        "initial_difficulty": config.initial_difficulty,
        "final_difficulty": state.current_difficulty,
        "net_level_change": state.current_level - config.initial_level,
        "net_difficulty_change": state.current_difficulty - config.initial_difficulty,
        "drop_count": state.drop_count,
        "promotion_count": state.promotion_count,
        "streak": state.streak,
        "has_dropped_level": state.has_dropped_level,
        "performance_history": history,
        "category_performance": build_category_performance(history),
        "session_config": config.to_dict(),
        "answered_question_ids": answered_ids,
    }
