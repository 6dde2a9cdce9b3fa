"""Rule-based adaptive session engine.

One AdaptiveSession drives one quiz attempt. It walks a two-axis ladder
(curriculum level x difficulty), picks the next question closest to the
learner's current position, and adjusts the position after every answer.
"""
import logging
import random
import time
from typing import Callable, Optional

from neuroquiz.config import (
    LOW_RATIO_THRESHOLD, MAX_DIFFICULTY, MAX_LEVEL, MIN_DIFFICULTY, MIN_LEVEL,
    POINTS_PER_DIFFICULTY, STREAK_THRESHOLD, clamp,
)
from neuroquiz.models import HistoryEntry, Question, SessionConfig, SessionState
from neuroquiz.performance import build_performance_summary
from neuroquiz.questions import load_default_pool, normalize_pool

logger = logging.getLogger(__name__)

EventHook = Callable[[str, dict], None]


def _wall_clock_ms() -> int:
    return int(time.time() * 1000)


def _as_number(value) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class AdaptiveSession:
    """State machine for a single adaptive quiz attempt.

    Args:
        questions: Raw question records or Question objects. An empty or
            missing collection falls back to the bundled default bank.
        config: Session settings; defaults to level 1, difficulty 1, no filter.
        rng: Random source for candidate selection. Pass a seeded
            random.Random for reproducible sessions.
        clock: Zero-argument callable returning the current time in ms.
        on_event: Optional hook called as on_event(name, data) for every
            adaptive event. Events are logged either way.
    """

    def __init__(
        self,
        questions=None,
        config: Optional[SessionConfig] = None,
        rng: Optional[random.Random] = None,
        clock: Optional[Callable[[], int]] = None,
        on_event: Optional[EventHook] = None,
    ):
        self.config = config or SessionConfig()
        self.rng = rng or random.Random()
        self.clock = clock or _wall_clock_ms
        self.on_event = on_event

        self.question_pool: list[Question] = normalize_pool(questions) or load_default_pool()

        category = self.config.category
        if category:
            filtered = [q for q in self.question_pool if q.category == category]
        else:
            filtered = list(self.question_pool)
        if not filtered:
            self._emit("category_fallback", requested=category, reason="no_questions_found")
            filtered = list(self.question_pool)
        self.filtered_questions = filtered

        self.reset_state()
        self._emit(
            "session_init",
            total_questions=len(self.filtered_questions),
            initial_level=self.state.current_level,
            initial_difficulty=self.state.current_difficulty,
            category=category,
            literacy_level=self.config.literacy_level,
        )

    def reset_state(self) -> None:
        self.state = SessionState(
            current_level=clamp(self.config.initial_level, MIN_LEVEL, MAX_LEVEL),
            current_difficulty=clamp(self.config.initial_difficulty, MIN_DIFFICULTY, MAX_DIFFICULTY),
        )
        self._question_started_ms = None

    def _emit(self, event: str, **data) -> None:
        level = logging.WARNING if event == "category_fallback" else logging.DEBUG
        logger.log(level, "[RB-ADA] %s %s", event, data)
        if self.on_event is not None:
            self.on_event(event, data)

    # --- Selection ---

    def _question_limit(self) -> Optional[int]:
        """Configured limit, or None when unset or non-positive."""
        limit = self.config.question_limit
        if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
            return None
        return limit

    def get_question_count(self) -> int:
        limit = self._question_limit()
        if limit:
            return min(limit, len(self.filtered_questions))
        return len(self.filtered_questions)

    def _remaining(self) -> list[Question]:
        answered = self.state.answered_question_ids
        return [q for q in self.filtered_questions if q.id not in answered]

    def _pick(self, candidates: list[Question]) -> Question:
        shuffled = list(candidates)
        self.rng.shuffle(shuffled)
        return shuffled[0]

    def get_next_candidate(self) -> Optional[Question]:
        """Choose an unanswered question nearest the current ladder position.

        Preference order: same level and difficulty, same level, same
        difficulty, then anything left. Ties are broken uniformly at random.
        """
        remaining = self._remaining()
        if not remaining:
            return None
        level = self.state.current_level
        difficulty = self.state.current_difficulty

        tiers = (
            [q for q in remaining if q.level == level and q.difficulty == difficulty],
            [q for q in remaining if q.level == level],
            [q for q in remaining if q.difficulty == difficulty],
            remaining,
        )
        for tier in tiers:
            if tier:
                return self._pick(tier)
        return None

    def is_complete(self) -> bool:
        limit = self._question_limit()
        limit_reached = limit is not None and self.state.total_answered >= limit
        no_questions_left = not self._remaining()
        return limit_reached or (no_questions_left and self.state.current_question is None)

    def get_current_question(self) -> Optional[dict]:
        """Return the in-flight question view, selecting one if needed."""
        if self.is_complete():
            return None
        if self.state.current_question is None:
            self.state.current_question = self.get_next_candidate()
            if self.state.current_question is not None:
                self._question_started_ms = self.clock()
        if self.state.current_question is None:
            return None
        return self.state.current_question.to_view()

    # --- Answering ---

    def submit_answer(self, selected_index) -> Optional[dict]:
        """Score the in-flight question and adapt the ladder position.

        Returns None when no question is in flight.
        """
        state = self.state
        question = state.current_question
        if question is None:
            return None

        selected = _as_number(selected_index)
        is_correct = selected is not None and selected == float(question.correct_index)
        if self._question_started_ms is not None:
            time_taken_ms = int(self.clock() - self._question_started_ms)
        else:
            time_taken_ms = 0
        previous = {
            "level": state.current_level,
            "difficulty": state.current_difficulty,
            "correct_count": state.correct_count,
            "wrong_count": state.wrong_count,
            "streak": state.streak,
        }

        state.total_answered += 1
        points_earned = 0
        if is_correct:
            state.correct_count += 1
            state.streak += 1
            points_earned = state.current_difficulty * POINTS_PER_DIFFICULTY
            state.score += points_earned
        else:
            state.wrong_count += 1
            state.streak = 0
        state.total_time_ms += time_taken_ms

        if selected is not None and selected.is_integer():
            recorded_index = int(selected)
        else:
            recorded_index = selected_index if isinstance(selected_index, str) else None
        state.performance_history.append(HistoryEntry(
            question_id=question.id,
            question=question.text,
            category=question.category,
            level=state.current_level,
            difficulty=state.current_difficulty,
            selected_index=recorded_index,
            correct_index=question.correct_index,
            is_correct=is_correct,
            time_taken_ms=time_taken_ms,
            has_dropped_level=state.has_dropped_level,
        ))
        state.answered_question_ids.add(question.id)

        self.apply_adaptive_rules(is_correct)
        self._emit(
            "answer_processed",
            question_id=question.id,
            is_correct=is_correct,
            time_taken_ms=time_taken_ms,
            previous=previous,
            current={
                "level": state.current_level,
                "difficulty": state.current_difficulty,
                "correct_count": state.correct_count,
                "wrong_count": state.wrong_count,
                "streak": state.streak,
                "drop_count": state.drop_count,
                "promotion_count": state.promotion_count,
            },
            ratio=self._correct_wrong_ratio(),
        )

        state.current_question = None
        self._question_started_ms = None
        return {
            "is_correct": is_correct,
            "correct_answer": question.correct_index,
            "feedback": question.explanation,
            "points_earned": points_earned,
            "streak": state.streak,
            "level": state.current_level,
            "difficulty": state.current_difficulty,
            "time_taken_ms": time_taken_ms,
            "score": state.score,
        }

    def _correct_wrong_ratio(self) -> float:
        if self.state.wrong_count == 0:
            return float("inf")
        return self.state.correct_count / self.state.wrong_count

    def apply_adaptive_rules(self, is_correct: bool) -> None:
        """Move the learner on the level/difficulty ladder after one answer.

        Rules, in order:
          1. A wrong first answer lowers difficulty by one.
          2. A correct:wrong ratio at or below 1:9 lowers difficulty by one.
          3. Each new band of STREAK_THRESHOLD consecutive correct answers
             raises difficulty by one (below max difficulty only).
          4. Difficulty falling below the minimum drops the level instead
             and arms the recovery flag.
          5. With the recovery flag armed, a full streak band promotes the
             level back up and clears the flag.
        """
        state = self.state
        before_difficulty = state.current_difficulty
        delta = 0

        first_question_penalty = not is_correct and state.total_answered == 1
        if first_question_penalty:
            delta = -1

        ratio = self._correct_wrong_ratio()
        if ratio <= LOW_RATIO_THRESHOLD:
            delta = min(delta, -1)

        if is_correct and state.streak >= STREAK_THRESHOLD and state.current_difficulty < MAX_DIFFICULTY:
            streak_cycle = state.streak // STREAK_THRESHOLD
            last_increase_cycle = state.last_difficulty_increase_at_streak // STREAK_THRESHOLD
            if streak_cycle > last_increase_cycle:
                delta = max(delta, 1)
                state.last_difficulty_increase_at_streak = state.streak
                self._emit(
                    "difficulty_increase_streak",
                    streak=state.streak,
                    from_difficulty=state.current_difficulty,
                    to_difficulty=state.current_difficulty + 1,
                    reason="high_streak_performance",
                    streak_cycle=streak_cycle,
                )

        delta = clamp(delta, -1, 1)
        next_difficulty = state.current_difficulty + delta

        if next_difficulty < MIN_DIFFICULTY:
            previous_level = state.current_level
            state.current_level = clamp(state.current_level - 1, MIN_LEVEL, MAX_LEVEL)
            state.drop_count += 1
            state.has_dropped_level = True
            next_difficulty = MIN_DIFFICULTY
            self._emit(
                "level_drop",
                from_level=previous_level,
                to_level=state.current_level,
                reason="difficulty_below_min",
                streak=state.streak,
                drop_count=state.drop_count,
            )

        state.current_difficulty = clamp(next_difficulty, MIN_DIFFICULTY, MAX_DIFFICULTY)
        streak_bump = is_correct and state.streak >= STREAK_THRESHOLD and delta == 1
        if state.current_difficulty != before_difficulty and not streak_bump:
            if first_question_penalty:
                reason = "first_question_incorrect"
            elif ratio <= LOW_RATIO_THRESHOLD:
                reason = "low_correct_wrong_ratio"
            else:
                reason = "manual_delta"
            self._emit(
                "difficulty_change",
                from_difficulty=before_difficulty,
                to_difficulty=state.current_difficulty,
                reason=reason,
                ratio=ratio,
            )

        if state.has_dropped_level and state.streak >= STREAK_THRESHOLD:
            previous_level = state.current_level
            state.current_level = clamp(state.current_level + 1, MIN_LEVEL, MAX_LEVEL)
            if state.current_level > previous_level:
                state.has_dropped_level = False
                state.promotion_count += 1
                self._emit(
                    "level_promotion",
                    from_level=previous_level,
                    to_level=state.current_level,
                    reason="recovery_streak",
                    promotion_count=state.promotion_count,
                    streak=state.streak,
                )

    def upgrade_level(self) -> bool:
        """Manually raise the level by one and restart at the lowest difficulty.

        Used by the streak-reward prompt. Independent of the automatic rules:
        drop/promotion counters and the recovery flag are left untouched.
        Returns False when already at the top level.
        """
        state = self.state
        if state.current_level >= MAX_LEVEL:
            return False
        previous_level = state.current_level
        state.current_level = clamp(state.current_level + 1, MIN_LEVEL, MAX_LEVEL)
        state.current_difficulty = MIN_DIFFICULTY
        self._emit(
            "level_upgrade",
            from_level=previous_level,
            to_level=state.current_level,
            reason="streak_reward",
            streak=state.streak,
        )
        return True

    # --- Read-only projections ---

    def get_progress(self) -> dict:
        total = self.get_question_count()
        in_flight = 1 if self.state.current_question is not None else 0
        return {"current": min(self.state.total_answered + in_flight, total), "total": total}

    def get_state(self) -> dict:
        state = self.state
        return {
            "current_level": state.current_level,
            "current_difficulty": state.current_difficulty,
            "correct_count": state.correct_count,
            "wrong_count": state.wrong_count,
            "total_answered": state.total_answered,
            "streak": state.streak,
            "has_dropped_level": state.has_dropped_level,
            "drop_count": state.drop_count,
            "promotion_count": state.promotion_count,
            "score": state.score,
            "total_time_ms": state.total_time_ms,
        }

    def get_performance_summary(self) -> dict:
        return build_performance_summary(self.state, self.config)
