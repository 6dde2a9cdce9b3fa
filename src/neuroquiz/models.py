"""Data classes for questions, session configuration and session state."""
from dataclasses import asdict, dataclass, field
from typing import Optional, Union

QuestionId = Union[int, str]


@dataclass(frozen=True)
class Question:
    id: QuestionId
    text: str
    options: tuple
    correct_index: int
    category: str = "General"
    level: int = 1
    difficulty: int = 1
    explanation: str = ""

    def to_view(self) -> dict:
        """Public view of the question with the answer stripped."""
        return {
            "id": self.id,
            "question": self.text,
            "options": list(self.options),
            "category": self.category,
            "level": self.level,
            "difficulty": self.difficulty,
            "explanation": self.explanation,
        }


@dataclass(frozen=True)
class SessionConfig:
    initial_level: int = 1
    initial_difficulty: int = 1
    literacy_level: str = "Beginner"
    category: Optional[str] = None
    question_limit: Optional[int] = None
    user_name: str = "User"

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class HistoryEntry:
    question_id: QuestionId
    question: str
    category: str
    level: int
    difficulty: int
    selected_index: Optional[Union[int, float, str]]
    correct_index: int
    is_correct: bool
    time_taken_ms: int
    has_dropped_level: bool

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class SessionState:
    current_level: int
    current_difficulty: int
    correct_count: int = 0
    wrong_count: int = 0
    total_answered: int = 0
    streak: int = 0
    score: int = 0
    has_dropped_level: bool = False
    drop_count: int = 0
    promotion_count: int = 0
    total_time_ms: int = 0
    last_difficulty_increase_at_streak: int = 0
    answered_question_ids: set = field(default_factory=set)
    performance_history: list = field(default_factory=list)
    current_question: Optional[Question] = None
