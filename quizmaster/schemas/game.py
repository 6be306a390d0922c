from enum import Enum

from pydantic import BaseModel


class AnswerResult(BaseModel):
    question_index: int
    selected_index: int
    is_correct: bool
    correct_index: int
    correct_option: str
    explanation: str | None = None
    speed_bonus: int = 0
    points_awarded: int = 0
    duplicate: bool = False
    error: str | None = None


class AdvanceOutcome(str, Enum):
    ADVANCED = "advanced"
    FINISHED = "finished"
    SKIPPED = "skipped"
