from enum import Enum

from pydantic import Field, field_validator, model_validator

from quizmaster.models.document_model import DocumentModel

MIN_OPTIONS = 4


class RoomState(str, Enum):
    LOBBY = "lobby"
    PLAYING = "playing"
    FINISHED = "finished"


class Question(DocumentModel):
    text: str = Field(alias="question", min_length=1)
    options: list[str] = Field(min_length=MIN_OPTIONS)
    correct: int = Field(ge=0)
    explanation: str | None = None

    @field_validator("options")
    @classmethod
    def validate_options(cls, v: list[str]) -> list[str]:
        if any(not str(option).strip() for option in v):
            raise ValueError("options must not be blank")
        return v

    @model_validator(mode="after")
    def validate_correct_index(self) -> "Question":
        if self.correct >= len(self.options):
            raise ValueError(
                f"correct index {self.correct} outside {len(self.options)} options"
            )
        return self

    @property
    def correct_option(self) -> str:
        return self.options[self.correct]


class Quiz(DocumentModel):
    title: str | None = None
    questions: list[Question] = Field(min_length=1)


class Room(DocumentModel):
    room_id: str
    host_id: str
    host_name: str
    quiz: Quiz
    state: RoomState = RoomState.LOBBY
    current_question_index: int = 0
    question_start_time: int | None = None
    created_at: int

    @property
    def question_count(self) -> int:
        return len(self.quiz.questions)

    @property
    def current_question(self) -> Question | None:
        if self.state != RoomState.PLAYING:
            return None
        if not 0 <= self.current_question_index < self.question_count:
            return None
        return self.quiz.questions[self.current_question_index]

    @property
    def is_last_question(self) -> bool:
        return self.current_question_index + 1 >= self.question_count
