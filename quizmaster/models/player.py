from pydantic import Field

from quizmaster.models.document_model import DocumentModel


class Player(DocumentModel):
    id: str
    name: str
    score: int = Field(default=0, ge=0)
    is_host: bool = False
    ready_for_next: bool = False
    joined_at: int = 0
    last_answered_index: int | None = None
