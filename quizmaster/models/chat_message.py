from quizmaster.models.document_model import DocumentModel


class ChatMessage(DocumentModel):
    sender_id: str
    sender_name: str
    text: str
    timestamp: int
