from pydantic import BaseModel


class AnonymousTokenResponse(BaseModel):
    participant_id: str
    access_token: str
    token_type: str = "bearer"
