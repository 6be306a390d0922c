from fastapi import APIRouter, status

from quizmaster.core.jwt import create_access_token, new_participant_id
from quizmaster.schemas.auth import AnonymousTokenResponse

router = APIRouter()


@router.post(
    "/anonymous",
    response_model=AnonymousTokenResponse,
    status_code=status.HTTP_201_CREATED,
)
async def anonymous_login():
    participant_id = new_participant_id()
    return AnonymousTokenResponse(
        participant_id=participant_id,
        access_token=create_access_token(participant_id),
    )
