from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from quizmaster.core.error import DomainErrorCode, QuizDomainError
from quizmaster.core.jwt import get_participant_id_from_token

auth_scheme = HTTPBearer(auto_error=False)


async def get_current_participant(
    auth: HTTPAuthorizationCredentials | None = Depends(auth_scheme),
) -> str:
    if auth is None:
        raise QuizDomainError(
            code=DomainErrorCode.AUTH_PENDING,
            message="Authentication pending. Try again.",
        )

    participant_id = get_participant_id_from_token(auth.credentials)

    if not participant_id:
        raise QuizDomainError(
            code=DomainErrorCode.INVALID_TOKEN,
            message="Could not validate credentials",
        )

    return participant_id
