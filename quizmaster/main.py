import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from quizmaster.api.v1.endpoints import api_router
from quizmaster.core.config import settings
from quizmaster.core.error import DomainErrorCode, QuizDomainError
from quizmaster.core.room_connection_manager import room_manager
from quizmaster.dependencies.store import close_document_store
from quizmaster.schemas.common import BaseResponse

logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Real-time multiplayer quiz rooms",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix=settings.API_V1_STR)


@app.on_event("startup")
async def on_startup() -> None:
    if settings.STORE_BACKEND == "sql":
        from quizmaster.db.session import init_db

        await init_db()
    logger.info("Started with %s document store", settings.STORE_BACKEND)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    await room_manager.shutdown()
    await close_document_store()


@app.get("/health", status_code=status.HTTP_200_OK)
async def health_check() -> BaseResponse:
    return BaseResponse(message="healthy")


@app.exception_handler(QuizDomainError)
async def quiz_domain_error_handler(
    _request: Request,
    exc: QuizDomainError,
) -> JSONResponse:
    domain_error_code_mapper = {
        DomainErrorCode.INVALID_QUIZ: status.HTTP_422_UNPROCESSABLE_ENTITY,
        DomainErrorCode.INVALID_PLAYER_NAME: status.HTTP_422_UNPROCESSABLE_ENTITY,
        DomainErrorCode.INVALID_ROOM_CODE: status.HTTP_422_UNPROCESSABLE_ENTITY,
        DomainErrorCode.INVALID_ANSWER: status.HTTP_422_UNPROCESSABLE_ENTITY,
        DomainErrorCode.INVALID_CHAT_MESSAGE: status.HTTP_422_UNPROCESSABLE_ENTITY,
        DomainErrorCode.ROOM_NOT_FOUND: status.HTTP_404_NOT_FOUND,
        DomainErrorCode.PLAYER_NOT_FOUND: status.HTTP_404_NOT_FOUND,
        DomainErrorCode.DOCUMENT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
        DomainErrorCode.ROOM_NOT_IN_LOBBY: status.HTTP_409_CONFLICT,
        DomainErrorCode.ROOM_ALREADY_PLAYING: status.HTTP_409_CONFLICT,
        DomainErrorCode.ROOM_NOT_PLAYING: status.HTTP_400_BAD_REQUEST,
        DomainErrorCode.ROOM_CLOSED: status.HTTP_410_GONE,
        DomainErrorCode.ANSWER_REQUIRED: status.HTTP_400_BAD_REQUEST,
        DomainErrorCode.NOT_HOST: status.HTTP_403_FORBIDDEN,
        DomainErrorCode.AUTH_PENDING: status.HTTP_401_UNAUTHORIZED,
        DomainErrorCode.INVALID_TOKEN: status.HTTP_401_UNAUTHORIZED,
        DomainErrorCode.STORE_ERROR: status.HTTP_503_SERVICE_UNAVAILABLE,
        DomainErrorCode.GENERATION_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
        DomainErrorCode.GENERATION_FAILED: status.HTTP_502_BAD_GATEWAY,
    }
    status_code = domain_error_code_mapper.get(
        exc.code,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )

    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(
            {
                "detail": exc.message,
                "code": exc.code,
                "error_details": exc.details,
            }
        ),
    )
