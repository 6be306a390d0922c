from fastapi import APIRouter

from quizmaster.api.v1.endpoints import auth, generate, room, ws_room

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])

api_router.include_router(ws_room.router, prefix="/ws/room", tags=["ws"])

api_router.include_router(room.router, prefix="/room", tags=["rooms"])

api_router.include_router(generate.router, prefix="/generate", tags=["generate"])
