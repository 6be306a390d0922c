from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from quizmaster.dependencies.services import get_generation_service
from quizmaster.schemas.generation import GenerationRequest, ParseQuizRequest
from quizmaster.services.generation_service import GenerationService

router = APIRouter()


@router.post("", status_code=status.HTTP_200_OK)
async def generate(
    request: GenerationRequest,
    generation_service: GenerationService = Depends(get_generation_service),
) -> JSONResponse:
    result = await generation_service.generate(request)
    return JSONResponse(status_code=result.status_code, content=result.body)


@router.post("/parse-quiz", status_code=status.HTTP_200_OK)
async def parse_quiz(request: ParseQuizRequest) -> dict:
    quiz = GenerationService.parse_quiz(request.text)
    return quiz.to_document()
