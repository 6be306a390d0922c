import json

import pytest
from fastapi import status

from quizmaster.dependencies.services import get_generation_service
from quizmaster.main import app
from quizmaster.services.generation_service import GenerationService

GENERATION_BODY = {
    "contents": [{"role": "user", "parts": [{"text": "Quiz me on capitals"}]}],
}


@pytest.mark.asyncio
async def test_generate_proxies_request(client, generation_handler):
    client_instance, _ = client

    response = await client_instance.post("/api/v1/generate", json=GENERATION_BODY)

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["candidates"][0]["content"]["parts"][0]["text"] == (
        "generated"
    )
    upstream = generation_handler["requests"][0]
    assert upstream.url.params["key"] == "test-api-key"
    assert json.loads(upstream.content)["generationConfig"]["topK"] == 40


@pytest.mark.asyncio
async def test_generate_rejects_empty_contents(client):
    client_instance, _ = client

    response = await client_instance.post("/api/v1/generate", json={"contents": []})

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


@pytest.mark.asyncio
async def test_generate_without_api_key(client):
    client_instance, _ = client
    app.dependency_overrides[get_generation_service] = lambda: GenerationService(
        api_key=""
    )

    response = await client_instance.post("/api/v1/generate", json=GENERATION_BODY)

    assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
    assert response.json()["code"] == "GENERATION_UNAVAILABLE"


@pytest.mark.asyncio
async def test_parse_quiz(client, quiz_data):
    client_instance, _ = client

    response = await client_instance.post(
        "/api/v1/generate/parse-quiz",
        json={"text": f"Here you go:\n{json.dumps(quiz_data)}"},
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["questions"][1]["question"] == "Capital of Japan?"


@pytest.mark.asyncio
async def test_parse_quiz_invalid(client):
    client_instance, _ = client

    response = await client_instance.post(
        "/api/v1/generate/parse-quiz", json={"text": "nothing useful"}
    )

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert response.json()["code"] == "INVALID_QUIZ"
