import json

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from quizmaster.core.jwt import create_access_token
from quizmaster.dependencies.services import get_generation_service
from quizmaster.dependencies.store import get_document_store
from quizmaster.main import app
from quizmaster.services.generation_service import GenerationService


@pytest.fixture
def generation_handler():
    state = {"requests": []}

    def handler(request: httpx.Request) -> httpx.Response:
        state["requests"].append(request)
        return httpx.Response(
            200,
            json={"candidates": [{"content": {"parts": [{"text": "generated"}]}}]},
        )

    state["handler"] = handler
    return state


@pytest_asyncio.fixture
async def client(store, generation_handler):
    app.dependency_overrides[get_document_store] = lambda: store
    app.dependency_overrides[get_generation_service] = lambda: GenerationService(
        api_key="test-api-key",
        url="https://generation.test/generate",
        transport=httpx.MockTransport(generation_handler["handler"]),
    )

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client_instance:
        yield client_instance, store

    app.dependency_overrides.clear()


def auth_headers(participant_id: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(participant_id)}"}


@pytest.fixture
def host_headers():
    return auth_headers("host-1")


@pytest.fixture
def player_headers():
    return auth_headers("p-2")


@pytest.fixture
def quiz_upload(quiz_data):
    return {"quiz_file": ("quiz.json", json.dumps(quiz_data), "application/json")}


@pytest_asyncio.fixture
async def created_room(client, host_headers, quiz_upload):
    client_instance, _ = client
    response = await client_instance.post(
        "/api/v1/room",
        data={"host_name": "Alice"},
        files=quiz_upload,
        headers=host_headers,
    )
    assert response.status_code == 201
    return response.json()
