from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from main import app
from routes.ai_chat import get_db

client = TestClient(app)

HEADERS = {"X-Tenant-ID": "tenant-1", "X-User-ID": "1"}


@pytest.fixture(autouse=True)
def override_db(db):
    app.dependency_overrides[get_db] = lambda: db
    yield
    app.dependency_overrides.clear()


@patch("routes.ai_chat.process_user_query", return_value="Tienes 2 productos registrados.")
def test_ai_chat(mock_process, seeded):
    response = client.post("/api/ai-chat", json={"query": "¿Cuántos productos tengo?"}, headers=HEADERS)

    assert response.status_code == 200
    assert response.json() == {"response": "Tienes 2 productos registrados."}
    args = mock_process.call_args.args
    assert args[1:] == ("¿Cuántos productos tengo?", "tenant-1", "1")


@pytest.mark.parametrize("body", [{}, {"query": ""}, {"query": "   "}])
@patch("routes.ai_chat.process_user_query")
def test_ai_chat_requires_query(mock_process, body):
    response = client.post("/api/ai-chat", json=body, headers=HEADERS)

    assert response.status_code == 400
    assert response.json() == {"detail": "Query is required"}
    mock_process.assert_not_called()


def test_ai_chat_requires_tenant():
    response = client.post("/api/ai-chat", json={"query": "hola"})

    assert response.status_code == 401


@patch("dispatch.get_client")
def test_ai_chat_model_unavailable(mock_get_client, seeded):
    mock_get_client.return_value.chat.completions.create.side_effect = ConnectionError("no route to host")

    response = client.post("/api/ai-chat", json={"query": "hola"}, headers=HEADERS)

    assert response.status_code == 200
    assert response.json()["response"] == "Disculpa, hubo un error al procesar tu consulta. Por favor intenta de nuevo."


def test_ai_chat_context(seeded):
    response = client.get("/api/ai-chat/context", headers=HEADERS)

    assert response.status_code == 200
    assert response.json() == {
        "productsCount": 2,
        "warehousesCount": 1,
        "todaySales": 0.0,
        "monthSales": 0.0,
    }


def test_ai_chat_context_requires_tenant():
    response = client.get("/api/ai-chat/context")

    assert response.status_code == 401


def test_health():
    assert client.get("/health").json() == {"status": "ok"}
