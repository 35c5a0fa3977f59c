"""Tests for API endpoints."""

import json

import httpx
import pytest
from fakes import GROQ_TEST_CONFIG, FakeDocsService, ScriptedModel, completion, tool_call, tool_completion
from fastapi.testclient import TestClient

from codewizard.api.endpoints import get_rate_limiter
from codewizard.clients.context7 import DocsServiceConfig
from codewizard.main import app
from codewizard.services.conversation import ConversationService, get_conversation_service
from codewizard.services.rate_limit import CredentialRateLimiter
from codewizard.tools.fetch_documentation import FETCH_DOCUMENTATION
from codewizard.tools.resolve_library import RESOLVE_LIBRARY_ID


@pytest.fixture
def make_client():
    """Build a TestClient whose outbound calls go to scripted fakes."""

    def make(
        model: ScriptedModel,
        docs_service: FakeDocsService | None = None,
        limiter: CredentialRateLimiter | None = None,
    ) -> TestClient:
        docs_service = docs_service or FakeDocsService()
        service = ConversationService(
            groq_config=GROQ_TEST_CONFIG,
            docs_config=DocsServiceConfig(url="https://docs.test/mcp"),
            groq_transport=model.transport,
            docs_transport=docs_service.transport,
        )
        limiter = limiter or CredentialRateLimiter(requests_per_minute=1000)
        app.dependency_overrides[get_conversation_service] = lambda: service
        app.dependency_overrides[get_rate_limiter] = lambda: limiter
        return TestClient(app)

    yield make
    app.dependency_overrides.clear()


def frames_of(response: httpx.Response) -> list[str]:
    return [chunk for chunk in response.text.split("\n\n") if chunk]


def payloads_of(response: httpx.Response) -> list[dict | str]:
    payloads: list[dict | str] = []
    for frame in frames_of(response):
        assert frame.startswith("data: ")
        data = frame[len("data: ") :]
        payloads.append(data if data == "[DONE]" else json.loads(data))
    return payloads


def chat_body(content: str = "What is 2+2?", **extra) -> dict:
    return {"groqApiKey": "gsk_test", "messages": [{"role": "user", "content": content}], **extra}


class TestHealthEndpoint:
    """Tests for the health check endpoint."""

    def test_health_check_returns_200(self):
        response = TestClient(app).get("/health")
        assert response.status_code == 200

    def test_health_check_response_structure(self):
        data = TestClient(app).get("/health").json()

        assert data["status"] == "healthy"
        assert data["version"] == "0.1.0"
        assert "timestamp" in data


class TestChatbotValidation:
    """Requests rejected before a stream opens."""

    @pytest.mark.parametrize("body", [{"messages": []}, {"groqApiKey": "", "messages": []}, {"groqApiKey": None}])
    def test_missing_api_key_returns_400(self, make_client, body):
        model = ScriptedModel(completion("4"))
        response = make_client(model).post("/api/chatbot", json=body)

        assert response.status_code == 400
        assert "Groq API key is required" in response.json()["error"]
        assert model.calls == 0

    def test_rate_limited_credential_returns_429(self, make_client):
        model = ScriptedModel(completion("4"), repeat_last=True)
        client = make_client(model, limiter=CredentialRateLimiter(requests_per_minute=1))

        assert client.post("/api/chatbot", json=chat_body()).status_code == 200
        response = client.post("/api/chatbot", json=chat_body())

        assert response.status_code == 429
        assert "error" in response.json()
        assert model.calls == 1

    def test_rate_limit_is_per_credential(self, make_client):
        model = ScriptedModel(completion("4"), repeat_last=True)
        client = make_client(model, limiter=CredentialRateLimiter(requests_per_minute=1))

        assert client.post("/api/chatbot", json=chat_body()).status_code == 200
        other = {**chat_body(), "groqApiKey": "gsk_other"}
        assert client.post("/api/chatbot", json=other).status_code == 200


class TestChatbotStream:
    """Tests for the streamed response."""

    def test_plain_answer_stream(self, make_client):
        model = ScriptedModel(completion("2 + 2 = 4"))
        response = make_client(model).post("/api/chatbot", json=chat_body())

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        assert response.headers["cache-control"] == "no-cache"

        payloads = payloads_of(response)
        assert payloads[-1] == "[DONE]"
        text = "".join(payload["choices"][0]["delta"]["content"] for payload in payloads[:-1])
        assert text == "2 + 2 = 4"

    def test_default_model(self, make_client):
        model = ScriptedModel(completion("4"))
        make_client(model).post("/api/chatbot", json=chat_body())

        assert model.requests[0]["model"] == "moonshotai/kimi-k2-instruct"

    def test_custom_model(self, make_client):
        model = ScriptedModel(completion("4"))
        make_client(model).post("/api/chatbot", json=chat_body(groqModel="llama-3.3-70b-versatile"))

        assert model.requests[0]["model"] == "llama-3.3-70b-versatile"

    def test_client_history_filtered_and_encoded(self, make_client):
        model = ScriptedModel(completion("4"))
        body = {
            "groqApiKey": "gsk_test",
            "messages": [
                {"role": "user", "content": {"parts": ["structured"]}},
                {"role": "tool", "content": "stale", "tool_call_id": "x"},
                {"role": "assistant", "content": "noted"},
                {"role": "user", "content": "and now?"},
            ],
        }
        make_client(model).post("/api/chatbot", json=body)

        messages = model.requests[0]["messages"]
        assert [message["role"] for message in messages] == ["system", "user", "assistant", "user"]
        assert messages[1]["content"] == json.dumps({"parts": ["structured"]})

    def test_documentation_lookup_stream(self, make_client):
        docs_service = FakeDocsService(
            {
                "resolve-library-id": [{"type": "text", "text": "/reactjs/react.dev"}],
                "get-library-docs": "React documentation",
            }
        )
        model = ScriptedModel(
            tool_completion(tool_call("call_1", RESOLVE_LIBRARY_ID, {"libraryName": "react"})),
            tool_completion(
                tool_call("call_2", FETCH_DOCUMENTATION, {"context7CompatibleLibraryID": "/reactjs/react.dev"})
            ),
            completion("Here you go."),
        )
        response = make_client(model, docs_service).post("/api/chatbot", json=chat_body("Explain React hooks"))

        payloads = payloads_of(response)
        deltas = [payload["choices"][0]["delta"] for payload in payloads[:-1]]

        assert deltas[0] == {"tool_execution": [{"name": "resolve-library-id", "args": {"libraryName": "react"}}]}
        assert deltas[1]["tool_result"]["name"] == "resolve-library-id"
        assert "error" not in deltas[1]["tool_result"]
        assert deltas[2]["tool_execution"][0]["name"] == "fetch-documentation"
        assert deltas[3]["tool_result"] == {"name": "fetch-documentation", "content": "React documentation"}
        assert "".join(delta["content"] for delta in deltas[4:]) == "Here you go."
        assert payloads[-1] == "[DONE]"

    def test_upstream_error_frame_ends_stream(self, make_client):
        model = ScriptedModel(httpx.Response(401, json={"error": {"message": "Invalid API Key"}}))
        response = make_client(model).post("/api/chatbot", json=chat_body())

        assert response.status_code == 200
        assert payloads_of(response) == [{"error": "Invalid API Key"}]

    def test_tool_error_frame_flagged(self, make_client):
        docs_service = FakeDocsService({"get-library-docs": httpx.Response(500)})
        model = ScriptedModel(
            tool_completion(tool_call("call_1", FETCH_DOCUMENTATION, {"context7CompatibleLibraryID": "/prisma/docs"})),
            completion("Could not fetch docs."),
        )
        response = make_client(model, docs_service).post("/api/chatbot", json=chat_body())

        payloads = payloads_of(response)
        result = payloads[1]["choices"][0]["delta"]["tool_result"]
        assert result["error"] is True
        assert "500" in result["content"]
        assert payloads[-1] == "[DONE]"
        assert model.calls == 2


class TestAPIDocumentation:
    """Tests for API documentation endpoints."""

    def test_openapi_json_available(self):
        response = TestClient(app).get("/openapi.json")
        assert response.status_code == 200
        assert "/api/chatbot" in response.json()["paths"]

    def test_swagger_ui_available(self):
        response = TestClient(app).get("/docs")
        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]
