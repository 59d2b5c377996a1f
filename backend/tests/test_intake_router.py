"""
HTTP-level tests for the intake router and the app shell.

The orchestrator dependency is overridden with one built from in-memory
fakes. TestClient is used without a context manager, so the lifespan
(startup validation, Redis, AI reachability) never runs.
"""

import pytest
from fastapi.testclient import TestClient

from conftest import FakeLLM
from config import runtime_config
from main import app
from routers.intake_orchestration.orchestrator import get_orchestrator
from routers.intake_orchestration.prompts import PERSONAS, PersonaTemplate


CREATE_MATTER_REPLY = (
    "Thank you, John.\n"
    "TOOL_CALL: create_matter\n"
    'PARAMETERS: {"name": "John Smith", "matter_type": "Employment Law", '
    '"description": "Fired from my job without my overtime pay", '
    '"email": "john@example.com", "phone": "(555) 234-5678"}'
)


@pytest.fixture
def client_for(make_orchestrator):
    """Build a TestClient whose turns run through a fake-backed orchestrator."""

    def _client(llm=None):
        orchestrator = make_orchestrator(llm)
        app.dependency_overrides[get_orchestrator] = lambda: orchestrator
        return TestClient(app)

    yield _client
    app.dependency_overrides.clear()


def turn_payload(content="I need help with a divorce", **overrides):
    payload = {
        "messages": [{"role": "user", "content": content}],
        "session_id": "sess-1",
        "team_id": "team-1",
    }
    payload.update(overrides)
    return payload


class TestIntakeTurn:
    """Test POST /api/intake/turn."""

    def test_turn_returns_reply_and_state(self, client_for):
        client = client_for(FakeLLM(["May I have your name?"]))
        response = client.post("/api/intake/turn", json=turn_payload())

        assert response.status_code == 200
        body = response.json()
        assert body["response"] == "May I have your name?"
        assert body["state"] == "GATHERING_INFORMATION"
        assert body["source"] == "ai"
        assert body["tool_invoked"] is None
        assert body["matter_created"] is False
        assert body["context"]["session_id"] == "sess-1"
        assert body["context"]["established_matters"] == ["Family Law"]

    def test_turn_creates_matter(self, client_for, submitter):
        client = client_for(FakeLLM([CREATE_MATTER_REPLY]))
        response = client.post(
            "/api/intake/turn",
            json=turn_payload("My name is John Smith and I was fired without my overtime pay"),
        )

        body = response.json()
        assert body["tool_invoked"] == "create_matter"
        assert body["tool_success"] is True
        assert body["matter_created"] is True
        assert body["matter_reference"] == "MAT-TEST-1"
        assert body["state"] == "COMPLETED"
        assert len(submitter.matters) == 1

    def test_team_config_persona(self, client_for):
        """A team config payload reaches the system prompt."""
        llm = FakeLLM(["Hello"])
        client = client_for(llm)
        payload = turn_payload(team_config={"name": "Harbor Family Law", "persona": "family", "unknown": 1})
        response = client.post("/api/intake/turn", json=payload)

        assert response.status_code == 200
        assert "Harbor Family Law" in llm.calls[0]["system_prompt"]

    def test_bad_session_id_rejected(self, client_for):
        client = client_for()
        response = client.post("/api/intake/turn", json=turn_payload(session_id="../../etc/passwd"))
        assert response.status_code == 422

    def test_empty_messages_rejected(self, client_for):
        client = client_for()
        response = client.post("/api/intake/turn", json=turn_payload(messages=[]))
        assert response.status_code == 422

    def test_unknown_role_rejected(self, client_for):
        client = client_for()
        payload = turn_payload(messages=[{"role": "tool", "content": "x"}])
        assert client.post("/api/intake/turn", json=payload).status_code == 422


class TestAppShell:
    """Test health, config and middleware."""

    def test_health_memory_backend(self, client_for, monkeypatch):
        monkeypatch.setattr(runtime_config, "context_backend", "memory")
        response = client_for().get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["checks"] == {"redis": "disabled"}

    def test_security_headers(self, client_for):
        response = client_for().get("/api/instance")
        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.json()["instance_id"]

    def test_oversized_body_rejected(self, client_for):
        response = client_for().post(
            "/api/intake/turn",
            content=b" " * (2 * 1024 * 1024),
            headers={"content-type": "application/json"},
        )
        assert response.status_code == 413

    def test_config_masks_secrets(self, client_for, monkeypatch):
        monkeypatch.setattr(runtime_config, "llm_api_key", "sk-live-secret")
        body = client_for().get("/api/config").json()
        assert body["llm_api_key"] == "***"
        assert "sk-live-secret" not in str(body)

    def test_unrenderable_persona_returns_error_body(self, client_for):
        """A persona with an unfilled slot fails the turn with a structured error."""
        PERSONAS["broken-router"] = PersonaTemplate(name="broken-router", template="$firm_name $missing_slot")
        try:
            client = client_for()
            response = client.post("/api/intake/turn", json=turn_payload(team_config={"persona": "broken-router"}))
        finally:
            PERSONAS.pop("broken-router", None)

        assert response.status_code == 500
        error = response.json()["error"]
        assert error["code"] == "CONFIG_ERROR"
        assert "$missing_slot" not in error["message"]
        assert error["context"] is None
