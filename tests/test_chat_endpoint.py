"""Tests for the `/chat` and `/health` endpoints."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any, List

import pytest
from fastapi.testclient import TestClient

from gwen.agent import AgentReply
from gwen.conversation.service import (
    APOLOGY_MESSAGE,
    ConversationService,
    get_conversation_service,
)
from gwen.conversation.state import AwaitingBundleResponse, InMemorySessionStore
from gwen.main import app


class _StubAgent:
    """Agent stand-in returning a canned reply and recording its inputs."""

    def __init__(self, reply: str, on_run=None) -> None:
        self._reply = reply
        self._on_run = on_run
        self.calls: List[dict[str, Any]] = []

    async def run(self, **kwargs: Any) -> SimpleNamespace:
        self.calls.append(kwargs)
        if self._on_run is not None:
            self._on_run(kwargs["deps"])
        return SimpleNamespace(output=AgentReply(message=self._reply))


class _FailingAgent:
    def __init__(self) -> None:
        self.attempts = 0

    async def run(self, **kwargs: Any) -> SimpleNamespace:
        self.attempts += 1
        raise RuntimeError("model unavailable")


class _RecordingChatLog:
    def __init__(self) -> None:
        self.rows: List[tuple[str, str, str]] = []

    async def append(self, session_id: str, role: str, message: str) -> None:
        self.rows.append((session_id, role, message))

    async def aclose(self) -> None:
        return None


@pytest.fixture
def chat_log() -> _RecordingChatLog:
    return _RecordingChatLog()


@pytest.fixture
def build_client(knowledge, catalog, handoff, chat_log):
    """Return a factory for a test client wired to a service using ``agent``."""

    def _build(agent) -> tuple[TestClient, ConversationService]:
        service = ConversationService(
            store=InMemorySessionStore(idle_seconds=3600, maxsize=100),
            knowledge=knowledge,
            catalog=catalog,
            handoff=handoff,
            chat_log=chat_log,
            agent_factory=lambda: agent,
            bundle_refund=30,
        )
        app.dependency_overrides[get_conversation_service] = lambda: service
        return TestClient(app), service

    yield _build
    app.dependency_overrides.clear()


def test_missing_fields_return_400(build_client) -> None:
    client, service = build_client(_StubAgent("unused"))

    response = client.post("/chat", json={"message": "hello"})

    assert response.status_code == 400
    assert response.json() == {
        "response": "Please provide a message and session ID.",
        "suggestions": ["Hello", "I need help"],
    }
    assert len(service.store) == 0


def test_sales_turn_uses_the_agent_and_strips_emojis(build_client, chat_log) -> None:
    agent = _StubAgent("Our Havana set is lovely \U0001F600")
    client, service = build_client(agent)

    response = client.post(
        "/chat", json={"message": "Show me teak dining sets", "sessionId": "abc"}
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload == {
        "response": "Our Havana set is lovely",
        "sessionId": "abc",
        "suggestions": ["Teak maintenance guide", "Show teak dining sets", "Assembly options"],
        "mode": "sales",
    }
    assert agent.calls[0]["user_prompt"] == "Show me teak dining sets"
    assert agent.calls[0]["message_history"] is None
    assert chat_log.rows == [
        ("abc", "user", "Show me teak dining sets"),
        ("abc", "assistant", "Our Havana set is lovely"),
    ]


def test_history_is_passed_to_later_turns(build_client) -> None:
    agent = _StubAgent("Noted.")
    client, _ = build_client(agent)

    client.post("/chat", json={"message": "Hi there", "sessionId": "abc"})
    client.post("/chat", json={"message": "Something for guests", "sessionId": "abc"})

    history = agent.calls[1]["message_history"]
    assert len(history) == 2
    assert history[0].parts[0].content == "Hi there"
    assert history[1].parts[0].content == "Noted."


def test_order_question_hands_off_to_order_desk(build_client) -> None:
    agent = _StubAgent("unused")
    client, _ = build_client(agent)

    response = client.post(
        "/chat", json={"message": "Where is my delivery?", "sessionId": "abc"}
    )

    payload = response.json()
    assert payload["mode"] == "order"
    assert payload["handoff"] == "order_desk"
    assert payload["handoffUrl"].startswith("https://")
    assert payload["suggestions"] == ["Track my order", "Returns information", "Contact support"]
    assert agent.calls == []


def test_order_verification_across_turns(build_client) -> None:
    client, _ = build_client(_StubAgent("unused"))

    first = client.post("/chat", json={"message": "order 1234567", "sessionId": "o"}).json()
    second = client.post("/chat", json={"message": "Smith SW1A 1AA", "sessionId": "o"}).json()

    assert first["response"].startswith("I found your order 1234567!")
    assert second["mode"] == "order"
    assert second["response"].startswith("Thank you! I've verified your identity.")


def test_accepted_bundle_offer_bypasses_the_agent(build_client) -> None:
    def open_offer(deps) -> None:
        deps.session.offered_bundle = True
        deps.session.pending = AwaitingBundleResponse(sku="HAV-DIN-8")

    agent = _StubAgent("Would you like to see our bundle deals?", on_run=open_offer)
    client, _ = build_client(agent)

    client.post("/chat", json={"message": "I love the Havana set", "sessionId": "b"})
    response = client.post("/chat", json={"message": "yes please", "sessionId": "b"}).json()

    assert len(agent.calls) == 1
    assert response["response"].startswith("Excellent! Here are some popular accessories:")
    assert response["suggestions"] == ["Continue", "Tell me more"]
    assert response["mode"] == "sales"


def test_agent_failure_returns_the_apology(build_client) -> None:
    agent = _FailingAgent()
    client, _ = build_client(agent)

    response = client.post("/chat", json={"message": "Tell me about teak", "sessionId": "f"})

    assert response.status_code == 200
    assert response.json()["response"] == APOLOGY_MESSAGE
    assert agent.attempts == 2


def test_health_reports_catalog_and_sessions(build_client) -> None:
    client, _ = build_client(_StubAgent("Hello!"))
    client.post("/chat", json={"message": "Hello", "sessionId": "h"})

    payload = client.get("/health").json()

    assert payload["status"] == "healthy"
    assert payload["catalog"] == "local"
    assert payload["sessions"] == 1
    assert payload["knowledge"]["products"] == 8
