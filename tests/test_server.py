"""Tests for the FastAPI memory endpoints."""

import pytest
from fastapi.testclient import TestClient


@pytest.fixture()
def client(global_service):
    from ui.server import app

    return TestClient(app)


def test_health_reports_durable_store(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "durable_store": True}


def test_read_memory(client):
    response = client.get("/api/memory/s1")
    assert response.status_code == 200
    body = response.json()
    assert body["sessionId"] == "s1"
    assert body["recentUtterances"] == []


def test_patch_memory(client):
    response = client.patch(
        "/api/memory/s1",
        json={"preferredWords": {"Juice": 2}, "programContext": {"rawText": "IEP text"}},
    )
    assert response.status_code == 200
    assert response.json() == {"success": True}

    body = client.get("/api/memory/s1").json()
    assert body["preferredWords"] == {"juice": 2}
    assert body["programContext"]["rawText"] == "IEP text"


def test_patch_memory_rejects_malformed_body(client):
    response = client.patch("/api/memory/s1", json={"recentGoals": "not a list"})
    assert response.status_code == 422


def test_words_and_forecast(client):
    response = client.post("/api/memory/s1/words", json={"words": ["Ball", "ball"]})
    assert response.json() == {"success": True}

    forecast = client.get("/api/memory/s1/forecast").json()
    assert forecast[0]["word"] == "ball"
    assert forecast[0]["level"] == "emerging"


def test_utterances(client):
    response = client.post("/api/memory/s1/utterances", json={"utterance": "I want ball"})
    assert response.json() == {"success": True}

    body = client.get("/api/memory/s1").json()
    assert body["combinationStats"] == {"i+want": {"count": 1}, "want+ball": {"count": 1}}


def test_empty_utterance_rejected(client):
    response = client.post("/api/memory/s1/utterances", json={"utterance": ""})
    assert response.status_code == 422


def test_list_tools(client):
    names = {t["name"] for t in client.get("/api/tools").json()}
    assert "memory_read" in names


def test_blank_session_id_rejected(client):
    response = client.get("/api/memory/%20")
    assert response.status_code == 422
    assert "session id" in response.json()["detail"]


def test_startup_builds_service_off_the_event_loop(monkeypatch, service):
    """The startup hook builds the service on a worker thread, not the event loop."""
    import asyncio

    from ui import server

    calls = []

    def fake_get_service():
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            calls.append("worker")
        else:
            calls.append("event loop")
        return service

    monkeypatch.setattr(server, "get_service", fake_get_service)
    with TestClient(server.app):
        pass

    assert calls == ["worker"]
