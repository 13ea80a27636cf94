import pytest
from fastapi.testclient import TestClient

from quizroom.core.config import settings
from quizroom.main import create_app
from quizroom.services.store import MemoryStore


@pytest.fixture
def client(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "log_dir", tmp_path / "logs")
    with TestClient(create_app(store=MemoryStore())) as test_client:
        yield test_client


def send(ws, event, data=None):
    ws.send_json({"event": event, "data": data})


def receive_until(ws, event, predicate=None):
    while True:
        message = ws.receive_json()
        if message["event"] == event and (predicate is None or predicate(message["data"])):
            return message["data"]


def test_root_and_health(client):
    assert "online" in client.get("/").text
    assert client.get("/health").json() == {"status": "healthy"}


def test_admin_requires_host_password(client):
    assert client.get("/admin/state").status_code == 401
    assert client.get("/admin/state", headers={"X-Host-Password": "nope"}).status_code == 401

    response = client.get("/admin/state", headers={"X-Host-Password": settings.host_password})

    assert response.status_code == 200
    assert response.json()["round"]["type"] == "WAITING"


def test_admin_session_summary(client):
    response = client.get("/admin/session", headers={"X-Host-Password": settings.host_password})
    body = response.json()
    assert body["round_block"] == 1
    assert body["player_count"] == 0


def test_game_over_websocket(client):
    headers = {"X-Host-Password": settings.host_password}
    with client.websocket_connect("/ws") as host, client.websocket_connect("/ws") as max_ws:
        receive_until(host, "publicStateUpdate")
        receive_until(max_ws, "publicStateUpdate")

        send(host, "hostLogin", settings.host_password)
        receive_until(host, "hostLoginSucceeded")
        send(
            host,
            "hostStartRound",
            {
                "type": "MULTIPLE_CHOICE",
                "question": "Capital of France?",
                "options": ["Paris", "Lyon", "Nice"],
                "correctAnswer": "Paris",
            },
        )
        receive_until(host, "hostStateUpdate", lambda s: s["round"]["type"] == "MULTIPLE_CHOICE")

        send(max_ws, "playerAnnounce", "Max")
        code = receive_until(host, "hostPlayerJoined")["code"]
        send(max_ws, "playerLogin", {"name": "Max", "code": code})
        receive_until(max_ws, "loginSucceeded")

        send(max_ws, "playerSubmitAnswer", {"name": "Max", "answer": "Paris"})
        assert receive_until(max_ws, "answerConfirmed") == {"answer": "Paris"}
        state = receive_until(max_ws, "publicStateUpdate", lambda s: s["players"])
        assert state["players"][0]["has_answered"] is True
        assert state["players"][0]["answer"] is None

        send(host, "hostReveal")
        state = receive_until(max_ws, "publicStateUpdate", lambda s: s["round"]["revealed"])
        assert state["players"][0]["answer"] == "Paris"

        send(host, "hostAdvanceRoundBlock")
        receive_until(host, "hostStateUpdate", lambda s: s["round_block"] == 2)

    session_id = client.get("/admin/session", headers=headers).json()["session_id"]
    blocks = client.get(f"/admin/sessions/{session_id}/blocks", headers=headers).json()
    assert len(blocks) == 1
    assert blocks[0]["history"][0]["answers"] == {"Max": "Paris"}


def test_malformed_messages_are_ignored(client):
    with client.websocket_connect("/ws") as ws:
        receive_until(ws, "publicStateUpdate")
        ws.send_text("not json")
        ws.send_json(["not", "an", "object"])
        send(ws, "hostReveal")
        assert receive_until(ws, "rejected") == {"event": "hostReveal", "reason": "not_host"}
