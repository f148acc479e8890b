"""Tests for the dashboard websocket."""

import pytest
from fastapi.testclient import TestClient

from relaydesk.main import create_app
from relaydesk.schemas.events import SessionStatus
from relaydesk.schemas.relay import ConversationSummary


@pytest.fixture
def client(app_state):
    with TestClient(create_app(testing=True, state=app_state)) as c:
        yield c


def test_new_observer_gets_bot_config(client: TestClient, app_state):
    with client.websocket_connect("/ws") as ws:
        frame = ws.receive_json()
    assert frame["type"] == "bot-config"
    assert frame["data"]["status"] == "active"
    assert len(frame["data"]["autoReplies"]) == 3


def test_replay_order_on_connect(client: TestClient, app_state):
    app_state.session.status = SessionStatus.READY
    app_state.registry.clear_and_reload([ConversationSummary(id="a@c.us", name="Ana")])
    app_state.tunnel.url = "https://guincho.example"

    with client.websocket_connect("/ws") as ws:
        frames = [ws.receive_json() for _ in range(4)]

    assert [f["type"] for f in frames] == [
        "session-status",
        "chat-list-full",
        "tunnel-url",
        "bot-config",
    ]
    assert frames[0]["data"] == "ready"
    assert frames[1]["data"][0][0] == "a@c.us"
    assert frames[1]["data"][0][1]["name"] == "Ana"


def test_config_update_is_broadcast_to_every_observer(client: TestClient, app_state):
    new_config = {"status": "paused", "greeting": "Oi", "farewell": "Tchau", "autoReplies": []}
    with client.websocket_connect("/ws") as first, client.websocket_connect("/ws") as second:
        first.receive_json()
        second.receive_json()

        first.send_json({"type": "update-config", "data": new_config})

        for ws in (first, second):
            frame = ws.receive_json()
            assert frame["type"] == "bot-config-updated"
            assert frame["data"]["status"] == "paused"


def test_send_message_over_socket(client: TestClient, app_state, provider):
    app_state.session.status = SessionStatus.READY
    with client.websocket_connect("/ws") as ws:
        ws.receive_json()
        ws.receive_json()
        ws.send_text("not json")
        ws.send_json({"type": "send-message", "data": {"chatId": "a@c.us", "message": "Olá"}})
        frames = [ws.receive_json() for _ in range(3)]

    assert [f["type"] for f in frames] == ["chat-delta", "message-sent", "message-status"]
    assert frames[1]["data"]["messageId"] == "out-1"
    provider.send_text.assert_awaited_once_with("a@c.us", "Olá")


def test_disconnect_detaches_observer(client: TestClient, app_state):
    with client.websocket_connect("/ws") as ws:
        ws.receive_json()
        assert app_state.hub.count == 1
    assert client.get("/health").json()["observers"] == 0
