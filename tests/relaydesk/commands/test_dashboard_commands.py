"""Tests for the dashboard command dispatcher and commands."""

import base64
from unittest.mock import patch

import pytest

from relaydesk.exceptions import ProviderError
from relaydesk.schemas.events import ObserverEvent, SessionStatus
from relaydesk.schemas.relay import FILE_PREVIEW
from tests.fixtures.relay_fixtures import RecordingObserver, make_message

CHAT = "5511999990000@c.us"


@pytest.fixture
def ready_state(app_state):
    app_state.session.status = SessionStatus.READY
    return app_state


@pytest.fixture
def hub_observer(ready_state):
    observer = RecordingObserver("watcher")
    ready_state.hub.attach(observer)
    return observer


async def dispatch(state, observer, command, data=None):
    await state.dispatcher.dispatch(observer, {"type": command, "data": data})


@pytest.mark.asyncio
async def test_send_message_confirms_to_sender_only(ready_state, provider, observer, hub_observer):
    await dispatch(ready_state, observer, "send-message", {"chatId": CHAT, "message": "Olá!"})

    provider.send_text.assert_awaited_once_with(CHAT, "Olá!")
    assert observer.kinds == [ObserverEvent.MESSAGE_SENT, ObserverEvent.MESSAGE_STATUS]
    sent = observer.of(ObserverEvent.MESSAGE_SENT)[0]
    assert sent == {"chatId": CHAT, "messageId": "out-1", "timestamp": "2023-11-14T22:15:00.000Z"}
    status = observer.of(ObserverEvent.MESSAGE_STATUS)[0]
    assert status["status"] == "sent"
    assert status["timestamp"].endswith("Z")
    assert hub_observer.kinds == [ObserverEvent.CHAT_DELTA]
    summary = ready_state.registry.get(CHAT)
    assert summary.last_message == "Olá!"
    assert summary.unread == 0


@pytest.mark.asyncio
async def test_send_message_failure_reports_error(ready_state, provider, observer):
    provider.send_text.side_effect = ProviderError("offline")

    await dispatch(ready_state, observer, "send-message", {"chatId": CHAT, "message": "Olá!"})

    assert observer.events == [(ObserverEvent.ERROR, "Falha no envio: offline")]
    assert CHAT not in ready_state.registry


@pytest.mark.asyncio
async def test_commands_are_ignored_before_authentication(app_state, provider, observer):
    await dispatch(app_state, observer, "send-message", {"chatId": CHAT, "message": "Olá!"})
    await dispatch(app_state, observer, "mark-read", CHAT)
    await dispatch(app_state, observer, "load-history", {"chatId": CHAT})

    provider.send_text.assert_not_awaited()
    provider.mark_seen.assert_not_awaited()
    provider.fetch_messages.assert_not_awaited()
    assert observer.events == []


@pytest.mark.asyncio
async def test_send_message_requires_chat_and_text(ready_state, provider, observer):
    await dispatch(ready_state, observer, "send-message", {"chatId": CHAT})
    await dispatch(ready_state, observer, "send-message", "oi")
    provider.send_text.assert_not_awaited()


@pytest.mark.asyncio
async def test_send_file(ready_state, provider, observer):
    data = {
        "chatId": CHAT,
        "file": {
            "mimetype": "application/pdf",
            "data": base64.b64encode(b"%PDF").decode(),
            "name": "orcamento.pdf",
        },
    }
    await dispatch(ready_state, observer, "send-file", data)

    media, = provider.send_media.await_args.args[1:]
    assert media.filename == "orcamento.pdf"
    assert provider.send_media.await_args.kwargs == {"caption": "orcamento.pdf"}
    uploaded = observer.of(ObserverEvent.FILE_UPLOADED)[0]
    assert uploaded["fileName"] == "orcamento.pdf"
    assert uploaded["fileUrl"].startswith("/uploads/") and uploaded["fileUrl"].endswith(".pdf")
    assert ready_state.registry.get(CHAT).last_message == FILE_PREVIEW


@pytest.mark.asyncio
async def test_send_file_failure_reports_error(ready_state, provider, observer):
    provider.send_media.side_effect = ProviderError("too big")
    data = {"chatId": CHAT, "file": {"mimetype": "image/png", "data": "aGk=", "name": "a.png"}}

    await dispatch(ready_state, observer, "send-file", data)

    assert observer.events == [(ObserverEvent.ERROR, "Falha no envio do arquivo: too big")]


@pytest.mark.asyncio
async def test_mark_read_accepts_bare_chat_id(ready_state, provider, observer, hub_observer):
    ready_state.registry.record_message(CHAT, "oi", 1, from_me=False)
    hub_observer.events.clear()

    await dispatch(ready_state, observer, "mark-read", CHAT)

    provider.mark_seen.assert_awaited_once_with(CHAT)
    assert ready_state.registry.get(CHAT).unread == 0
    assert hub_observer.of(ObserverEvent.CHAT_DELTA) == [{"chatId": CHAT, "unread": 0}]


@pytest.mark.asyncio
async def test_mark_read_unknown_chat_is_not_created(ready_state, provider, observer):
    await dispatch(ready_state, observer, "mark-read", {"chatId": "novo@c.us"})
    provider.mark_seen.assert_awaited_once_with("novo@c.us")
    assert "novo@c.us" not in ready_state.registry


@pytest.mark.asyncio
async def test_mark_read_failure_keeps_unread(ready_state, provider, observer):
    ready_state.registry.record_message(CHAT, "oi", 1, from_me=False)
    provider.mark_seen.side_effect = ProviderError("offline")

    await dispatch(ready_state, observer, "mark-read", CHAT)

    assert ready_state.registry.get(CHAT).unread == 1


@pytest.mark.asyncio
async def test_update_config_is_broadcast(ready_state, observer, hub_observer, settings):
    await dispatch(
        ready_state,
        observer,
        "update-config",
        {"status": "paused", "greeting": "Oi", "farewell": "Tchau", "autoReplies": []},
    )
    assert ready_state.config_store.current.status.value == "paused"
    broadcast = hub_observer.of(ObserverEvent.BOT_CONFIG_UPDATED)
    assert broadcast[0]["status"] == "paused"


@pytest.mark.asyncio
async def test_load_history_uses_default_limit(ready_state, provider, observer):
    provider.fetch_messages.return_value = [make_message(chat_id=CHAT, body="oi")]

    await dispatch(ready_state, observer, "load-history", {"chatId": CHAT})

    provider.fetch_messages.assert_awaited_once_with(CHAT, 50)
    assert observer.of(ObserverEvent.MESSAGE)[0]["historic"] is True


@pytest.mark.asyncio
async def test_load_history_with_limit(ready_state, provider, observer):
    await dispatch(ready_state, observer, "load-history", {"chatId": CHAT, "limit": "10"})
    provider.fetch_messages.assert_awaited_once_with(CHAT, 10)


@pytest.mark.asyncio
async def test_request_tunnel_url(ready_state, observer):
    await dispatch(ready_state, observer, "request-tunnel-url")
    assert observer.events == []

    ready_state.tunnel.url = "https://guincho.example"
    await dispatch(ready_state, observer, "request-tunnel-url")
    assert observer.events == [(ObserverEvent.TUNNEL_URL, "https://guincho.example")]


@pytest.mark.asyncio
async def test_transcribe_audio_replies_with_text(ready_state, observer):
    with patch("relaydesk.commands.dashboard.settings_commands.TRANSCRIPTION_DELAY", 0):
        await dispatch(ready_state, observer, "transcribe-audio", {"audioData": "b2dn"})
        await dispatch(ready_state, observer, "transcribe-audio", {})

    (event, data), = observer.events
    assert event == ObserverEvent.TRANSCRIPTION
    assert data["success"] is True
    assert data["text"]


@pytest.mark.asyncio
async def test_unknown_and_malformed_frames_are_ignored(ready_state, observer):
    await ready_state.dispatcher.dispatch(observer, {"type": "reboot"})
    await ready_state.dispatcher.dispatch(observer, ["send-message"])
    await ready_state.dispatcher.dispatch(observer, {"data": {}})
    assert observer.events == []


@pytest.mark.asyncio
async def test_command_errors_are_contained(ready_state, observer):
    with patch.object(
        ready_state.config_store, "replace", side_effect=RuntimeError("boom")
    ):
        await dispatch(ready_state, observer, "update-config", {"status": "paused"})
    assert observer.events == []


def test_dispatcher_knows_every_command(app_state):
    assert sorted(app_state.dispatcher.commands) == sorted(
        [
            "send-message",
            "send-file",
            "mark-read",
            "update-config",
            "load-history",
            "request-tunnel-url",
            "transcribe-audio",
        ]
    )
