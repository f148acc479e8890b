"""Fakes and fixtures shared by the relay tests."""

import base64
import io
from typing import Any, Optional
from unittest.mock import MagicMock

import pytest
from PIL import Image

from relaydesk.adapters.base import BaseProviderClient
from relaydesk.core.app_state import AppState
from relaydesk.schemas.events import ObserverEvent
from relaydesk.schemas.relay import ProviderMessageEvent, SentConfirmation
from relaydesk.services.media_service import MediaStore


def image_b64(width: int, height: int, fmt: str = "PNG") -> str:
    """Base64 of a solid-colour image generated with Pillow."""
    buf = io.BytesIO()
    Image.new("RGB", (width, height), (200, 30, 30)).save(buf, format=fmt)
    return base64.b64encode(buf.getvalue()).decode("ascii")


class RecordingPublisher:
    """Publisher that remembers what was broadcast, in order."""

    def __init__(self) -> None:
        self.events: list[tuple[ObserverEvent, Any]] = []

    def publish(self, event: ObserverEvent, data: Any = None) -> None:
        self.events.append((event, data))

    def of(self, event: ObserverEvent) -> list[Any]:
        return [data for kind, data in self.events if kind == event]


class RecordingObserver:
    def __init__(self, observer_id: str = "obs-1") -> None:
        self.id = observer_id
        self.events: list[tuple[ObserverEvent, Any]] = []
        self.closed = False

    def send(self, event: ObserverEvent, data: Any = None) -> None:
        self.events.append((event, data))

    def close(self) -> None:
        self.closed = True

    def of(self, event: ObserverEvent) -> list[Any]:
        return [data for kind, data in self.events if kind == event]

    @property
    def kinds(self) -> list[ObserverEvent]:
        return [kind for kind, _ in self.events]


def make_message(
    chat_id: str = "5511999990000@c.us",
    body: str = "olá",
    timestamp: int = 1700000000,
    from_me: bool = False,
    message_id: Optional[str] = None,
    **kwargs: Any,
) -> ProviderMessageEvent:
    return ProviderMessageEvent(
        chat_id=chat_id,
        body=body,
        timestamp=timestamp,
        from_me=from_me,
        message_id=message_id,
        **kwargs,
    )


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def observer() -> RecordingObserver:
    return RecordingObserver()


@pytest.fixture
def provider() -> MagicMock:
    """Provider client double; async methods are AsyncMocks."""
    client = MagicMock(spec=BaseProviderClient)
    client.send_text.return_value = SentConfirmation(message_id="out-1", timestamp=1700000100)
    client.send_media.return_value = SentConfirmation(message_id="out-2", timestamp=1700000200)
    client.list_chats.return_value = []
    client.fetch_messages.return_value = []
    client.verify_webhook.return_value = True
    return client


@pytest.fixture
def media_store(tmp_path) -> MediaStore:
    return MediaStore(tmp_path / "uploads")


@pytest.fixture
def app_state(settings, provider) -> AppState:
    return AppState(settings=settings, provider=provider)
