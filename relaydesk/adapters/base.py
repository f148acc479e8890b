"""
Provider client interface.

The relay never drives the messaging account itself: a provider client wraps
the external automation gateway and exposes the normalized shapes the core
works with. Every operation may fail with ProviderError.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from relaydesk.schemas.relay import (
    MediaPayload,
    ProviderChat,
    ProviderMessageEvent,
    SentConfirmation,
)


class ProviderEventKind(str, Enum):
    QR = "qr"
    AUTHENTICATED = "authenticated"
    READY = "ready"
    MESSAGE = "message"
    DISCONNECTED = "disconnected"
    AUTH_FAILURE = "auth_failure"


@dataclass
class ProviderEvent:
    """One lifecycle or message event pushed by the gateway."""

    kind: ProviderEventKind
    qr: Optional[str] = None
    reason: Optional[str] = None
    chats: Optional[list[ProviderChat]] = None
    message: Optional[ProviderMessageEvent] = None
    raw: dict[str, Any] = field(default_factory=dict)


class BaseProviderClient(ABC):
    """Contract for provider clients. New gateways implement this interface."""

    @abstractmethod
    async def initialize(self) -> None:
        """Start (or resume) the provider session. Events arrive via the webhook."""
        ...

    @abstractmethod
    async def destroy(self) -> None:
        """Tear the provider session down. Must not raise when already stopped."""
        ...

    @abstractmethod
    def parse_event(self, raw_payload: dict[str, Any]) -> ProviderEvent:
        """Parse a raw webhook payload into a ProviderEvent. Raise ValueError if invalid."""
        ...

    @abstractmethod
    async def send_text(self, chat_id: str, text: str) -> SentConfirmation: ...

    @abstractmethod
    async def send_media(
        self, chat_id: str, media: MediaPayload, caption: Optional[str] = None
    ) -> SentConfirmation: ...

    @abstractmethod
    async def get_chat(self, chat_id: str) -> ProviderChat: ...

    @abstractmethod
    async def list_chats(self) -> list[ProviderChat]: ...

    @abstractmethod
    async def fetch_messages(
        self, chat_id: str, limit: int
    ) -> list[ProviderMessageEvent]:
        """Up to `limit` most recent messages of a chat, in any order."""
        ...

    @abstractmethod
    async def download_media(self, chat_id: str, message_id: str) -> MediaPayload: ...

    @abstractmethod
    async def mark_seen(self, chat_id: str) -> None: ...

    def verify_webhook(
        self, secret: Optional[str], request_headers: Optional[dict[str, str]] = None
    ) -> bool:
        """
        Verify webhook request (e.g. shared secret header). Override if the
        gateway supports it. Return True if valid or verification not required.
        """
        return True
