"""
Normalized message contracts for the relay.

Provider events are converted into these shapes before reaching the ingest
pipeline; observers receive them serialized with camelCase keys.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

SELF_SENDER_LABEL = "Você"
MEDIA_PREVIEW = "[Mídia]"
FILE_PREVIEW = "[Arquivo]"
MEDIA_UNAVAILABLE = "[Mídia não disponível]"
EMPTY_PREVIEW = "Nenhuma mensagem"


class WireModel(BaseModel):
    """Base for models sent to the dashboard (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Direction(str, Enum):
    INBOUND = "inbound"
    OUTBOUND = "outbound"


class MediaPayload(BaseModel):
    """Raw media as delivered by the provider or the dashboard (base64 data)."""

    mimetype: str
    data: str
    filename: Optional[str] = None


class ProviderMessageEvent(WireModel):
    """One provider message event (inbound or the local echo of an outbound send)."""

    chat_id: str
    chat_name: Optional[str] = None
    notify_name: Optional[str] = None
    message_id: Optional[str] = None
    body: str = ""
    has_media: bool = False
    media: Optional[MediaPayload] = None
    timestamp: int = 0
    from_me: bool = False

    @property
    def direction(self) -> Direction:
        return Direction.OUTBOUND if self.from_me else Direction.INBOUND

    @property
    def display_name(self) -> str:
        return self.chat_name or self.notify_name or self.chat_id.split("@")[0]


class ProviderChat(WireModel):
    """Chat entry as reported by the provider chat list."""

    id: str
    name: Optional[str] = None
    last_message: Optional[str] = None
    unread_count: int = 0
    timestamp: int = 0


class SentConfirmation(BaseModel):
    """Result of an outbound send (provider message id + provider timestamp)."""

    message_id: str
    timestamp: int


class ConversationSummary(WireModel):
    """What the dashboard shows for one conversation in the chat list."""

    id: str
    name: str
    last_message: str = ""
    unread: int = Field(default=0, ge=0)
    timestamp: int = 0

    @classmethod
    def from_provider_chat(cls, chat: ProviderChat) -> "ConversationSummary":
        return cls(
            id=chat.id,
            name=chat.name or chat.id.split("@")[0],
            last_message=chat.last_message or EMPTY_PREVIEW,
            unread=max(chat.unread_count, 0),
            timestamp=chat.timestamp,
        )


class CanonicalMessage(WireModel):
    """Normalized view of one sent or received message. Immutable."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    chat_id: str
    direction: Direction
    sender: str
    message: str
    timestamp: str
    is_media: bool = False
    from_me: bool = False
    file_path: str = ""
    message_id: Optional[str] = None
    historic: bool = False


def iso_timestamp(epoch_seconds: int) -> str:
    """Render a provider epoch timestamp the way the dashboard expects it."""
    return (
        datetime.fromtimestamp(epoch_seconds, tz=timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )
