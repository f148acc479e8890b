"""Dashboard socket envelope and channel names."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel


class ObserverEvent(str, Enum):
    """Server → dashboard channels."""

    SESSION_STATUS = "session-status"
    QR_CHALLENGE = "qr-challenge"
    CHAT_LIST_FULL = "chat-list-full"
    CHAT_DELTA = "chat-delta"
    MESSAGE = "message"
    BOT_CONFIG = "bot-config"
    BOT_CONFIG_UPDATED = "bot-config-updated"
    AUTO_REPLY = "auto-reply"
    TUNNEL_URL = "tunnel-url"
    ERROR = "error"
    LOAD_ERROR = "load-error"
    MESSAGE_SENT = "message-sent"
    MESSAGE_STATUS = "message-status"
    FILE_UPLOADED = "file-uploaded"
    TRANSCRIPTION = "transcription"


class DashboardCommand(str, Enum):
    """Dashboard → server commands."""

    SEND_MESSAGE = "send-message"
    SEND_FILE = "send-file"
    MARK_READ = "mark-read"
    UPDATE_CONFIG = "update-config"
    LOAD_HISTORY = "load-history"
    REQUEST_TUNNEL_URL = "request-tunnel-url"
    TRANSCRIBE_AUDIO = "transcribe-audio"


class SessionStatus(str, Enum):
    CONNECTED = "connected"
    READY = "ready"
    DISCONNECTED = "disconnected"
    AUTH_FAILURE = "auth_failure"


class WsInbound(BaseModel):
    """Client → Server."""

    type: str
    data: Any = None


class WsOutbound(BaseModel):
    """Server → Client."""

    type: ObserverEvent
    data: Any = None

    def to_wire(self) -> dict[str, Any]:
        return {"type": self.type.value, "data": self.data}
