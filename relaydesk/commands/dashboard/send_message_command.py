"""
Commands to send a text or a file from the dashboard to a chat.

Sends through the provider, records the outbound message in the chat list and
confirms to the requesting observer only.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from relaydesk.commands.dashboard.base import BaseDashboardCommand
from relaydesk.infra.logging_config import get_logger
from relaydesk.schemas.events import ObserverEvent
from relaydesk.schemas.relay import FILE_PREVIEW, MediaPayload, iso_timestamp

if TYPE_CHECKING:
    from relaydesk.core.fanout import Observer

logger = get_logger("send_message_command")


def _now_iso() -> str:
    return (
        datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    )


class SendMessageCommand(BaseDashboardCommand):
    async def execute(self, observer: "Observer", data: Any) -> None:
        chat_id = self.field(data, "chatId")
        text = self.field(data, "message")
        provider = self.ready_provider()
        if provider is None or not chat_id or not text:
            return

        try:
            sent = await provider.send_text(chat_id, text)
        except Exception as e:
            logger.error("Failed to send message to %s: %s", chat_id, e)
            observer.send(ObserverEvent.ERROR, f"Falha no envio: {e}")
            return

        self.state.registry.upsert(
            chat_id, {"last_message": text, "unread": 0, "timestamp": sent.timestamp}
        )
        observer.send(
            ObserverEvent.MESSAGE_SENT,
            {
                "chatId": chat_id,
                "messageId": sent.message_id,
                "timestamp": iso_timestamp(sent.timestamp),
            },
        )
        observer.send(
            ObserverEvent.MESSAGE_STATUS,
            {
                "chatId": chat_id,
                "status": "sent",
                "messageId": sent.message_id,
                "timestamp": _now_iso(),
            },
        )


class SendFileCommand(BaseDashboardCommand):
    async def execute(self, observer: "Observer", data: Any) -> None:
        chat_id = self.field(data, "chatId")
        file = self.field(data, "file")
        provider = self.ready_provider()
        if provider is None or not chat_id or not isinstance(file, dict):
            return
        try:
            payload = MediaPayload(
                mimetype=file.get("mimetype") or "application/octet-stream",
                data=file.get("data") or "",
                filename=file.get("name"),
            )
        except ValidationError:
            logger.debug("Ignoring malformed send-file payload")
            return
        if not payload.data:
            return

        try:
            sent = await provider.send_media(chat_id, payload, caption=payload.filename)
            asset = await asyncio.to_thread(self.state.media.store_file, payload)
        except Exception as e:
            logger.error("Failed to send file to %s: %s", chat_id, e)
            observer.send(ObserverEvent.ERROR, f"Falha no envio do arquivo: {e}")
            return

        self.state.registry.upsert(
            chat_id,
            {"last_message": FILE_PREVIEW, "unread": 0, "timestamp": sent.timestamp},
        )
        observer.send(
            ObserverEvent.FILE_UPLOADED,
            {
                "chatId": chat_id,
                "fileName": payload.filename or asset.file_name,
                "fileUrl": asset.url,
                "timestamp": iso_timestamp(sent.timestamp),
            },
        )
