"""
Message ingest pipeline.

Turns one provider message event into a canonical message, records it in the
conversation registry, publishes it, and for inbound messages acknowledges the
read and hands the auto-reply intents to the scheduler. A bad event is logged
and dropped; it never stops later events.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Optional

from relaydesk.adapters.base import BaseProviderClient
from relaydesk.core.auto_reply import decide_replies
from relaydesk.core.config_store import ConfigStore
from relaydesk.core.fanout import EventPublisher
from relaydesk.core.registry import ConversationRegistry
from relaydesk.infra.logging_config import get_logger
from relaydesk.schemas.events import ObserverEvent
from relaydesk.schemas.relay import (
    MEDIA_PREVIEW,
    MEDIA_UNAVAILABLE,
    SELF_SENDER_LABEL,
    CanonicalMessage,
    ProviderMessageEvent,
    iso_timestamp,
)
from relaydesk.services.media_service import MediaStore
from relaydesk.services.reply_scheduler import ReplyScheduler

logger = get_logger("ingest_service")


@dataclass(frozen=True)
class ResolvedBody:
    body: str
    is_media: bool
    file_path: str = ""


async def resolve_body(
    event: ProviderMessageEvent,
    media_store: MediaStore,
    provider: Optional[BaseProviderClient],
    optimize: bool = True,
) -> ResolvedBody:
    """Materialize the event's media, degrading to a placeholder on any failure."""
    if not event.has_media and event.media is None:
        return ResolvedBody(body=event.body, is_media=False)
    try:
        payload = event.media
        if payload is None:
            if provider is None or not event.message_id:
                raise ValueError("media not inline and cannot be downloaded")
            payload = await provider.download_media(event.chat_id, event.message_id)
        asset = await asyncio.to_thread(media_store.materialize, payload, optimize)
    except Exception as e:
        logger.warning(
            "Media unavailable",
            extra={
                "context": {
                    "chat_id": event.chat_id,
                    "message_id": event.message_id,
                    "error": str(e),
                }
            },
        )
        return ResolvedBody(body=MEDIA_UNAVAILABLE, is_media=True)
    return ResolvedBody(body=asset.url, is_media=True, file_path=str(asset.path))


def to_canonical(
    event: ProviderMessageEvent,
    resolved: ResolvedBody,
    sender: str,
    historic: bool = False,
) -> CanonicalMessage:
    return CanonicalMessage(
        chat_id=event.chat_id,
        direction=event.direction,
        sender=SELF_SENDER_LABEL if event.from_me else sender,
        message=resolved.body,
        timestamp=iso_timestamp(event.timestamp),
        is_media=resolved.is_media,
        from_me=event.from_me,
        file_path=resolved.file_path,
        message_id=event.message_id if event.from_me else None,
        historic=historic,
    )


class MessageIngestPipeline:
    def __init__(
        self,
        registry: ConversationRegistry,
        config_store: ConfigStore,
        media_store: MediaStore,
        publisher: EventPublisher,
        scheduler: ReplyScheduler,
        provider: Optional[BaseProviderClient] = None,
    ) -> None:
        self._registry = registry
        self._config_store = config_store
        self._media_store = media_store
        self._publisher = publisher
        self._scheduler = scheduler
        self._provider = provider

    async def ingest(self, event: ProviderMessageEvent) -> Optional[CanonicalMessage]:
        try:
            message, first_unread = await self._record(event)
        except Exception:
            logger.exception("Failed to process message for chat %s", event.chat_id)
            return None

        if not event.from_me:
            await self._acknowledge(event.chat_id)
            intents = decide_replies(message, self._config_store.current, first_unread)
            if intents:
                self._scheduler.schedule(intents)
        return message

    async def _record(self, event: ProviderMessageEvent) -> tuple[CanonicalMessage, bool]:
        resolved = await resolve_body(event, self._media_store, self._provider)

        preview = MEDIA_PREVIEW if resolved.is_media else event.body
        previous, unread = self._registry.record_message(
            event.chat_id,
            preview=preview,
            timestamp=event.timestamp,
            from_me=event.from_me,
            name=event.display_name,
        )

        message = to_canonical(event, resolved, event.display_name)
        self._publisher.publish(ObserverEvent.MESSAGE, message.to_wire())
        return message, previous == 0 and unread == 1

    async def _acknowledge(self, chat_id: str) -> None:
        if self._provider is None:
            return
        try:
            await self._provider.mark_seen(chat_id)
        except Exception as e:
            logger.warning("Failed to mark chat %s as seen: %s", chat_id, e)
