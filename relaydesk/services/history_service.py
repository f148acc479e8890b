"""History pull: replay the most recent messages of one chat to one observer."""

from __future__ import annotations

from typing import Optional

from relaydesk.adapters.base import BaseProviderClient
from relaydesk.core.fanout import Observer
from relaydesk.exceptions import ProviderNotReadyError
from relaydesk.infra.logging_config import get_logger
from relaydesk.schemas.events import ObserverEvent
from relaydesk.services.ingest_service import resolve_body, to_canonical
from relaydesk.services.media_service import MediaStore

logger = get_logger("history_service")

DEFAULT_HISTORY_LIMIT = 50
LOAD_ERROR_MESSAGE = "Falha ao carregar histórico"


class HistoryService:
    def __init__(
        self, provider: Optional[BaseProviderClient], media_store: MediaStore
    ) -> None:
        self._provider = provider
        self._media_store = media_store

    async def load(
        self, observer: Observer, chat_id: str, limit: int = DEFAULT_HISTORY_LIMIT
    ) -> int:
        """
        Emit up to `limit` recent messages to `observer`, oldest first.

        Media is materialized per message, so one broken attachment only turns
        that message into a placeholder. Any other error stops the pull and sends
        a single load-error; messages already emitted stay emitted.

        Returns:
            int: number of messages emitted.
        """
        emitted = 0
        try:
            if self._provider is None:
                raise ProviderNotReadyError("Provider is not configured")
            logger.info("Loading history for %s (limit=%d)", chat_id, limit)
            messages = await self._provider.fetch_messages(chat_id, limit)
            messages = sorted(messages, key=lambda m: m.timestamp)[-limit:]
            for event in messages:
                resolved = await resolve_body(
                    event, self._media_store, self._provider, optimize=False
                )
                sender = event.notify_name or event.display_name
                message = to_canonical(event, resolved, sender, historic=True)
                observer.send(ObserverEvent.MESSAGE, message.to_wire())
                emitted += 1
        except Exception as e:
            logger.error("Failed to load history for %s: %s", chat_id, e)
            observer.send(
                ObserverEvent.LOAD_ERROR, {"chatId": chat_id, "error": LOAD_ERROR_MESSAGE}
            )
        return emitted
