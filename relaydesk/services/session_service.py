"""
Provider session lifecycle.

Tracks the single provider session status, pushes transitions to observers,
rebuilds the chat list when the session becomes ready and re-initializes the
session after a fixed backoff whenever it fails.
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import Any, Optional

from relaydesk.adapters.base import BaseProviderClient, ProviderEvent, ProviderEventKind
from relaydesk.core.fanout import EventPublisher
from relaydesk.core.registry import ConversationRegistry
from relaydesk.exceptions import ProviderNotReadyError
from relaydesk.infra.logging_config import get_logger
from relaydesk.schemas.events import ObserverEvent, SessionStatus
from relaydesk.schemas.relay import ConversationSummary

logger = get_logger("session_service")

DEFAULT_RETRY_SECONDS = 10.0
DEFAULT_RECONNECT_SECONDS = 5.0


class ProviderSessionService:
    def __init__(
        self,
        provider: Optional[BaseProviderClient],
        publisher: EventPublisher,
        registry: ConversationRegistry,
        retry_seconds: float = DEFAULT_RETRY_SECONDS,
        reconnect_seconds: float = DEFAULT_RECONNECT_SECONDS,
    ) -> None:
        self._provider = provider
        self._publisher = publisher
        self._registry = registry
        self._retry_seconds = retry_seconds
        self._reconnect_seconds = reconnect_seconds
        self._restart_task: Optional[asyncio.Task[None]] = None
        self._stopped = False
        self.status: Optional[SessionStatus] = None

    @property
    def is_authenticated(self) -> bool:
        return self.status in (SessionStatus.CONNECTED, SessionStatus.READY)

    @property
    def restart_pending(self) -> bool:
        return self._restart_task is not None and not self._restart_task.done()

    async def start(self) -> None:
        if self._provider is None:
            logger.warning("Provider is not configured; session not started")
            return
        self._stopped = False
        try:
            await self._provider.initialize()
        except Exception as e:
            logger.error("Provider initialization failed: %s", e)
            self.schedule_restart(self._retry_seconds)

    async def stop(self) -> None:
        self._stopped = True
        if self._restart_task is not None:
            self._restart_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._restart_task
            self._restart_task = None
        if self._provider is not None:
            await self._provider.destroy()

    def schedule_restart(self, delay: float) -> None:
        """Re-initialize the session after `delay` seconds; at most one pending restart."""
        if self._stopped or self._provider is None or self.restart_pending:
            return
        logger.info("Provider session restart in %.1fs", delay)
        self._restart_task = asyncio.create_task(self._restart_after(delay))

    async def _restart_after(self, delay: float) -> None:
        await asyncio.sleep(delay)
        if self._provider is None:
            return
        try:
            await self._provider.destroy()
        except Exception as e:
            logger.warning("Provider destroy before restart failed: %s", e)
        self._restart_task = None
        await self.start()

    def _set_status(self, status: SessionStatus) -> None:
        self.status = status
        self._publisher.publish(ObserverEvent.SESSION_STATUS, status.value)

    async def handle_event(self, event: ProviderEvent) -> None:
        if event.kind == ProviderEventKind.QR:
            logger.info("Provider QR challenge received")
            self._publisher.publish(ObserverEvent.QR_CHALLENGE, event.qr)
        elif event.kind == ProviderEventKind.AUTHENTICATED:
            logger.info("Provider session authenticated")
            self._set_status(SessionStatus.CONNECTED)
        elif event.kind == ProviderEventKind.READY:
            logger.info("Provider session ready")
            self._set_status(SessionStatus.READY)
            await self._reload_chats(event)
        elif event.kind == ProviderEventKind.DISCONNECTED:
            logger.warning("Provider session disconnected: %s", event.reason)
            self._set_status(SessionStatus.DISCONNECTED)
            self.schedule_restart(self._reconnect_seconds)
        elif event.kind == ProviderEventKind.AUTH_FAILURE:
            logger.error("Provider authentication failed: %s", event.reason)
            self._set_status(SessionStatus.AUTH_FAILURE)
            self.schedule_restart(self._retry_seconds)

    async def _reload_chats(self, event: ProviderEvent) -> None:
        try:
            chats = event.chats
            if chats is None:
                if self._provider is None:
                    raise ProviderNotReadyError("Provider is not configured")
                chats = await self._provider.list_chats()
            logger.info("Chats loaded: %d", len(chats))
            self._registry.clear_and_reload(
                ConversationSummary.from_provider_chat(chat) for chat in chats
            )
        except Exception as e:
            logger.error("Failed to load chats: %s", e)

    def handle_loop_exception(
        self, loop: asyncio.AbstractEventLoop, context: dict[str, Any]
    ) -> None:
        """
        Event loop exception handler: log every report, rebuild the session only
        for reports that carry an exception.
        """
        exc = context.get("exception")
        logger.error(
            "Uncaught exception: %s",
            context.get("message"),
            exc_info=(type(exc), exc, exc.__traceback__) if exc else None,
        )
        if exc is not None:
            self.schedule_restart(self._reconnect_seconds)
