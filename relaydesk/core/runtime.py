from __future__ import annotations

from dataclasses import dataclass, field
from typing import Awaitable, Callable

from relaydesk.adapters.base import ProviderEvent, ProviderEventKind
from relaydesk.infra.logging_config import get_logger

logger = get_logger("runtime")

ProviderEventHandler = Callable[[ProviderEvent], Awaitable[None]]


@dataclass
class Runtime:
    """Routes provider events to their handler by kind."""

    handlers: dict[ProviderEventKind, ProviderEventHandler] = field(default_factory=dict)

    def register(self, kind: ProviderEventKind, handler: ProviderEventHandler) -> None:
        self.handlers[kind] = handler

    async def dispatch(self, event: ProviderEvent) -> None:
        handler = self.handlers.get(event.kind)
        if handler is None:
            logger.debug("No handler for provider event %s", event.kind.value)
            return
        await handler(event)
