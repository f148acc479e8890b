"""
Executes auto-reply intents: wait out the intent's delay, send through the
provider, then tell observers. Intents are not cancelled by later state changes;
handles are kept only so shutdown can cancel what is still waiting.
"""

from __future__ import annotations

import asyncio
from typing import Iterable, Optional

from relaydesk.adapters.base import BaseProviderClient
from relaydesk.core.auto_reply import ReplyIntent
from relaydesk.core.fanout import EventPublisher
from relaydesk.infra.logging_config import get_logger
from relaydesk.schemas.events import ObserverEvent

logger = get_logger("reply_scheduler")


class ReplyScheduler:
    def __init__(
        self, provider: Optional[BaseProviderClient], publisher: EventPublisher
    ) -> None:
        self._provider = provider
        self._publisher = publisher
        self._pending: dict[str, set[asyncio.Task[None]]] = {}

    def schedule(self, intents: Iterable[ReplyIntent]) -> list[asyncio.Task[None]]:
        tasks = []
        for intent in intents:
            task = asyncio.create_task(self._fire(intent))
            self._pending.setdefault(intent.chat_id, set()).add(task)
            task.add_done_callback(lambda t, chat_id=intent.chat_id: self._forget(chat_id, t))
            tasks.append(task)
        return tasks

    def pending(self, chat_id: str) -> int:
        return len(self._pending.get(chat_id, ()))

    def _forget(self, chat_id: str, task: asyncio.Task[None]) -> None:
        tasks = self._pending.get(chat_id)
        if tasks is None:
            return
        tasks.discard(task)
        if not tasks:
            del self._pending[chat_id]

    async def cancel_all(self) -> None:
        tasks = [task for tasks in self._pending.values() for task in tasks]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._pending.clear()

    async def _fire(self, intent: ReplyIntent) -> None:
        await asyncio.sleep(intent.delay)
        if self._provider is None:
            logger.warning("Auto-reply dropped for %s: provider not configured", intent.chat_id)
            return
        try:
            await self._provider.send_text(intent.chat_id, intent.text)
        except Exception as e:
            logger.error(
                "Auto-reply send failed",
                extra={
                    "context": {
                        "chat_id": intent.chat_id,
                        "kind": intent.kind.value,
                        "error": str(e),
                    }
                },
            )
            return
        logger.info("Auto-reply sent (%s) to %s", intent.kind.value, intent.chat_id)
        self._publisher.publish(
            ObserverEvent.AUTO_REPLY, {"chatId": intent.chat_id, "message": intent.text}
        )
