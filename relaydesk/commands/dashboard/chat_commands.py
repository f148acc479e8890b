"""Commands that act on one chat: mark it read, pull its history."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from relaydesk.commands.dashboard.base import BaseDashboardCommand
from relaydesk.infra.logging_config import get_logger

if TYPE_CHECKING:
    from relaydesk.core.fanout import Observer

logger = get_logger("chat_commands")


class MarkReadCommand(BaseDashboardCommand):
    async def execute(self, observer: "Observer", data: Any) -> None:
        # Older dashboards send the bare chat id.
        chat_id = data if isinstance(data, str) else self.field(data, "chatId")
        provider = self.ready_provider()
        if provider is None or not chat_id:
            return
        try:
            await provider.mark_seen(chat_id)
        except Exception as e:
            logger.error("Failed to mark %s as read: %s", chat_id, e)
            return
        if chat_id in self.state.registry:
            self.state.registry.mark_read(chat_id)


class LoadHistoryCommand(BaseDashboardCommand):
    async def execute(self, observer: "Observer", data: Any) -> None:
        chat_id = self.field(data, "chatId")
        if self.ready_provider() is None or not chat_id:
            return
        limit = self.field(data, "limit")
        try:
            limit = int(limit) if limit is not None else self.state.settings.history_default_limit
        except (TypeError, ValueError):
            limit = self.state.settings.history_default_limit
        await self.state.history.load(observer, chat_id, max(limit, 1))
