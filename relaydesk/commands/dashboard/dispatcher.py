from __future__ import annotations

from typing import TYPE_CHECKING, Any, Awaitable, Callable

from pydantic import ValidationError

from relaydesk.commands.dashboard.chat_commands import LoadHistoryCommand, MarkReadCommand
from relaydesk.commands.dashboard.send_message_command import (
    SendFileCommand,
    SendMessageCommand,
)
from relaydesk.commands.dashboard.settings_commands import (
    RequestTunnelUrlCommand,
    TranscribeAudioCommand,
    UpdateConfigCommand,
)
from relaydesk.infra.logging_config import get_logger
from relaydesk.schemas.events import DashboardCommand, WsInbound

if TYPE_CHECKING:
    from relaydesk.core.app_state import AppState
    from relaydesk.core.fanout import Observer

logger = get_logger("dashboard_dispatcher")

CommandHandler = Callable[["Observer", Any], Awaitable[None]]


class DashboardDispatcher:
    """Maps dashboard command types to their command; unknown or malformed input is dropped."""

    def __init__(self, state: "AppState") -> None:
        self._handlers: dict[str, CommandHandler] = {
            DashboardCommand.SEND_MESSAGE.value: SendMessageCommand(state).execute,
            DashboardCommand.SEND_FILE.value: SendFileCommand(state).execute,
            DashboardCommand.MARK_READ.value: MarkReadCommand(state).execute,
            DashboardCommand.UPDATE_CONFIG.value: UpdateConfigCommand(state).execute,
            DashboardCommand.LOAD_HISTORY.value: LoadHistoryCommand(state).execute,
            DashboardCommand.REQUEST_TUNNEL_URL.value: RequestTunnelUrlCommand(state).execute,
            DashboardCommand.TRANSCRIBE_AUDIO.value: TranscribeAudioCommand(state).execute,
        }

    @property
    def commands(self) -> list[str]:
        return list(self._handlers)

    async def dispatch(self, observer: "Observer", raw: Any) -> None:
        try:
            envelope = WsInbound.model_validate(raw)
        except ValidationError:
            logger.debug("Ignoring malformed dashboard frame")
            return
        handler = self._handlers.get(envelope.type)
        if handler is None:
            logger.debug("Ignoring unknown dashboard command %s", envelope.type)
            return
        try:
            await handler(observer, envelope.data)
        except Exception:
            logger.exception("Dashboard command %s failed", envelope.type)
