"""
Base command for dashboard socket commands.

Commands receive the observer that sent them and the raw `data` of the
envelope. Missing required fields mean the command is ignored, not answered.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

from relaydesk.adapters.base import BaseProviderClient

if TYPE_CHECKING:
    from relaydesk.core.app_state import AppState
    from relaydesk.core.fanout import Observer


class BaseDashboardCommand:
    def __init__(self, state: "AppState") -> None:
        self.state = state

    async def execute(self, observer: "Observer", data: Any) -> None:
        raise NotImplementedError

    def ready_provider(self) -> Optional[BaseProviderClient]:
        """The provider client when a session is authenticated, else None."""
        if self.state.provider is None or not self.state.session.is_authenticated:
            return None
        return self.state.provider

    @staticmethod
    def field(data: Any, name: str) -> Any:
        if isinstance(data, dict):
            return data.get(name)
        return None
