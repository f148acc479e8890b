"""Public URL for the dashboard origin, announced to observers outside production."""

from __future__ import annotations

from typing import Optional

from relaydesk.core.fanout import EventPublisher
from relaydesk.infra.logging_config import get_logger
from relaydesk.schemas.events import ObserverEvent

logger = get_logger("tunnel_service")


class TunnelService:
    def __init__(
        self,
        publisher: EventPublisher,
        public_url: Optional[str] = None,
        enabled: bool = True,
    ) -> None:
        self._publisher = publisher
        self._public_url = public_url
        self._enabled = enabled
        self.url: Optional[str] = None

    async def start(self) -> Optional[str]:
        if not self._enabled:
            logger.info("Public tunnel disabled")
            return None
        if not self._public_url:
            logger.info("No public URL configured; dashboard is local only")
            return None
        self.announce(self._public_url)
        return self.url

    def announce(self, url: str) -> None:
        self.url = url.rstrip("/")
        logger.info("Public URL: %s", self.url)
        self._publisher.publish(ObserverEvent.TUNNEL_URL, self.url)
