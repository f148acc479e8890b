"""
Process-wide services, built once per application and injected into routers and
commands. Nothing here is a module-level global.
"""

from __future__ import annotations

from typing import Optional

from relaydesk.adapters.base import BaseProviderClient, ProviderEvent, ProviderEventKind
from relaydesk.adapters.gateway import GatewayProviderClient
from relaydesk.commands.dashboard.dispatcher import DashboardDispatcher
from relaydesk.config import Settings, get_settings
from relaydesk.core.config_store import ConfigPersistence, ConfigStore, JsonConfigFile
from relaydesk.core.fanout import Observer, ObserverHub
from relaydesk.core.registry import ConversationRegistry
from relaydesk.core.runtime import Runtime
from relaydesk.schemas.events import ObserverEvent
from relaydesk.services.history_service import HistoryService
from relaydesk.services.ingest_service import MessageIngestPipeline
from relaydesk.services.media_service import MediaStore
from relaydesk.services.reply_scheduler import ReplyScheduler
from relaydesk.services.session_service import ProviderSessionService
from relaydesk.services.tunnel_service import TunnelService


def build_provider_from_settings(settings: Settings) -> Optional[BaseProviderClient]:
    """Return the configured gateway client, or None when the provider is disabled."""
    if not settings.provider_enabled or not settings.provider_base_url:
        return None
    return GatewayProviderClient(
        base_url=settings.provider_base_url,
        session_id=settings.provider_session_id,
        api_token=settings.provider_api_token,
        webhook_secret=settings.provider_webhook_secret,
        timeout=settings.provider_timeout_seconds,
    )


class AppState:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        provider: Optional[BaseProviderClient] = None,
        config_persistence: Optional[ConfigPersistence] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.provider = provider
        self.hub = ObserverHub()
        self.registry = ConversationRegistry(self.hub, limit=self.settings.chat_list_limit)
        self.config_store = ConfigStore(
            config_persistence or JsonConfigFile(self.settings.bot_config_path),
            self.hub,
        )
        self.media = MediaStore(
            self.settings.upload_dir,
            max_width=self.settings.image_max_width,
            jpeg_quality=self.settings.image_jpeg_quality,
        )
        self.session = ProviderSessionService(
            provider,
            self.hub,
            self.registry,
            retry_seconds=self.settings.session_retry_seconds,
            reconnect_seconds=self.settings.session_reconnect_seconds,
        )
        self.scheduler = ReplyScheduler(provider, self.hub)
        self.pipeline = MessageIngestPipeline(
            self.registry,
            self.config_store,
            self.media,
            self.hub,
            self.scheduler,
            provider=provider,
        )
        self.history = HistoryService(provider, self.media)
        self.tunnel = TunnelService(
            self.hub,
            public_url=self.settings.public_base_url,
            enabled=self.settings.tunnel_enabled and not self.settings.is_production,
        )
        self.runtime = self._build_runtime()
        self.dispatcher = DashboardDispatcher(self)

    def _build_runtime(self) -> Runtime:
        runtime = Runtime()
        for kind in ProviderEventKind:
            if kind != ProviderEventKind.MESSAGE:
                runtime.register(kind, self.session.handle_event)
        runtime.register(ProviderEventKind.MESSAGE, self._ingest_message)
        return runtime

    async def _ingest_message(self, event: ProviderEvent) -> None:
        if event.message is not None:
            await self.pipeline.ingest(event.message)

    def connect_observer(self, observer: Observer) -> None:
        """Replay current state to a new observer, then start broadcasting to it."""
        if self.session.status is not None:
            observer.send(ObserverEvent.SESSION_STATUS, self.session.status.value)
        if len(self.registry) > 0:
            observer.send(ObserverEvent.CHAT_LIST_FULL, self.registry.snapshot_wire())
        if self.tunnel.url:
            observer.send(ObserverEvent.TUNNEL_URL, self.tunnel.url)
        observer.send(ObserverEvent.BOT_CONFIG, self.config_store.current.to_wire())
        self.hub.attach(observer)

    def disconnect_observer(self, observer: Observer) -> None:
        self.hub.detach(observer)
