"""Commands that do not touch a chat: bot config, tunnel URL, audio transcription."""

from __future__ import annotations

import asyncio
import random
from typing import TYPE_CHECKING, Any

from relaydesk.commands.dashboard.base import BaseDashboardCommand
from relaydesk.schemas.events import ObserverEvent

if TYPE_CHECKING:
    from relaydesk.core.fanout import Observer

TRANSCRIPTION_DELAY = 2.0

# Stand-in transcriptions until a speech-to-text backend is wired in.
MOCK_TRANSCRIPTIONS = [
    "Preciso de um guincho para meu carro quebrado na avenida principal.",
    "Meu carro quebrou na rua das flores, preciso de socorro.",
    "Qual o valor do guincho para um carro médio?",
    "Estou com o carro avariado na marginal, preciso de ajuda.",
    "O guincho está a caminho? Já faz meia hora que solicitei.",
]


class UpdateConfigCommand(BaseDashboardCommand):
    async def execute(self, observer: "Observer", data: Any) -> None:
        if not isinstance(data, dict):
            return
        self.state.config_store.replace(data)


class RequestTunnelUrlCommand(BaseDashboardCommand):
    async def execute(self, observer: "Observer", data: Any) -> None:
        if self.state.tunnel.url:
            observer.send(ObserverEvent.TUNNEL_URL, self.state.tunnel.url)


class TranscribeAudioCommand(BaseDashboardCommand):
    async def execute(self, observer: "Observer", data: Any) -> None:
        if not self.field(data, "audioData"):
            return
        await asyncio.sleep(TRANSCRIPTION_DELAY)
        observer.send(
            ObserverEvent.TRANSCRIPTION,
            {"success": True, "text": random.choice(MOCK_TRANSCRIPTIONS)},
        )
