"""Pydantic schemas for the auto-responder settings edited from the dashboard."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_GREETING = "Olá! Bem-vindo ao atendimento de guincho. Como posso ajudar?"
DEFAULT_FAREWELL = "Obrigado por entrar em contato. Tenha um bom dia!"


class BotStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"


class AutoReplyRule(BaseModel):
    """Keyword trigger and the reply sent when an inbound body contains it."""

    trigger: str
    content: str


def _default_rules() -> list[AutoReplyRule]:
    return [
        AutoReplyRule(
            trigger="preço",
            content=(
                "O valor do serviço de guincho varia conforme a distância. "
                "Para um orçamento preciso, por favor informe seu endereço."
            ),
        ),
        AutoReplyRule(
            trigger="horário",
            content="Atendemos 24 horas por dia, 7 dias por semana, incluindo feriados.",
        ),
        AutoReplyRule(
            trigger="emergência",
            content=(
                "Para situações de emergência, por favor informe sua localização "
                "exata e o modelo do veículo para priorizarmos seu atendimento."
            ),
        ),
    ]


class BotConfig(BaseModel):
    """Auto-responder settings. Replaced wholesale on every update."""

    model_config = ConfigDict(populate_by_name=True)

    status: BotStatus = BotStatus.ACTIVE
    greeting: str = DEFAULT_GREETING
    farewell: str = DEFAULT_FAREWELL
    auto_replies: list[AutoReplyRule] = Field(
        default_factory=_default_rules, alias="autoReplies"
    )

    @property
    def is_active(self) -> bool:
        return self.status == BotStatus.ACTIVE

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
