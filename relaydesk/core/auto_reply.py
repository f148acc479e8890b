"""
Auto-reply decisions.

Pure logic: given a message, the current bot config and whether the message
opened a new unread streak, return the replies to send and when.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from relaydesk.schemas.bot_config import AutoReplyRule, BotConfig
from relaydesk.schemas.relay import CanonicalMessage, Direction

# Short pauses so replies read like someone typing.
KEYWORD_REPLY_DELAY = 1.5
GREETING_DELAY = 1.0


class IntentKind(str, Enum):
    KEYWORD = "keyword"
    GREETING = "greeting"


@dataclass(frozen=True)
class ReplyIntent:
    chat_id: str
    kind: IntentKind
    delay: float
    text: str


def match_rule(body: str, rules: list[AutoReplyRule]) -> Optional[AutoReplyRule]:
    """First rule whose trigger is a case-insensitive substring of `body`."""
    lowered = body.lower()
    for rule in rules:
        trigger = rule.trigger.strip().lower()
        if trigger and trigger in lowered:
            return rule
    return None


def decide_replies(
    message: CanonicalMessage,
    config: BotConfig,
    first_unread: bool,
) -> list[ReplyIntent]:
    if not config.is_active or message.direction != Direction.INBOUND:
        return []

    intents: list[ReplyIntent] = []
    # Media bodies are file references, never keyword candidates.
    body = "" if message.is_media else message.message
    rule = match_rule(body, config.auto_replies)
    if rule is not None:
        intents.append(
            ReplyIntent(
                chat_id=message.chat_id,
                kind=IntentKind.KEYWORD,
                delay=KEYWORD_REPLY_DELAY,
                text=rule.content,
            )
        )
    if first_unread and config.greeting:
        intents.append(
            ReplyIntent(
                chat_id=message.chat_id,
                kind=IntentKind.GREETING,
                delay=GREETING_DELAY,
                text=config.greeting,
            )
        )
    return intents
