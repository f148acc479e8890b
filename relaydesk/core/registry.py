from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional

from pydantic import ValidationError

from relaydesk.core.fanout import EventPublisher
from relaydesk.infra.logging_config import get_logger
from relaydesk.schemas.events import ObserverEvent
from relaydesk.schemas.relay import ConversationSummary

logger = get_logger("registry")

DEFAULT_CHAT_LIST_LIMIT = 30

# Fields whose change is pushed to observers as a chat delta.
DELTA_FIELDS = ("last_message", "unread", "timestamp")
PATCHABLE_FIELDS = ("name",) + DELTA_FIELDS


class ConversationRegistry:
    """
    In-memory chat list: conversation id -> summary, in first-seen order.

    Mutations never await, so on a single event loop a reader never observes a
    half-applied change.
    """

    def __init__(
        self,
        publisher: Optional[EventPublisher] = None,
        limit: int = DEFAULT_CHAT_LIST_LIMIT,
    ) -> None:
        self._chats: dict[str, ConversationSummary] = {}
        self._publisher = publisher
        self._limit = limit

    def __len__(self) -> int:
        return len(self._chats)

    def __contains__(self, chat_id: object) -> bool:
        return chat_id in self._chats

    def get(self, chat_id: str) -> ConversationSummary | None:
        return self._chats.get(chat_id)

    def snapshot(self) -> list[tuple[str, ConversationSummary]]:
        return list(self._chats.items())

    def snapshot_wire(self) -> list[list[Any]]:
        return [[chat_id, summary.to_wire()] for chat_id, summary in self._chats.items()]

    def upsert(self, chat_id: str, patch: Mapping[str, Any]) -> ConversationSummary:
        """Merge `patch` into the entry for `chat_id`, creating it if absent."""
        current = self._chats.get(chat_id) or ConversationSummary(
            id=chat_id, name=chat_id.split("@")[0]
        )
        updates = self._validated_updates(chat_id, current, patch)
        updated = current.model_copy(update=updates)
        self._chats[chat_id] = updated

        changed = [
            field for field in DELTA_FIELDS if getattr(updated, field) != getattr(current, field)
        ]
        if changed and self._publisher is not None:
            delta: dict[str, Any] = {"chatId": chat_id}
            wire = updated.to_wire()
            for field in changed:
                alias = ConversationSummary.model_fields[field].alias or field
                delta[alias] = wire[alias]
            self._publisher.publish(ObserverEvent.CHAT_DELTA, delta)
        return updated

    def _validated_updates(
        self, chat_id: str, current: ConversationSummary, patch: Mapping[str, Any]
    ) -> dict[str, Any]:
        """Patched fields that validate against the summary model; the rest are dropped."""
        base = current.model_dump()
        updates: dict[str, Any] = {}
        for field in PATCHABLE_FIELDS:
            value = patch.get(field)
            if value is None:
                continue
            if field == "unread" and isinstance(value, (int, float)) and value < 0:
                value = 0
            try:
                validated = ConversationSummary.model_validate({**base, field: value})
            except ValidationError:
                logger.warning(
                    "Dropping invalid chat field",
                    extra={"context": {"chat_id": chat_id, "field": field, "value": repr(value)}},
                )
                continue
            updates[field] = getattr(validated, field)
        return updates

    def mark_read(self, chat_id: str) -> ConversationSummary:
        return self.upsert(chat_id, {"unread": 0})

    def record_message(
        self, chat_id: str, preview: str, timestamp: int, from_me: bool, name: str | None = None
    ) -> tuple[int, int]:
        """
        Apply a recorded message to the summary: +1 unread when inbound, reset
        when outbound. Returns (previous_unread, new_unread).
        """
        current = self._chats.get(chat_id)
        previous = current.unread if current else 0
        unread = 0 if from_me else previous + 1
        patch: dict[str, Any] = {
            "last_message": preview,
            "unread": unread,
            "timestamp": timestamp,
        }
        if current is None and name:
            patch["name"] = name
        self.upsert(chat_id, patch)
        return previous, unread

    def clear_and_reload(self, summaries: Iterable[ConversationSummary]) -> None:
        """Replace the whole chat list (first `limit` entries) and publish it once."""
        reloaded: dict[str, ConversationSummary] = {}
        for summary in summaries:
            if len(reloaded) >= self._limit:
                break
            reloaded[summary.id] = summary
        self._chats = reloaded
        if self._publisher is not None:
            self._publisher.publish(ObserverEvent.CHAT_LIST_FULL, self.snapshot_wire())
