"""
WhatsApp web-automation gateway client.

The gateway runs the browser session and exposes it over HTTP; lifecycle and
message events are POSTed back to /webhooks/provider. Uses httpx for the REST
calls.
"""

from __future__ import annotations

from typing import Any, Optional
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from relaydesk.adapters.base import BaseProviderClient, ProviderEvent, ProviderEventKind
from relaydesk.exceptions import ProviderError
from relaydesk.infra.logging_config import get_logger
from relaydesk.schemas.relay import (
    MediaPayload,
    ProviderChat,
    ProviderMessageEvent,
    SentConfirmation,
)

logger = get_logger("gateway")


class GatewayProviderClient(BaseProviderClient):
    """Provider client for an HTTP gateway that owns one named session."""

    WEBHOOK_SECRET_HEADER = "X-Relay-Webhook-Secret"

    def __init__(
        self,
        base_url: str,
        session_id: str,
        api_token: Optional[str] = None,
        webhook_secret: Optional[str] = None,
        timeout: float = 30.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._session_id = session_id
        self._api_token = api_token
        self._webhook_secret = webhook_secret
        self._timeout = timeout
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            headers = {"Accept": "application/json"}
            if self._api_token:
                headers["Authorization"] = f"Bearer {self._api_token}"
            self._client = httpx.AsyncClient(
                base_url=f"{self._base_url}/sessions/{quote(self._session_id, safe='')}",
                headers=headers,
                timeout=self._timeout,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = await self._get_client().request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ProviderError(
                f"Gateway {method} {path} failed with {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise ProviderError(f"Gateway {method} {path} failed: {e}") from e
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ProviderError(f"Gateway {method} {path} returned invalid JSON") from e

    @staticmethod
    def _chat_path(chat_id: str) -> str:
        return f"/chats/{quote(chat_id, safe='')}"

    async def initialize(self) -> None:
        await self._request("POST", "/start")
        logger.info("Gateway session %s starting", self._session_id)

    async def destroy(self) -> None:
        try:
            await self._request("POST", "/stop")
        except ProviderError as e:
            logger.warning("Gateway session stop failed: %s", e)

    def verify_webhook(
        self, secret: Optional[str], request_headers: Optional[dict[str, str]] = None
    ) -> bool:
        """Validate X-Relay-Webhook-Secret if a webhook secret is configured."""
        expected = secret or self._webhook_secret
        if not expected:
            return True
        request_headers = request_headers or {}
        header_lower = self.WEBHOOK_SECRET_HEADER.lower()
        actual = None
        for key, value in request_headers.items():
            if key.lower() == header_lower:
                actual = value
                break
        return actual == expected

    def parse_event(self, raw_payload: dict[str, Any]) -> ProviderEvent:
        """Parse a gateway webhook payload: {"event": <kind>, "data": {...}}."""
        try:
            kind = ProviderEventKind(raw_payload.get("event"))
        except ValueError as e:
            raise ValueError(f"Unknown gateway event: {raw_payload.get('event')!r}") from e
        data = raw_payload.get("data") or {}
        if not isinstance(data, dict):
            raise ValueError("Gateway event data must be an object")

        event = ProviderEvent(kind=kind, raw=raw_payload)
        try:
            if kind == ProviderEventKind.QR:
                event.qr = str(data.get("qr") or "")
                if not event.qr:
                    raise ValueError("QR event has no qr payload")
            elif kind == ProviderEventKind.READY and data.get("chats") is not None:
                if not isinstance(data["chats"], list):
                    raise ValueError("Ready event chats must be a list")
                event.chats = [ProviderChat.model_validate(c) for c in data["chats"]]
            elif kind == ProviderEventKind.MESSAGE:
                event.message = ProviderMessageEvent.model_validate(data)
            elif kind in (ProviderEventKind.DISCONNECTED, ProviderEventKind.AUTH_FAILURE):
                event.reason = data.get("reason")
        except ValidationError as e:
            raise ValueError(f"Invalid {kind.value} event: {e}") from e
        return event

    async def send_text(self, chat_id: str, text: str) -> SentConfirmation:
        data = await self._request("POST", "/messages", json={"chatId": chat_id, "text": text})
        return self._confirmation(data)

    async def send_media(
        self, chat_id: str, media: MediaPayload, caption: Optional[str] = None
    ) -> SentConfirmation:
        body: dict[str, Any] = {"chatId": chat_id, "media": media.model_dump()}
        if caption:
            body["caption"] = caption
        data = await self._request("POST", "/messages", json=body)
        return self._confirmation(data)

    async def get_chat(self, chat_id: str) -> ProviderChat:
        data = await self._request("GET", self._chat_path(chat_id))
        return self._validate(ProviderChat, data)

    async def list_chats(self) -> list[ProviderChat]:
        data = await self._request("GET", "/chats")
        return [self._validate(ProviderChat, item) for item in data or []]

    async def fetch_messages(
        self, chat_id: str, limit: int
    ) -> list[ProviderMessageEvent]:
        data = await self._request(
            "GET", f"{self._chat_path(chat_id)}/messages", params={"limit": limit}
        )
        messages = []
        for item in data or []:
            if isinstance(item, dict):
                item.setdefault("chatId", chat_id)
            messages.append(self._validate(ProviderMessageEvent, item))
        return messages

    async def download_media(self, chat_id: str, message_id: str) -> MediaPayload:
        data = await self._request(
            "GET",
            f"{self._chat_path(chat_id)}/messages/{quote(message_id, safe='')}/media",
        )
        return self._validate(MediaPayload, data)

    async def mark_seen(self, chat_id: str) -> None:
        await self._request("POST", f"{self._chat_path(chat_id)}/seen")

    @staticmethod
    def _validate(model: Any, data: Any) -> Any:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise ProviderError(f"Unexpected gateway payload for {model.__name__}") from e

    def _confirmation(self, data: Any) -> SentConfirmation:
        if not isinstance(data, dict) or not data.get("id"):
            raise ProviderError("Gateway did not confirm the sent message")
        return SentConfirmation(
            message_id=str(data["id"]), timestamp=int(data.get("timestamp") or 0)
        )
