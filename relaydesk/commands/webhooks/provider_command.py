"""
Command to handle provider gateway webhook events.

Validates the shared secret, parses the event and routes it through the
runtime to the session service or the ingest pipeline.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import HTTPException, Request

from relaydesk.infra.logging_config import get_logger

if TYPE_CHECKING:
    from relaydesk.core.app_state import AppState


class ProviderWebhookCommand:
    def __init__(self, state: "AppState") -> None:
        self.state = state
        self.logger = get_logger("provider_webhook")

    async def execute(self, request: Request) -> dict[str, str]:
        """
        Execute the provider webhook.

        Raises:
            HTTPException: 503 if no provider is configured, 403 on invalid secret,
                400 on an invalid event body.
        """
        provider = self.state.provider
        if provider is None:
            raise HTTPException(
                status_code=503,
                detail="Provider integration is not configured or disabled",
            )
        headers = dict(request.headers) if request.headers else {}
        if not provider.verify_webhook(self.state.settings.provider_webhook_secret, headers):
            raise HTTPException(status_code=403, detail="Invalid webhook secret")
        try:
            body = await request.json()
        except ValueError as e:
            self.logger.warning("Provider webhook invalid JSON: %s", e)
            raise HTTPException(status_code=400, detail="Invalid JSON body") from e
        if not isinstance(body, dict):
            raise HTTPException(status_code=400, detail="Body must be a JSON object")
        try:
            event = provider.parse_event(body)
        except ValueError as e:
            self.logger.warning("Provider webhook parse error: %s", e)
            raise HTTPException(status_code=400, detail="Invalid provider event") from e

        self.logger.debug(
            "Provider event received", extra={"context": {"kind": event.kind.value}}
        )
        await self.state.runtime.dispatch(event)
        return {"status": "ok"}
