"""
Webhook routes for provider gateway events.

The gateway POSTs lifecycle and message events here; we verify, dispatch and
return 200.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from relaydesk.commands.webhooks import ProviderWebhookCommand
from relaydesk.core.app_state import AppState
from relaydesk.routers.utils.dependencies import get_app_state

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post("/provider")
async def provider_webhook(
    request: Request,
    state: AppState = Depends(get_app_state),
) -> dict[str, str]:
    """Receive a provider gateway event ({"event": kind, "data": {...}})."""
    return await ProviderWebhookCommand(state).execute(request)
