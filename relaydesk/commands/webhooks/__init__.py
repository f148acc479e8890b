"""Webhook command handlers."""

from relaydesk.commands.webhooks.provider_command import ProviderWebhookCommand

__all__ = ["ProviderWebhookCommand"]
