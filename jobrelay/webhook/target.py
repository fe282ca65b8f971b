"""Webhook target resolution.

The server-configured URL always wins. A client-supplied URL is only
considered when client webhooks are enabled, and only after it passes
protocol and length validation.
"""

from __future__ import annotations

import httpx

from jobrelay.config import RelaySettings
from jobrelay.webhook.models import JobPayload

MAX_WEBHOOK_URL_LENGTH = 2000
ALLOWED_SCHEMES = frozenset({"http", "https"})

# httpx percent-encodes these inside a host instead of rejecting them.
_FORBIDDEN_HOST_CHARS = frozenset(' %"`{}|\\<>^')

INVALID_URL = "Invalid webhook URL"
INVALID_PROTOCOL = "Invalid webhook protocol"
URL_TOO_LONG = "Webhook URL too long"
NO_TARGET = "No webhook configured on server and client webhooks not allowed"


class WebhookTargetError(Exception):
    """Raised when no acceptable forwarding target can be resolved."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


def validate_client_webhook(url: str) -> str:
    """Return ``url`` if it is an acceptable client-supplied target."""
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL as exc:
        raise WebhookTargetError(INVALID_URL) from exc

    if not parsed.scheme:
        raise WebhookTargetError(INVALID_URL)
    if parsed.scheme not in ALLOWED_SCHEMES:
        raise WebhookTargetError(INVALID_PROTOCOL)
    if not parsed.host or _FORBIDDEN_HOST_CHARS.intersection(parsed.host):
        raise WebhookTargetError(INVALID_URL)
    if len(url) > MAX_WEBHOOK_URL_LENGTH:
        raise WebhookTargetError(URL_TOO_LONG)
    return url


def resolve_target(settings: RelaySettings, payload: JobPayload) -> str:
    """Pick the forwarding target for one request, first match wins."""
    if settings.webhook_url:
        return settings.webhook_url
    if settings.allow_client_webhook and payload.webhook:
        return validate_client_webhook(payload.webhook)
    raise WebhookTargetError(NO_TARGET)


def describe_target(url: str) -> str:
    """Scheme and host only, safe for logs (webhook paths carry tokens)."""
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL:
        return "<invalid>"
    return f"{parsed.scheme}://{parsed.host}"
