"""Shared test fixtures for jobrelay."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any
from unittest.mock import MagicMock

import httpx
import pytest

from jobrelay.audit.logger import AuditLogger
from jobrelay.config import RelaySettings

FIXED_NOW = datetime(2026, 1, 2, 3, 4, 5, 678000, tzinfo=UTC)
FIXED_NOW_ISO = "2026-01-02T03:04:05.678Z"

SERVER_WEBHOOK = "https://chat.example.com/api/webhooks/1/server-token"


def fixed_clock() -> datetime:
    return FIXED_NOW


def make_settings(**kwargs: Any) -> RelaySettings:
    """Factory for RelaySettings with sensible defaults."""
    defaults: dict[str, Any] = {
        "secret_api_key": None,
        "webhook_url": SERVER_WEBHOOK,
        "allow_client_webhook": False,
    }
    defaults.update(kwargs)
    return RelaySettings(**defaults)


class WebhookRecorder:
    """Fake chat webhook: records requests and answers with a canned response."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.status_code = 204
        self.text = ""
        self.handler: Callable[[httpx.Request], Any] | None = None

    async def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.handler is not None:
            return await self.handler(request)
        return httpx.Response(self.status_code, text=self.text)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self._handle)

    @property
    def last_url(self) -> str:
        return str(self.requests[-1].url)


@pytest.fixture
def webhook() -> WebhookRecorder:
    return WebhookRecorder()


@pytest.fixture
def mock_audit_logger() -> MagicMock:
    return MagicMock(spec=AuditLogger)
