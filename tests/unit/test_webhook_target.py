"""Tests for webhook target resolution and client URL validation."""

from __future__ import annotations

import pytest

from jobrelay.webhook.models import JobPayload
from jobrelay.webhook.target import (
    INVALID_PROTOCOL,
    INVALID_URL,
    NO_TARGET,
    URL_TOO_LONG,
    WebhookTargetError,
    describe_target,
    resolve_target,
    validate_client_webhook,
)
from tests.conftest import SERVER_WEBHOOK, make_settings

CLIENT_WEBHOOK = "https://client.example.org/hooks/abc"


class TestResolveTarget:
    def test_server_url_wins_over_client_url(self) -> None:
        settings = make_settings(allow_client_webhook=True)
        payload = JobPayload(webhook="http://evil.example")
        assert resolve_target(settings, payload) == SERVER_WEBHOOK

    def test_server_url_used_even_if_client_url_invalid(self) -> None:
        settings = make_settings(allow_client_webhook=True)
        payload = JobPayload(webhook="ftp://x")
        assert resolve_target(settings, payload) == SERVER_WEBHOOK

    def test_client_url_used_when_allowed(self) -> None:
        settings = make_settings(webhook_url=None, allow_client_webhook=True)
        payload = JobPayload(webhook=CLIENT_WEBHOOK)
        assert resolve_target(settings, payload) == CLIENT_WEBHOOK

    def test_client_url_ignored_when_not_allowed(self) -> None:
        settings = make_settings(webhook_url=None, allow_client_webhook=False)
        payload = JobPayload(webhook=CLIENT_WEBHOOK)
        with pytest.raises(WebhookTargetError) as exc_info:
            resolve_target(settings, payload)
        assert exc_info.value.message == NO_TARGET

    def test_allowed_but_absent_client_url(self) -> None:
        settings = make_settings(webhook_url=None, allow_client_webhook=True)
        with pytest.raises(WebhookTargetError) as exc_info:
            resolve_target(settings, JobPayload())
        assert exc_info.value.message == NO_TARGET


class TestValidateClientWebhook:
    @pytest.mark.parametrize("url", ["ftp://x", "mailto:someone@example.com", "file:///etc/passwd"])
    def test_rejects_non_http_protocols(self, url: str) -> None:
        with pytest.raises(WebhookTargetError) as exc_info:
            validate_client_webhook(url)
        assert exc_info.value.message == INVALID_PROTOCOL

    @pytest.mark.parametrize("url", [
        "not a url",
        "http://",
        "/relative/path",
        "http://exa mple.com/hook",
        "http://exa\tmple.com/x",
        "https://exa<mple>.com/",
    ])
    def test_rejects_unparseable_urls(self, url: str) -> None:
        with pytest.raises(WebhookTargetError) as exc_info:
            validate_client_webhook(url)
        assert exc_info.value.message == INVALID_URL

    def test_rejects_overlong_urls(self) -> None:
        url = "https://example.com/" + "a" * 2000
        with pytest.raises(WebhookTargetError) as exc_info:
            validate_client_webhook(url)
        assert exc_info.value.message == URL_TOO_LONG

    def test_accepts_url_at_length_limit(self) -> None:
        base = "https://example.com/"
        url = base + "a" * (2000 - len(base))
        assert validate_client_webhook(url) == url

    def test_scheme_is_case_insensitive(self) -> None:
        assert validate_client_webhook("HTTPS://example.com/x") == "HTTPS://example.com/x"


def test_describe_target_hides_path() -> None:
    assert describe_target(SERVER_WEBHOOK) == "https://chat.example.com"
