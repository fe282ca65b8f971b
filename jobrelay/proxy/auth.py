"""Shared-secret authentication via the ``X-API-KEY`` header."""

from __future__ import annotations

import hmac
from collections.abc import Mapping

from starlette.requests import Request

from jobrelay.audit.logger import AuditLogger
from jobrelay.models import AuditEvent, AuditEventType, RiskLevel

API_KEY_HEADER = "x-api-key"


class ApiKeyVerifier:
    """Validates ``X-API-KEY`` using constant-time comparison.

    With no secret configured every request is accepted.
    """

    def __init__(
        self,
        secret: str | None,
        audit_logger: AuditLogger | None = None,
    ) -> None:
        self._secret = secret.encode("utf-8") if secret else None
        self.audit_logger = audit_logger

    @property
    def enabled(self) -> bool:
        return self._secret is not None

    def matches(self, headers: Mapping[str, str]) -> bool:
        """True when the key matches, or when no secret is configured.

        ``headers`` must be case-insensitive (Starlette ``Headers``) or use
        lower-case names.
        """
        if self._secret is None:
            return True
        provided = headers.get(API_KEY_HEADER, "")
        if not provided:
            return False
        # Header values arrive latin-1 decoded; recover the raw bytes.
        try:
            raw = provided.encode("latin-1")
        except UnicodeEncodeError:
            return False
        return hmac.compare_digest(raw, self._secret)

    def authenticate(self, request: Request) -> bool:
        """Check the request and audit the outcome when auth is enabled."""
        ok = self.matches(request.headers)
        if self.enabled and self.audit_logger:
            self.audit_logger.log(AuditEvent(
                event_type=AuditEventType.AUTH_SUCCESS if ok else AuditEventType.AUTH_FAILURE,
                source_ip=request.client.host if request.client else None,
                action=f"{request.method} {request.url.path}",
                result="success" if ok else "failure",
                risk_level=RiskLevel.INFO if ok else RiskLevel.HIGH,
                details=None if ok else {
                    "reason": "missing_key" if API_KEY_HEADER not in request.headers
                    else "invalid_key",
                },
            ))
        return ok
