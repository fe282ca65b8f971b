"""Job forwarding pipeline.

Pipeline stages:
1. Resolve the forwarding target (server URL, then validated client URL)
2. Build the chat-webhook message with a freshly captured timestamp
3. Forward once via httpx under a fixed deadline
4. Classify the downstream outcome into a response envelope
5. Audit log
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import httpx

from jobrelay.models import AuditEvent, AuditEventType, RiskLevel
from jobrelay.webhook.message import build_job_message
from jobrelay.webhook.models import JobPayload, RelayResult
from jobrelay.webhook.target import WebhookTargetError, describe_target, resolve_target

if TYPE_CHECKING:
    from jobrelay.audit.logger import AuditLogger
    from jobrelay.config import RelaySettings

logger = logging.getLogger(__name__)

FORWARD_TIMEOUT_SECONDS = 5.0

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC)


class JobRelayPipeline:
    """Forwards one job notification per call; never retries."""

    def __init__(
        self,
        settings: RelaySettings,
        audit_logger: AuditLogger | None = None,
        clock: Clock = utc_now,
        timeout: float = FORWARD_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._audit = audit_logger
        self._clock = clock
        self._timeout = timeout
        self._transport = transport

    async def relay(self, payload: JobPayload, source_ip: str | None = None) -> RelayResult:
        """Run the forwarding pipeline for an authenticated payload."""

        # Stage 1: Target resolution
        try:
            target = resolve_target(self._settings, payload)
        except WebhookTargetError as exc:
            logger.info("Rejected job %r: %s", payload.job_id, exc.message)
            self._log(
                AuditEventType.WEBHOOK_REJECTED, "resolve_target", "rejected",
                RiskLevel.LOW, source_ip, {"reason": exc.message},
            )
            return RelayResult.failure(400, exc.message)

        # Stage 2: Message construction
        message = build_job_message(payload, self._clock())

        # Stage 3 + 4: Forward and classify
        result = await self._forward(target, message.model_dump())

        # Stage 5: Audit log
        details: dict[str, object] = {
            "job_id": payload.job_id,
            "target": describe_target(target),
            "status_code": result.status_code,
        }
        if "status" in result.context:
            details["webhook_status"] = result.context["status"]
        self._log(
            AuditEventType.WEBHOOK_FORWARD, "forward",
            "success" if result.success else "failure",
            RiskLevel.INFO if result.success else RiskLevel.MEDIUM,
            source_ip, details,
        )
        return result

    async def _forward(self, target: str, body: dict[str, object]) -> RelayResult:
        """POST the message to the target and translate the outcome."""
        host = describe_target(target)
        try:
            async with httpx.AsyncClient(
                transport=self._transport, follow_redirects=True,
            ) as client:
                resp = await asyncio.wait_for(
                    client.post(target, json=body, timeout=self._timeout),
                    timeout=self._timeout,
                )
        except (TimeoutError, httpx.TimeoutException):
            logger.warning("Webhook %s timed out after %.1fs", host, self._timeout)
            return RelayResult.failure(504, "Request to webhook timed out")
        except (httpx.HTTPError, httpx.InvalidURL, OSError) as exc:
            logger.warning("Forwarding to %s failed: %r", host, exc)
            return RelayResult.failure(
                502, "Failed to forward to webhook",
                details=str(exc) or type(exc).__name__,
            )

        if resp.is_success:
            logger.info("Forwarded job to %s (status %d)", host, resp.status_code)
            return RelayResult(
                status_code=200,
                success=True,
                context={"forwarded": True, "webhook_status": resp.status_code},
            )

        error = (
            "Webhook responded with client error"
            if resp.is_client_error
            else "Webhook responded with server error"
        )
        logger.warning("Webhook %s responded with status %d", host, resp.status_code)
        return RelayResult.failure(
            502, error, status=resp.status_code, webhook_body=resp.text,
        )

    def _log(
        self,
        event_type: AuditEventType,
        action: str,
        result: str,
        risk_level: RiskLevel,
        source_ip: str | None,
        details: dict[str, object],
    ) -> None:
        if self._audit:
            self._audit.log(AuditEvent(
                event_type=event_type,
                source_ip=source_ip,
                action=action,
                result=result,
                risk_level=risk_level,
                details=details,
            ))
