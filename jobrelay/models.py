"""Shared Pydantic data models for jobrelay."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# --- Enums ---


class AuditEventType(str, Enum):
    AUTH_SUCCESS = "auth_success"
    AUTH_FAILURE = "auth_failure"
    WEBHOOK_REJECTED = "webhook_rejected"
    WEBHOOK_FORWARD = "webhook_forward"
    DEBUG_REQUEST = "debug_request"


class RiskLevel(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"


# --- Outbound Message Models ---


class EmbedField(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    value: str


class Embed(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    fields: list[EmbedField]
    timestamp: str  # ISO8601


class OutboundMessage(BaseModel):
    """Chat-webhook message body: a text summary plus one embed."""

    model_config = ConfigDict(frozen=True)

    content: str
    embeds: list[Embed] = Field(min_length=1)


# --- Audit Models ---


def iso_timestamp(moment: datetime) -> str:
    """Format as UTC ISO-8601 with millisecond precision and a ``Z`` suffix."""
    return moment.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _now_iso() -> str:
    return iso_timestamp(datetime.now(UTC))


class AuditEvent(BaseModel):
    timestamp: str = Field(default_factory=_now_iso)
    event_type: AuditEventType
    source_ip: str | None = None
    action: str
    result: str  # "success" | "failure" | "rejected"
    risk_level: RiskLevel
    details: dict[str, object] | None = None
