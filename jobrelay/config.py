"""Relay configuration, read once from the environment at process start."""

from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict

DEFAULT_AUDIT_MAX_BYTES = 10_485_760
DEFAULT_AUDIT_BACKUP_COUNT = 5


def _flag(value: str | None) -> bool:
    return (value or "").strip().lower() == "true"


def _optional(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


class RelaySettings(BaseModel):
    """Immutable deployment settings passed explicitly into the app factory.

    Recognized environment keys:

    - ``SECRET_API_KEY``: required ``X-API-KEY`` value; unset disables auth.
    - ``WEBHOOK_URL``: fixed forwarding target, overrides client webhooks.
    - ``ALLOW_CLIENT_WEBHOOK``: ``"true"`` (any case) enables client targets.
    - ``AUDIT_LOG_PATH``, ``AUDIT_LOG_MAX_BYTES``, ``AUDIT_LOG_BACKUP_COUNT``:
      optional JSON Lines audit trail.
    - ``LOG_LEVEL``: logging level used by ``jobrelay serve``.
    """

    model_config = ConfigDict(frozen=True)

    secret_api_key: str | None = None
    webhook_url: str | None = None
    allow_client_webhook: bool = False
    audit_log_path: str | None = None
    audit_log_max_bytes: int = DEFAULT_AUDIT_MAX_BYTES
    audit_log_backup_count: int = DEFAULT_AUDIT_BACKUP_COUNT
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> RelaySettings:
        env = os.environ if environ is None else environ
        return cls(
            secret_api_key=_optional(env.get("SECRET_API_KEY")),
            webhook_url=_optional(env.get("WEBHOOK_URL")),
            allow_client_webhook=_flag(env.get("ALLOW_CLIENT_WEBHOOK")),
            audit_log_path=_optional(env.get("AUDIT_LOG_PATH")),
            audit_log_max_bytes=int(
                env.get("AUDIT_LOG_MAX_BYTES") or DEFAULT_AUDIT_MAX_BYTES,
            ),
            audit_log_backup_count=int(
                env.get("AUDIT_LOG_BACKUP_COUNT") or DEFAULT_AUDIT_BACKUP_COUNT,
            ),
            log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
        )

    @property
    def auth_enabled(self) -> bool:
        return self.secret_api_key is not None

    def redacted(self) -> dict[str, object]:
        """Settings as a dict with the secret masked, for display."""
        data = self.model_dump()
        if data["secret_api_key"]:
            data["secret_api_key"] = "***"
        return data
