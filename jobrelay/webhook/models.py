"""Data models for the job forwarding pipeline."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any


def coerce_text(value: Any) -> str:
    """Render a JSON value as display text; missing values become ``""``."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(value, separators=(",", ":"))


@dataclass(frozen=True)
class JobPayload:
    """Normalized inbound job notification."""

    job_id: str = ""
    player_name: str = ""
    place_id: str = ""
    webhook: str = ""

    @classmethod
    def from_json(cls, data: Any) -> JobPayload:
        """Extract recognized fields; anything that is not an object is empty."""
        if not isinstance(data, dict):
            return cls()
        return cls(
            job_id=coerce_text(data.get("job_id")),
            player_name=coerce_text(data.get("player_name")),
            place_id=coerce_text(data.get("place_id")),
            webhook=coerce_text(data.get("webhook")).strip(),
        )


@dataclass
class RelayResult:
    """Response envelope returned to the caller."""

    status_code: int
    success: bool
    context: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def failure(cls, status_code: int, error: str, **context: Any) -> RelayResult:
        return cls(status_code=status_code, success=False, context={"error": error, **context})

    def body(self) -> dict[str, Any]:
        return {"success": self.success, **self.context}
