"""Audit logger: append-only JSON Lines records of relay decisions."""

from __future__ import annotations

import fcntl
from pathlib import Path
from typing import TYPE_CHECKING

from jobrelay.config import DEFAULT_AUDIT_BACKUP_COUNT, DEFAULT_AUDIT_MAX_BYTES
from jobrelay.models import AuditEvent

if TYPE_CHECKING:
    from jobrelay.config import RelaySettings


class AuditLogger:
    """Append-only audit logger with size-based rotation."""

    def __init__(
        self,
        log_path: str,
        max_bytes: int = DEFAULT_AUDIT_MAX_BYTES,
        backup_count: int = DEFAULT_AUDIT_BACKUP_COUNT,
    ) -> None:
        self.log_path = Path(log_path)
        self._max_bytes = max_bytes
        self._backup_count = backup_count

    @classmethod
    def from_settings(cls, settings: RelaySettings) -> AuditLogger | None:
        """Build a logger from relay settings, or None when auditing is off."""
        if not settings.audit_log_path:
            return None
        return cls(
            log_path=settings.audit_log_path,
            max_bytes=settings.audit_log_max_bytes,
            backup_count=settings.audit_log_backup_count,
        )

    def _backup(self, index: int) -> Path:
        return self.log_path.parent / f"{self.log_path.name}.{index}"

    def _maybe_rotate(self) -> None:
        if not self.log_path.exists():
            return
        if self.log_path.stat().st_size < self._max_bytes:
            return
        if self._backup_count < 1:
            self.log_path.unlink()
            return

        self._backup(self._backup_count).unlink(missing_ok=True)
        for i in range(self._backup_count - 1, 0, -1):
            if self._backup(i).exists():
                self._backup(i).rename(self._backup(i + 1))
        self.log_path.rename(self._backup(1))

    def log(self, event: AuditEvent) -> None:
        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        line = event.model_dump_json(exclude_none=True)

        # Rotation and append happen under one lock so concurrent workers
        # never write into a file that is being renamed.
        lock_file = self.log_path.parent / f".{self.log_path.name}.lock"
        with open(lock_file, "w") as lf:
            fcntl.flock(lf, fcntl.LOCK_EX)
            try:
                self._maybe_rotate()
                with open(self.log_path, "a", encoding="utf-8") as f:
                    f.write(line + "\n")
            finally:
                fcntl.flock(lf, fcntl.LOCK_UN)
