"""Tests for the audit logger."""

from __future__ import annotations

import json
from pathlib import Path

from jobrelay.audit.logger import AuditLogger
from jobrelay.config import RelaySettings
from jobrelay.models import AuditEvent, AuditEventType, RiskLevel


def _make_event(**kwargs: object) -> AuditEvent:
    defaults: dict[str, object] = {
        "event_type": AuditEventType.WEBHOOK_FORWARD,
        "action": "forward",
        "result": "success",
        "risk_level": RiskLevel.INFO,
    }
    defaults.update(kwargs)
    return AuditEvent(**defaults)  # type: ignore[arg-type]


def test_log_appends_json_line(tmp_path: Path) -> None:
    log_file = tmp_path / "audit.jsonl"
    logger = AuditLogger(log_path=str(log_file))
    logger.log(_make_event(details={"job_id": "J1"}))

    lines = log_file.read_text().strip().split("\n")
    assert len(lines) == 1
    parsed = json.loads(lines[0])
    assert parsed["event_type"] == "webhook_forward"
    assert parsed["risk_level"] == "info"
    assert parsed["details"] == {"job_id": "J1"}
    assert parsed["timestamp"].endswith("Z")
    assert "source_ip" not in parsed


def test_log_creates_parent_directory(tmp_path: Path) -> None:
    log_file = tmp_path / "subdir" / "audit.jsonl"
    AuditLogger(log_path=str(log_file)).log(_make_event())
    assert log_file.exists()


def test_rotation_keeps_backup_count(tmp_path: Path) -> None:
    log_file = tmp_path / "audit.jsonl"
    logger = AuditLogger(log_path=str(log_file), max_bytes=1, backup_count=2)

    for i in range(4):
        logger.log(_make_event(action=f"action_{i}"))

    assert json.loads(log_file.read_text())["action"] == "action_3"
    assert json.loads((tmp_path / "audit.jsonl.1").read_text())["action"] == "action_2"
    assert json.loads((tmp_path / "audit.jsonl.2").read_text())["action"] == "action_1"
    assert not (tmp_path / "audit.jsonl.3").exists()


def test_from_settings_disabled_without_path() -> None:
    assert AuditLogger.from_settings(RelaySettings()) is None


def test_from_settings_uses_path(tmp_path: Path) -> None:
    path = str(tmp_path / "audit.jsonl")
    logger = AuditLogger.from_settings(RelaySettings(audit_log_path=path))
    assert logger is not None
    assert str(logger.log_path) == path
