"""Tests for the AuditLogger and related utilities."""

from __future__ import annotations

import json

from scalpcare.core.audit.logger import AuditEvent, AuditLogger, _hash_input
from scalpcare.core.storage.database import ClinicDatabase


class TestHashInput:
    def test_hashes_dict(self):
        h = _hash_input({"key": "value"})
        assert isinstance(h, str)
        assert len(h) == 64  # SHA-256 hex

    def test_key_order_does_not_matter(self):
        assert _hash_input({"a": 1, "b": 2}) == _hash_input({"b": 2, "a": 1})

    def test_unserializable_returns_empty(self):
        assert _hash_input({"x": object()}) == ""


class TestLogToolCall:
    def test_writes_event_without_raw_input(self, audit_logger):
        payload = {"assessment_json": json.dumps({"basic": {"name": "王小明"}}, ensure_ascii=False)}
        event_id = audit_logger.log_tool_call(
            "generate_scalp_report",
            payload,
            llm_provider="anthropic",
            llm_disclosed=True,
            report_id="r1",
            duration_ms=12.5,
            metadata={"diagnoses": ["SH_CLOGGED"]},
        )

        (event,) = audit_logger.get_events()
        assert event["id"] == event_id
        assert event["action"] == "tool_invocation"
        assert event["tool_input_hash"] == _hash_input(payload)
        assert event["llm_disclosed"] == 1
        assert event["report_id"] == "r1"
        assert json.loads(event["metadata_json"]) == {"diagnoses": ["SH_CLOGGED"]}
        assert "王小明" not in json.dumps(event, ensure_ascii=False)

    def test_failure_event(self, audit_logger):
        audit_logger.log_tool_call(
            "generate_scalp_report",
            {"x": 1},
            status="failure",
            error_type="GenerationError",
        )
        (event,) = audit_logger.get_events(tool_name="generate_scalp_report")
        assert event["status"] == "failure"
        assert event["error_type"] == "GenerationError"


def test_counts(audit_logger):
    audit_logger.log_tool_call("generate_scalp_report", {"a": 1}, llm_disclosed=True)
    audit_logger.log_tool_call("generate_scalp_report", {"a": 2}, llm_provider="mock")
    audit_logger.log_data_access("find_customer", found=False)

    assert audit_logger.count_events() == 3
    assert audit_logger.count_disclosures() == 1
    assert len(audit_logger.get_events(action="data_access")) == 1


def test_write_failure_returns_empty_id():
    db = ClinicDatabase(":memory:")  # never initialized
    assert AuditLogger(db).log_event(AuditEvent(action="tool_invocation")) == ""
