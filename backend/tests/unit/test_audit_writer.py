"""Tests for audit record shaping and best-effort writes"""
import json

from docrequest.domain.enums import AuditAction
from docrequest.domain.models import SchemaReport
from docrequest.utils.logger import set_correlation_id, set_request_context

from tests.helpers import audit_records


def test_record_shape(container):
    set_request_context({"ip": "10.0.0.1", "ua": "LIFF", "origin": "https://liff.line.me", "path": "/api/v1/drafts"})
    set_correlation_id("COR-test")
    try:
        assert container.audit.write(
            AuditAction.SAVE_SECTION, "U1", "req_U1",
            {"section": "2", "changes": ["doc_invoice", "doc_invoice"], "client_ts": "t"}
        )
    finally:
        set_request_context({})
        set_correlation_id(None)

    record = audit_records(container, "save_section")[0]
    assert record["actor_id"] == "U1"
    assert record["target_request_id"] == "req_U1"
    assert record["ts"].endswith("Z")
    meta = record["meta"]
    assert meta["ip"] == "10.0.0.1"
    assert meta["path"] == "/api/v1/drafts"
    assert meta["request_id"] == "req_U1"
    assert meta["section"] == 2
    assert meta["changes"] == ["doc_invoice"]
    assert meta["correlation_id"] == "COR-test"
    assert meta["extra"] == {"client_ts": "t"}


def test_oversized_meta_is_replaced_by_a_preview(make_container):
    container = make_container(audit_meta_max_len=300)
    container.schema.ensure_ready()
    container.audit.write("input_truncated", "U1", "", {"a": "x" * 300, "b": "y" * 300})

    meta_json = container.audit.repo.list_all()[0]["meta_json"]
    meta = json.loads(meta_json)
    assert meta["truncated"] is True
    assert meta["overflow"] > 0
    assert meta["preview"].startswith("{")


def test_write_never_raises(make_container):
    # No tables yet, so the append fails
    container = make_container()
    assert container.audit.write(AuditAction.SAVE_SECTION, "U1") is False
    assert container.audit.dropped_count == 1
    assert "audit_log" in container.audit.last_drop_reason


def test_schema_drift_is_audited(make_container):
    container = make_container()
    container.schema.ensure_ready()
    report = SchemaReport(table="requests", missing_critical=["status"], moved_critical=["owner_id:1"])
    container.audit.write_schema_mismatch(report)

    meta = audit_records(container, "schema_mismatch")[0]["meta"]
    assert meta["error_code"] == "SCHEMA_MISMATCH"
    assert meta["extra"]["table"] == "requests"
    assert meta["extra"]["moved"] == ["owner_id:1"]
