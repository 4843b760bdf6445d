"""Tests for structured logging and request_id propagation."""

import json
import logging

from fastapi.testclient import TestClient

from backoffice.core.logging import (
    JsonFormatter,
    RequestContextFilter,
    log_event,
    request_id_ctx_var,
    tenant_id_ctx_var,
)
from backoffice.main import app


def test_request_id_in_response_and_logs(caplog):
    client = TestClient(app)
    with caplog.at_level(logging.INFO, logger="backoffice"):
        response = client.get("/healthz")
    rid = response.headers.get("x-request-id")
    assert rid
    records = [r for r in caplog.records if getattr(r, "request_id", None) == rid]
    assert records, "Expected logs to contain request_id from response"


def test_denials_are_logged_with_tenant(caplog, make_tenant, add_members):
    tid = make_tenant(plan="launch")
    add_members(tid, 5)
    client = TestClient(app)
    with caplog.at_level(logging.WARNING, logger="backoffice"):
        client.post(f"/v1/tenants/{tid}/seats/validate")
    deny = [r for r in caplog.records if r.getMessage() == "[seats] DENY"]
    assert deny
    assert deny[0].tenant_id == tid
    assert deny[0].error_code == "SEAT_LIMIT_EXCEEDED"


def test_log_event_truncates_extra(caplog):
    with caplog.at_level(logging.INFO, logger="backoffice"):
        log_event("info", "[test] EVENT", tenant_id="t1", extra={"blob": "x" * 1000})
    record = caplog.records[-1]
    assert record.tenant_id == "t1"
    assert record.blob.endswith("...<truncated>")


def test_json_formatter_includes_extras():
    record = logging.LogRecord("backoffice", logging.INFO, __file__, 1, "[plans] SEEDED", None, None)
    record.count = 4
    payload = json.loads(JsonFormatter().format(record))
    assert payload["message"] == "[plans] SEEDED"
    assert payload["count"] == 4


def test_context_filter_stamps_bound_tenant():
    record = logging.LogRecord("backoffice", logging.INFO, __file__, 1, "[storage] SCAN_TIMEOUT", None, None)
    rid_token = request_id_ctx_var.set("rid-1")
    tenant_token = tenant_id_ctx_var.set("tenant-a")
    try:
        assert RequestContextFilter().filter(record)
    finally:
        tenant_id_ctx_var.reset(tenant_token)
        request_id_ctx_var.reset(rid_token)
    assert record.request_id == "rid-1"
    assert record.tenant_id == "tenant-a"


def test_log_event_uses_bound_tenant(caplog):
    token = tenant_id_ctx_var.set("tenant-b")
    try:
        with caplog.at_level(logging.INFO, logger="backoffice"):
            log_event("info", "[test] BOUND")
    finally:
        tenant_id_ctx_var.reset(token)
    assert caplog.records[-1].tenant_id == "tenant-b"
