from __future__ import annotations

import json
from unittest.mock import patch

from user_api.db import get_conn
from user_api.logs import LogContext, search_logs


def _log_rows(db_path):
    with get_conn(db_path) as conn:
        return [dict(r) for r in conn.execute("SELECT * FROM operation_log ORDER BY id").fetchall()]


def test_mutations_are_audited(client, app):
    db_path = app.state.user_service.db_path
    uid = client.post("/api/users", json={"name": "Li", "email": "li@x.com", "age": 30}).json()["data"]["id"]
    client.put(f"/api/users/{uid}", json={"name": "Li", "email": "li@x.com", "age": 31})
    client.delete(f"/api/users/{uid}")
    client.delete(f"/api/users/{uid}")

    rows = _log_rows(db_path)
    assert [(r["action"], r["result"]) for r in rows] == [
        ("CREATE_USER", "OK"),
        ("UPDATE_USER", "OK"),
        ("DELETE_USER", "OK"),
        ("DELETE_USER", "ERROR"),
    ]
    assert all(r["entity_id"] == str(uid) for r in rows)
    assert json.loads(rows[1]["after_json"])["age"] == 31
    assert rows[3]["err_msg"] == "user not found"


def test_reads_and_rejected_input_are_not_audited(client, app):
    client.get("/api/users")
    client.post("/api/users", json={"name": "", "email": "li@x.com", "age": 30})
    assert _log_rows(app.state.user_service.db_path) == []


def test_search_endpoint(client):
    client.post("/api/users", json={"name": "Li", "email": "li@x.com", "age": 30})
    client.post("/api/users", json={"name": "Wang", "email": "wang@x.com", "age": 40})

    res = client.get("/api/logs/search", params={"action": "CREATE_USER", "query": "wang"})
    assert res.status_code == 200
    body = res.json()
    assert body["total"] == 1
    assert json.loads(body["items"][0]["payload_json"])["email"] == "wang@x.com"

    bad = client.get("/api/logs/search", params={"page": 0})
    assert bad.status_code == 400


def test_search_pagination(service):
    for i in range(5):
        LogContext(f"ACT{i}", service.db_path).write("OK")
    total, items = search_logs(None, None, page=2, size=2, db_path=service.db_path)
    assert total == 5
    assert [it["action"] for it in items] == ["ACT2", "ACT1"]


def test_audit_write_failure_is_swallowed(db_path):
    # no operation_log table in a fresh file
    log = LogContext("CREATE_USER", db_path)
    with patch("user_api.logs.logger") as mock_logger:
        log.write("OK")
    mock_logger.exception.assert_called_once()
