from datetime import datetime

from user_api.db import get_conn


def test_health_and_version(client):
    r = client.get("/health")
    assert r.status_code == 200
    body = r.json()
    assert body["code"] == 200
    assert body["data"]["status"] == "healthy"
    # YYYY-MM-DD HH:MM:SS
    datetime.strptime(body["data"]["timestamp"], "%Y-%m-%d %H:%M:%S")

    v = client.get("/version")
    assert v.status_code == 200
    assert v.json().get("app") == "user-crud-api"


def test_health_does_not_touch_store(client, app):
    with get_conn(app.state.user_service.db_path) as conn:
        conn.execute("DROP TABLE users")
    assert client.get("/health").status_code == 200


def test_index_page_lists_endpoints(client):
    r = client.get("/")
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/html")
    assert "/api/users" in r.text


def test_unknown_path_uses_envelope(client):
    r = client.get("/nope")
    assert r.status_code == 404
    assert r.json() == {"code": 404, "message": "Not Found"}


def test_startup_creates_tables(client, app):
    with get_conn(app.state.user_service.db_path) as conn:
        names = {r["name"] for r in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
    assert {"users", "operation_log"} <= names


def test_timestamps_are_rfc3339_with_microseconds(client):
    data = client.post("/api/users", json={"name": "Li", "email": "li@x.com", "age": 30}).json()["data"]
    for key in ("created_at", "updated_at"):
        ts = datetime.fromisoformat(data[key])
        assert ts.utcoffset().total_seconds() == 0
        assert len(data[key]) == len("2026-01-01T00:00:00.000000+00:00")
