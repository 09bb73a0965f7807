import os
import sys
import pytest
from pathlib import Path

# Ensure project root on sys.path
_THIS_DIR = Path(__file__).resolve().parent
_PROJECT_ROOT = _THIS_DIR.parent.parent
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))


@pytest.fixture(scope="session", autouse=True)
def _session_db(tmp_path_factory):
    # Keep the module-level app away from a real users.db
    path = tmp_path_factory.mktemp("db") / "session_users.db"
    os.environ["USER_API_DB_PATH"] = str(path)
    yield str(path)


@pytest.fixture()
def db_path(tmp_path):
    # one isolated store per test
    return str(tmp_path / "users_test.db")


@pytest.fixture()
def service(db_path):
    from user_api.services.user_svc import UserService
    svc = UserService(db_path)
    svc.ensure_schema()
    return svc


@pytest.fixture()
def conn(service):
    from user_api.db import get_conn
    with get_conn(service.db_path) as c:
        yield c


@pytest.fixture()
def app(db_path):
    from user_api.api import create_app
    return create_app(db_path)


@pytest.fixture()
def client(app):
    from fastapi.testclient import TestClient
    # context manager runs the startup hook (schema creation)
    with TestClient(app) as c:
        yield c
