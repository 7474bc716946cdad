import os

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["STORAGE_BACKEND"] = "local"

import pytest
from fastapi.testclient import TestClient

from housecheck.app.database import engine
from housecheck.app.main import app
from housecheck.app.models import Base
from housecheck.app.storage import LocalStorageService, get_storage
from housecheck.portal.client import DataAccessClient
from housecheck.portal.notifications import Notifier
from housecheck.portal.session import SessionProvider

BUCKET = "inspection-images"
BASE_URL = "http://testserver"


@pytest.fixture(autouse=True)
def fresh_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def storage(tmp_path):
    service = LocalStorageService(tmp_path / "storage", BUCKET, BASE_URL)
    app.dependency_overrides[get_storage] = lambda: service
    yield service
    app.dependency_overrides.pop(get_storage, None)


@pytest.fixture
def http(storage):
    return TestClient(app)


def signup(http, email="owner@example.com", password="secret123"):
    res = http.post("/api/auth/signup", json={"email": email, "password": password})
    assert res.status_code == 200, res.text
    return res.json()


def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def owner(http):
    return auth_headers(signup(http)["access_token"])


@pytest.fixture
def stranger(http):
    return auth_headers(signup(http, "stranger@example.com")["access_token"])


@pytest.fixture
def portal_client(storage):
    """Portal data client talking to the app in-process."""
    return DataAccessClient(base_url=BASE_URL, session=TestClient(app))


@pytest.fixture
def notifier():
    return Notifier()


@pytest.fixture
def session(portal_client, tmp_path):
    provider = SessionProvider(portal_client, session_file=tmp_path / "session.json")
    provider.sign_up("owner@example.com", "secret123")
    return provider
