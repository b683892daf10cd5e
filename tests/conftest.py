# tests/conftest.py
import httpx
import pytest
from fastapi.testclient import TestClient

from stubapi.main import app
from storeadmin import AdminClient, AuthSession, TokenStore

BASE_URL = "http://testserver"
ADMIN = ("admin", "admin123")


class RecordingSession:
    """Passes requests through to the test client and remembers what was sent."""

    def __init__(self, inner):
        self.inner = inner
        self.calls = []

    def request(self, method, url, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        return self.inner.request(method, url, **kwargs)


class CannedSession:
    """Answers every request with the same status and body."""

    def __init__(self, status_code=200, json=None, content=None):
        self.status_code = status_code
        self.json = json
        self.content = content

    def request(self, method, url, **kwargs):
        return httpx.Response(self.status_code, json=self.json, content=self.content,
                              request=httpx.Request(method, url))


@pytest.fixture
def api():
    client = TestClient(app)
    client.post("/reset")
    return client


@pytest.fixture
def recorder(api):
    return RecordingSession(api)


@pytest.fixture
def admin_client(recorder):
    return AdminClient(base_url=BASE_URL, session=recorder)


@pytest.fixture
def token_store(tmp_path):
    return TokenStore(tmp_path / "token.json")


@pytest.fixture
def session(admin_client, token_store):
    return AuthSession(admin_client, token_store)


@pytest.fixture
def logged_in(session):
    assert session.login(*ADMIN).success
    return session
