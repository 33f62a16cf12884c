import json
import os
import sys
from types import SimpleNamespace
from urllib.parse import urlsplit

import pytest
import requests

# Path setup before any project imports
ROOT = os.path.dirname(__file__)
PARENT = os.path.abspath(os.path.join(ROOT, ".."))
if PARENT not in sys.path:  # pragma: no cover - environment dependent
    sys.path.insert(0, PARENT)

from app import create_app  # noqa: E402
from auth.config import AuthSettings  # noqa: E402
from backend.client import BackendClient  # noqa: E402
from backend.config import BackendSettings  # noqa: E402

BACKEND_ENDPOINT = "https://backend.test"
BACKEND_PATH = "/api/v1"
CRUMB = "test-crumb-value"
ADMIN_ROLE = "MPDP.Admin"


def make_response(status=200, body=None):
    """Build a real `requests.Response` with a JSON (or empty) body."""
    response = requests.Response()
    response.status_code = status
    if body is None:
        response._content = b""
    elif isinstance(body, bytes):
        response._content = body
    else:
        response._content = json.dumps(body).encode()
        response.headers["Content-Type"] = "application/json"
    return response


class FakeBackendSession:
    """
    Stands in for `requests.Session`.

    Replies are registered per (method, path) where path excludes the
    endpoint, prefix and query string. Unregistered routes answer 404.
    Every call is recorded in `calls`.
    """

    def __init__(self):
        self.calls = []
        self._routes = {}

    def add(self, method, path, status=200, body=None):
        self._routes[(method, path)] = make_response(status, body)

    def fail(self, method, path, exc=None):
        self._routes[(method, path)] = exc or requests.ConnectionError("connection refused")

    def request(self, method, url, **kwargs):
        parts = urlsplit(url)
        path = parts.path[len(BACKEND_PATH) :].lstrip("/")
        self.calls.append(SimpleNamespace(method=method, url=url, path=path, query=parts.query, kwargs=kwargs))
        reply = self._routes.get((method, path))
        if isinstance(reply, Exception):
            raise reply
        return reply if reply is not None else make_response(404)

    def methods(self):
        return [(c.method, c.path) for c in self.calls]


@pytest.fixture
def backend_session():
    return FakeBackendSession()


@pytest.fixture
def backend_client(backend_session):
    return BackendClient(BackendSettings(endpoint=BACKEND_ENDPOINT, path=BACKEND_PATH), session=backend_session)


@pytest.fixture
def auth_settings():
    return AuthSettings(
        tenant_id="test-tenant",
        client_id="test-client-id",
        client_secret="test-client-secret",
        admin_role=ADMIN_ROLE,
        well_known_url="https://login.test/.well-known/openid-configuration",
    )


@pytest.fixture
def app(tmp_path, backend_client, auth_settings):
    app = create_app(
        {
            "TESTING": True,
            "SECRET_KEY": "test-secret-key",
            "SESSION_COOKIE_SECURE": False,
            "SESSION_FILE_DIR": str(tmp_path / "sessions"),
            "AUTH_SETTINGS": auth_settings,
            "BACKEND_CLIENT": backend_client,
        }
    )
    return app


@pytest.fixture
def client(app):
    return app.test_client()


def sign_in(client, roles=(ADMIN_ROLE,), **extra):
    with client.session_transaction() as sess:
        sess["user"] = {
            "name": "Test User",
            "email": "test.user@example.com",
            "scope": list(roles),
            "login_hint": "hint-123",
            **extra,
        }


@pytest.fixture
def admin_client(client):
    """Signed-in admin with a crumb cookie already issued."""
    sign_in(client)
    client.set_cookie("crumb", CRUMB)
    return client


def with_crumb(data=None):
    return {"crumb": CRUMB, **(data or {})}
