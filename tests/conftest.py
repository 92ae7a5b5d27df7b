import json
import time
from urllib.parse import urlparse

import pytest
import requests
from fastapi.testclient import TestClient
from jose import jwt

from hrms_portal.config.settings import Settings
from hrms_portal.core.notifications import Notifier
from hrms_portal.core.session import SessionController, SessionUser
from hrms_portal.core.state import StorageRegistry
from hrms_portal.database.db import build_engine, build_session_factory, init_db
from hrms_portal.main import create_app

BACKEND_URL = "http://backend.test"
API_URL = f"{BACKEND_URL}/api"
COOKIE_NAME = "hrms_browser"

ADMIN = {"id": "a1", "name": "Alice Admin", "role": "admin", "email": "alice@example.com"}
EMPLOYEE = {"id": "e1", "name": "Eve Employee", "role": "employee", "department": "Finance"}

def make_token(expires_in: float = 3600, **claims) -> str:
    payload = {"sub": "a1", **claims}
    if expires_in is not None:
        payload["exp"] = int(time.time() + expires_in)
    return jwt.encode(payload, "test-secret", algorithm="HS256")

class FakeBackend(requests.adapters.BaseAdapter):
    """
    Transport adapter answering requests from canned replies.
    A reply is (status, body) or an exception instance to raise.
    """

    def __init__(self):
        super().__init__()
        self.replies = {}
        self.calls = []

    def reply(self, method: str, path: str, status: int = 200, body=None):
        self.replies[(method, path)] = (status, body)

    def fail(self, method: str, path: str, error: Exception):
        self.replies[(method, path)] = error

    def calls_to(self, method: str, path: str):
        return [
            call for call in self.calls
            if call["method"] == method and call["path"] == path
        ]

    def send(self, request, **kwargs):
        path = urlparse(request.url).path
        body = json.loads(request.body) if request.body else None
        self.calls.append({
            "method": request.method,
            "path": path,
            "json": body,
            "headers": dict(request.headers),
        })

        reply = self.replies.get((request.method, path), (404, {"detail": "Not Found"}))
        if isinstance(reply, Exception):
            raise reply

        status, payload = reply
        response = requests.Response()
        response.status_code = status
        response.url = request.url
        response.request = request
        response.encoding = "utf-8"
        response.headers["Content-Type"] = "application/json"
        response._content = json.dumps(payload).encode("utf-8") if payload is not None else b""
        return response

    def close(self):
        pass

@pytest.fixture
def backend():
    return FakeBackend()

@pytest.fixture
def http_session(backend):
    session = requests.Session()
    session.mount(BACKEND_URL, backend)
    return session

@pytest.fixture
def registry():
    engine = build_engine("sqlite://")
    init_db(engine)
    yield StorageRegistry(build_session_factory(engine))
    engine.dispose()

@pytest.fixture
def storage(registry):
    return registry.for_browser("browser-1")

@pytest.fixture
def controller(storage):
    return SessionController(storage, Notifier(storage))

@pytest.fixture
def settings():
    return Settings(
        BACKEND_URL=BACKEND_URL,
        STORAGE_DATABASE_URL="sqlite://",
        TOKEN_CHECK_INTERVAL=3600,
    )

@pytest.fixture
def app(settings, http_session):
    return create_app(settings=settings, http_session=http_session)

@pytest.fixture
def client(app):
    with TestClient(app, follow_redirects=False) as client:
        client.get("/health")
        yield client

@pytest.fixture
def browser_storage(client, app):
    """Persisted storage of the test client's browser."""
    browser_id = client.cookies.get(COOKIE_NAME)
    return app.state.registry.for_browser(browser_id)

def sign_in(storage, user: dict, token: str = None):
    """Persist a session the way a successful login does."""
    controller = SessionController(storage, Notifier(storage))
    controller.login(SessionUser(**user), token or make_token())
    return controller
