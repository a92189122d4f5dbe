# Ensure the project root is on sys.path so `import pixeloria_chat` and `import config` work
import sys
from pathlib import Path

import httpx
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from config import Config  # noqa: E402
from pixeloria_chat import create_app  # noqa: E402
from pixeloria_chat.services import get_services  # noqa: E402

ADMIN_TOKEN = "test-admin-token"


class MockAI:
    """Stand-in for every third-party AI API.

    GET requests are key tests and answer with ``test_status``. POST requests
    are chat completions and answer with ``chat_response``, which may be an
    ``httpx.Response``, an exception to raise, or a callable taking the
    request.
    """

    def __init__(self):
        self.test_status = 401
        self.chat_response = None
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.method == "GET":
            return httpx.Response(self.test_status, json={"data": []})
        responder = self.chat_response
        if responder is None:
            return httpx.Response(401, json={"error": {"message": "invalid api key"}})
        if isinstance(responder, Exception):
            raise responder
        if callable(responder):
            return responder(request)
        return responder

    def reply_with(self, text: str) -> None:
        self.chat_response = lambda request: httpx.Response(
            200, json={"choices": [{"message": {"content": text}}]}
        )

    @property
    def chat_requests(self):
        return [r for r in self.requests if r.method == "POST"]


@pytest.fixture()
def mock_ai():
    return MockAI()


@pytest.fixture()
def app(tmp_path, mock_ai):
    """Application backed by a fresh temp SQLite database per test.

    No request can leave the process: every provider call goes to ``mock_ai``.
    """

    class TestConfig(Config):
        TESTING = True
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'test.db'}"
        AI_ENCRYPTION_SECRET = "test-encryption-secret"
        ADMIN_API_TOKEN = ADMIN_TOKEN
        AI_TEST_TIMEOUT = 2.0
        AI_CHAT_TIMEOUT = 2.0
        SMTP_SERVER = ""
        FROM_EMAIL = ""
        CHAT_NOTIFY_EMAILS = []
        REDIS_URL = ""

    TestConfig.HTTPX_TRANSPORT = httpx.MockTransport(mock_ai.handler)

    app = create_app(TestConfig)
    with app.app_context():
        yield app


@pytest.fixture()
def client(app):
    with app.test_client() as c:
        yield c


@pytest.fixture()
def services(app):
    return get_services()


@pytest.fixture()
def admin_headers():
    return {"Authorization": f"Bearer {ADMIN_TOKEN}"}


@pytest.fixture()
def configure_provider(services, mock_ai):
    """Store a credential for ``provider_id`` whose key test passes or fails on demand."""

    def _configure(provider_id="openai", api_key="sk-test-key-1234", enabled=True, valid=True):
        previous = mock_ai.test_status
        mock_ai.test_status = 200 if valid else 401
        try:
            credential, _ = services.credentials.save(
                provider_id, provider_id.title(), api_key, is_enabled=enabled
            )
        finally:
            mock_ai.test_status = previous
        return credential

    return _configure


USER_INFO = {"name": "Ada Lovelace", "email": "Ada@Example.com", "country": "UK"}
