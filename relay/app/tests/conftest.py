"""
Shared fixtures for the relay tests.

The Telegram Bot API is replaced by MockTelegram, an httpx.MockTransport
handler that records every outbound request and answers from a table of
canned replies keyed by the last path segment of the request URL.
"""

from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from relay.app.config import Settings
from relay.app.main import create_app

TEST_TOKEN = "123456:TEST-token-abcdef"
TEST_CHAT_ID = "-1001234567890"
TEST_API_URL = "https://telegram.test"

Handler = Callable[[httpx.Request], httpx.Response]


class MockTelegram:
    """Stand-in for the Bot API with call recording."""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self._handlers: Dict[str, Handler] = {}

    def on(
        self,
        name: str,
        status_code: int = 200,
        *,
        json: Any = None,
        content: Optional[bytes] = None,
        headers: Optional[Dict[str, str]] = None,
        error: Optional[Exception] = None,
        handler: Optional[Handler] = None,
    ) -> None:
        """
        Register the reply for a Bot API method or a file name.

        A fresh httpx.Response is built for every request.
        """
        if handler is None:
            def handler(request: httpx.Request) -> httpx.Response:
                if error is not None:
                    raise error
                if json is not None:
                    return httpx.Response(status_code, json=json, headers=headers)
                return httpx.Response(status_code, content=content or b"", headers=headers)
        self._handlers[name] = handler

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        name = request.url.path.rsplit("/", 1)[-1]
        if name not in self._handlers:
            return httpx.Response(200, json={"ok": True, "result": True})
        return self._handlers[name](request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def last_request(self) -> Optional[httpx.Request]:
        return self.requests[-1] if self.requests else None


@pytest.fixture
def mock_settings():
    """Settings pointing at the mock Bot API"""
    return Settings(
        _env_file=None,
        TELEGRAM_TOKEN=TEST_TOKEN,
        TELEGRAM_CHAT_ID=TEST_CHAT_ID,
        TELEGRAM_API_URL=TEST_API_URL,
    )


@pytest.fixture
def telegram():
    return MockTelegram()


@pytest.fixture
def app(mock_settings, telegram):
    """Create test FastAPI application wired to the mock Bot API"""
    return create_app(settings=mock_settings, transport=telegram.transport)


@pytest.fixture
def client(app):
    """Test client with the application lifespan running"""
    with TestClient(app) as test_client:
        yield test_client


@pytest_asyncio.fixture
async def http_client(telegram):
    """Bare async client on the mock Bot API, for component tests"""
    async with httpx.AsyncClient(transport=telegram.transport) as async_client:
        yield async_client
