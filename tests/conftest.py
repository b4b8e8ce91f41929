"""
Shared fixtures: a throwaway SQLite database, a fake LLM gateway built on
httpx.MockTransport, and a TestClient running the full app lifespan.
"""

import json
import os
import tempfile

# Settings are read at import time, so the environment goes first.
_DB_DIR = tempfile.mkdtemp(prefix="bloomiq-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_DIR}/test.db"
os.environ["LLM_API_KEY"] = "test-gateway-key"
os.environ["LLM_GATEWAY_URL"] = "http://gateway.test/v1"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-that-is-long-enough-for-hs256"

import httpx  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from bloom_host.main import app  # noqa: E402
from bloom_host.services.auths import create_access_token  # noqa: E402
from bloom_host.services.gateway import GatewayClient, get_gateway  # noqa: E402


def completion(content: str) -> dict:
    """Minimal OpenAI chat.completion body carrying `content`."""
    return {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "created": 0,
        "model": "test-model",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
    }


def sse_frame(content: str) -> str:
    chunk = {"choices": [{"index": 0, "delta": {"content": content}}]}
    return f"data: {json.dumps(chunk)}\n\n"


class FakeUpstream:
    """Scripted replies for the LLM gateway; records every request body it sees."""

    def __init__(self):
        self.requests = []
        self._responses = []

    def reply(self, content: str) -> None:
        self._responses.append(httpx.Response(200, json=completion(content)))

    def stream(self, body: bytes) -> None:
        self._responses.append(
            httpx.Response(200, content=body, headers={"content-type": "text/event-stream"})
        )

    def fail(self, status_code: int, body: str = '{"error": "upstream"}') -> None:
        self._responses.append(
            httpx.Response(status_code, content=body.encode(), headers={"content-type": "application/json"})
        )

    def disconnect(self) -> None:
        self._responses.append(httpx.ConnectError("gateway unreachable"))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(json.loads(request.content))
        if not self._responses:
            raise AssertionError(f"Unexpected gateway call: {request.url}")
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def last_messages(self):
        return self.requests[-1]["messages"]


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def gateway(upstream):
    return GatewayClient(
        api_key="test-gateway-key",
        base_url="http://gateway.test/v1",
        model="test-model",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(upstream.handler)),
    )


@pytest.fixture
def client(gateway):
    app.dependency_overrides[get_gateway] = lambda: gateway
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def make(user_id: str) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user_id)}"}

    return make
