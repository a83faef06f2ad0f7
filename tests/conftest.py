"""
Pytest configuration and shared fixtures.
"""

import json

import httpx
import pytest

from chatwidget.main import create_app
from chatwidget.services.upstream import get_http_client


# ============================================================================
# Upstream stub
# ============================================================================


class UpstreamStub:
    """Records outbound requests and answers with a canned response."""

    def __init__(self):
        self.requests = []
        self.status = 200
        self.body = {"success": True, "data": {"response": "hello"}}
        self.content_type = "application/json"
        self.headers = {}
        self.error = None

    def reply(self, status=200, body=None, content_type="application/json", headers=None):
        self.status = status
        self.body = body
        self.content_type = content_type
        self.headers = headers or {}

    def fail_with(self, error: Exception):
        self.error = error

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        content = self.body if isinstance(self.body, str) else json.dumps(self.body)
        headers = {"content-type": self.content_type, **self.headers}
        return httpx.Response(self.status, content=content.encode("utf-8"), headers=headers)

    @property
    def last_json(self):
        return json.loads(self.requests[-1].content)


@pytest.fixture
def upstream():
    return UpstreamStub()


# ============================================================================
# App fixtures
# ============================================================================


@pytest.fixture
def app(upstream):
    """Create test application with the upstream replaced by the stub."""
    application = create_app()

    async def _stub_client():
        async with httpx.AsyncClient(transport=httpx.MockTransport(upstream.handler)) as client:
            yield client

    application.dependency_overrides[get_http_client] = _stub_client
    return application


@pytest.fixture
async def client(app):
    """Create async test client."""
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac


@pytest.fixture
def valid_key():
    return "sk_" + "a" * 40
