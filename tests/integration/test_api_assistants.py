"""Integration tests for the assistant catalog and health endpoints."""

from urllib.parse import parse_qs, urlparse

import pytest

from chatwidget.config import settings


@pytest.fixture
def no_keys(monkeypatch):
    for name in ("API_KEY", "API_KEY_1", "API_KEY_2", "API_KEY_3", "API_KEY_4"):
        monkeypatch.setattr(settings, name, "")


@pytest.mark.integration
class TestAssistants:
    @pytest.mark.asyncio
    async def test_list(self, client, no_keys, monkeypatch):
        monkeypatch.setattr(settings, "API_KEY_3", "sk_three")

        response = await client.get("/api/assistants")

        assert response.status_code == 200
        data = response.json()
        assert [a["api_id"] for a in data] == ["1", "2", "3", "4"]
        assert [a["has_api_key"] for a in data] == [False, False, True, False]

    @pytest.mark.asyncio
    async def test_detail(self, client, no_keys):
        response = await client.get("/api/assistants/texniki-kömək-1760266330652")

        assert response.status_code == 200
        assert response.json()["name"] == "Texniki Kömək"

    @pytest.mark.asyncio
    async def test_unknown_assistant(self, client):
        response = await client.get("/api/assistants/nope")

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_embed_defaults_to_configured_assistant(self, client):
        response = await client.get("/api/widget/embed")

        data = response.json()
        assert data["assistant"] == settings.DEFAULT_ASSISTANT_ID
        query = parse_qs(urlparse(data["iframe_url"]).query)
        assert query["assistant"] == [settings.DEFAULT_ASSISTANT_ID]

    @pytest.mark.asyncio
    async def test_embed_for_assistant(self, client):
        response = await client.get("/api/widget/embed", params={"assistant": "satış-köməkçisi-1760266330653"})

        data = response.json()
        assert data["iframe_url"].startswith(settings.WIDGET_BASE_URL + "?assistant=")
        assert data["title"] == "Chat Assistant"


@pytest.mark.integration
class TestHealth:
    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/api/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"
