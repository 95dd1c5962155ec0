import asyncio

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError

from shortlink import crud
from shortlink.config import settings

@pytest.mark.asyncio
async def test_dashboard_lists_active_links(client: AsyncClient):
    await client.post("/api/links", json={"url": "https://example.com/shown", "code": "shown01"})
    await client.post("/api/links", json={"url": "https://example.com/hidden", "code": "hidden1"})
    await client.delete("/api/links/hidden1")

    response = await client.get("/")
    assert response.status_code == 200
    assert "text/html" in response.headers["content-type"]
    assert "https://example.com/shown" in response.text
    assert "http://localhost:3000/shown01" in response.text
    assert "hidden1" not in response.text

@pytest.mark.asyncio
async def test_dashboard_uses_configured_base_url(client: AsyncClient, monkeypatch):
    monkeypatch.setattr(settings, "BASE_URL", "https://sho.rt/")
    await client.post("/api/links", json={"url": "https://example.com", "code": "based01"})

    response = await client.get("/")
    assert "https://sho.rt/based01" in response.text

@pytest.mark.asyncio
async def test_stats_page(client: AsyncClient):
    await client.post("/api/links", json={"url": "https://example.com/stats", "code": "stats01"})
    await client.get("/stats01")
    await client.get("/stats01")

    response = await client.get("/code/stats01")
    assert response.status_code == 200
    assert "https://example.com/stats" in response.text
    assert '<dd id="total-clicks" class="text-3xl font-semibold">2</dd>' in response.text

@pytest.mark.asyncio
async def test_stats_page_not_found(client: AsyncClient):
    response = await client.get("/code/nothere")
    assert response.status_code == 404
    assert "Short link not found" in response.text

@pytest.mark.asyncio
async def test_storage_failure_on_api_is_generic_json(client: AsyncClient, monkeypatch):
    async def broken(db):
        raise OperationalError("SELECT", {}, Exception("connection refused"))
    monkeypatch.setattr(crud, "list_active_links", broken)

    response = await client.get("/api/links")
    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}

@pytest.mark.asyncio
async def test_storage_failure_on_page_renders_error_page(client: AsyncClient, monkeypatch):
    async def broken(db, code):
        raise OperationalError("UPDATE", {}, Exception("connection refused"))
    monkeypatch.setattr(crud, "record_click", broken)

    response = await client.get("/abcdef")
    assert response.status_code == 500
    assert "text/html" in response.headers["content-type"]
    assert "Something went wrong." in response.text
    assert "connection refused" not in response.text

@pytest.mark.asyncio
async def test_storage_timeout_is_internal_error(client: AsyncClient, monkeypatch):
    async def slow(db, code):
        await asyncio.sleep(1)
    monkeypatch.setattr(crud, "get_active_link", slow)
    monkeypatch.setattr(settings, "STORAGE_TIMEOUT_SECONDS", 0.05)

    response = await client.get("/api/links/abcdef")
    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}
