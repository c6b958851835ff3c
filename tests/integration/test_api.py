import asyncio
import pytest
from httpx import AsyncClient

from tinylink.errors import TransientStoreError
from tinylink.validators import is_valid_code

@pytest.mark.asyncio
async def test_healthz(client: AsyncClient):
    response = await client.get("/healthz")
    assert response.status_code == 200
    data = response.json()
    assert data["ok"] is True
    assert data["version"] == "1.0.0"
    assert data["uptime"] >= 0

@pytest.mark.asyncio
async def test_create_custom_code(client: AsyncClient):
    payload = {"url": "https://example.com", "code": "MYCODE1"}

    # Create
    response = await client.post("/api/links", json=payload)
    assert response.status_code == 201
    data = response.json()
    assert data["ok"] is True
    assert data["shortUrl"] == "http://test/MYCODE1"
    assert data["link"]["code"] == "MYCODE1"
    assert data["link"]["url"] == "https://example.com"
    assert data["link"]["clicks"] == 0
    assert data["link"]["last_clicked"] is None

    # Same call again
    response = await client.post("/api/links", json=payload)
    assert response.status_code == 409

@pytest.mark.asyncio
async def test_create_generated_code(client: AsyncClient):
    response = await client.post("/api/links", json={"url": "https://example.com/a"})
    assert response.status_code == 201
    code = response.json()["link"]["code"]
    assert is_valid_code(code)
    assert response.json()["shortUrl"] == f"http://test/{code}"

@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"url": "ftp://x.com"},
        {"url": "not a url"},
        {"url": "https://example.com", "code": "ab-123"},
        {"url": "https://example.com", "code": "abc12"},
    ],
)
async def test_create_rejects_bad_input(client: AsyncClient, payload):
    response = await client.post("/api/links", json=payload)
    assert response.status_code == 400
    assert (await client.get("/api/links")).json() == []

@pytest.mark.asyncio
async def test_list_links_newest_first(client: AsyncClient):
    for code in ("Older01", "Newer01"):
        await client.post("/api/links", json={"url": "https://example.com", "code": code})

    response = await client.get("/api/links")
    assert response.status_code == 200
    assert [link["code"] for link in response.json()] == ["Newer01", "Older01"]

@pytest.mark.asyncio
async def test_get_link(client: AsyncClient):
    await client.post("/api/links", json={"url": "https://example.com", "code": "Stats01"})

    response = await client.get("/api/links/Stats01")
    assert response.status_code == 200
    assert response.json()["url"] == "https://example.com"

    assert (await client.get("/api/links/ab")).status_code == 400
    assert (await client.get("/api/links/Nobody1")).status_code == 404

@pytest.mark.asyncio
async def test_delete_twice(client: AsyncClient):
    await client.post("/api/links", json={"url": "https://example.com", "code": "Delete1"})

    response = await client.delete("/api/links/Delete1")
    assert response.status_code == 200
    assert response.json() == {"ok": True, "deleted": "Delete1"}

    response = await client.delete("/api/links/Delete1")
    assert response.status_code == 404

    assert (await client.delete("/api/links/bad!")).status_code == 400

@pytest.mark.asyncio
async def test_redirect(client: AsyncClient):
    await client.post("/api/links", json={"url": "https://www.google.com", "code": "GoGoogl"})

    # httpx does not follow redirects by default
    response = await client.get("/GoGoogl")
    assert response.status_code == 302
    assert response.headers["location"] == "https://www.google.com"

    data = (await client.get("/api/links/GoGoogl")).json()
    assert data["clicks"] == 1
    assert data["last_clicked"] is not None

@pytest.mark.asyncio
async def test_redirect_malformed_code_matches_unknown(client: AsyncClient):
    malformed = await client.get("/ab")
    unknown = await client.get("/Unknown1")
    assert malformed.status_code == unknown.status_code == 404
    assert malformed.json() == unknown.json()

@pytest.mark.asyncio
async def test_concurrent_redirects(client: AsyncClient):
    await client.post("/api/links", json={"url": "https://example.com", "code": "Crowd01"})

    n = 10
    responses = await asyncio.gather(*(client.get("/Crowd01") for _ in range(n)))
    assert all(r.status_code == 302 for r in responses)

    assert (await client.get("/api/links/Crowd01")).json()["clicks"] == n

@pytest.mark.asyncio
async def test_store_failure_is_opaque_500(app, client: AsyncClient, monkeypatch):
    async def unavailable():
        raise TransientStoreError("connection refused")

    monkeypatch.setattr(app.state.service.store, "list_all", unavailable)

    response = await client.get("/api/links")
    assert response.status_code == 500
    assert response.json() == {"detail": "Server error"}

@pytest.mark.asyncio
async def test_security_headers(client: AsyncClient):
    response = await client.get("/healthz")
    assert response.headers["x-content-type-options"] == "nosniff"
    assert response.headers["x-frame-options"] == "SAMEORIGIN"

@pytest.mark.asyncio
async def test_metrics(client: AsyncClient):
    await client.get("/healthz")
    response = await client.get("/metrics")
    assert response.status_code == 200
    assert "http_requests_total" in response.text
    assert "redirect_total" in response.text

@pytest.mark.asyncio
@pytest.mark.parametrize(
    "kwargs",
    [
        {},
        {"content": b"not json", "headers": {"content-type": "application/json"}},
        {"json": ["https://example.com"]},
        {"json": {"url": 123}},
        {"json": {"url": "https://example.com", "code": 1234567}},
        {"json": {"url": " https://example.com"}},
        {"json": {"url": "https://example.com/\u0000"}},
    ],
)
async def test_create_malformed_body_is_400(client: AsyncClient, kwargs):
    response = await client.post("/api/links", **kwargs)
    assert response.status_code == 400
    assert (await client.get("/api/links")).json() == []

@pytest.mark.asyncio
@pytest.mark.parametrize("code", ["healthz", "metrics"])
async def test_fixed_route_codes_are_reserved(client: AsyncClient, code):
    response = await client.post("/api/links", json={"url": "https://example.com", "code": code})
    assert response.status_code == 409
    assert (await client.get(f"/{code}")).status_code == 200

@pytest.mark.asyncio
async def test_long_url_round_trip(client: AsyncClient):
    url = "https://example.com/?q=" + "a" * 3000
    response = await client.post("/api/links", json={"url": url, "code": "LongUrl"})
    assert response.status_code == 201

    response = await client.get("/LongUrl")
    assert response.status_code == 302
    assert response.headers["location"] == url
