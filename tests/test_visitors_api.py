import pytest

from wedding_api.main import app
from wedding_api.services.visitor_store import (
    LogOnlyVisitorStore,
    RedisVisitorStore,
    get_visitor_store,
)

DESKTOP_UA = "Mozilla/5.0 (Macintosh; Intel Mac OS X 14_0) AppleWebKit/605.1.15"


@pytest.mark.anyio
@pytest.mark.parametrize("headers", [{}, {"Authorization": "Bearer wrong"}, {"Authorization": "test-admin-secret"}])
async def test_list_requires_token(client, headers):
    await client.post("/api/track", json={"guestName": "Uncle Rajan"})
    resp = await client.get("/api/visitors", headers=headers)
    assert resp.status_code == 401
    body = resp.json()
    assert body == {"success": False, "error": "Unauthorized"}
    assert "visitors" not in body


@pytest.mark.anyio
async def test_clear_requires_token(client, file_store):
    await client.post("/api/track", json={"guestName": "Uncle Rajan"})
    resp = await client.delete("/api/visitors", headers={"Authorization": "Bearer wrong"})
    assert resp.status_code == 401
    assert len((await file_store.read_all()).visitors) == 1


@pytest.mark.anyio
async def test_track_then_list_most_recent_first(client, auth_headers):
    await client.post("/api/track", json={"guestName": "Aunt Meena"})
    resp = await client.post(
        "/api/track",
        json={"guestName": "Uncle Rajan", "userAgent": DESKTOP_UA},
    )
    tracked = resp.json()["data"]
    assert tracked["deviceType"] == "Desktop"

    resp = await client.get("/api/visitors", headers=auth_headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["source"] == "json-file"
    assert body["count"] == 2
    assert body["visitors"][0] == tracked
    assert body["visitors"][1]["guestName"] == "Aunt Meena"


@pytest.mark.anyio
async def test_list_with_redis_store_is_most_recent_first(transport, client, auth_headers, fake_redis):
    app.dependency_overrides[get_visitor_store] = lambda: RedisVisitorStore(fake_redis)
    for name in ("First Guest", "Second Guest", "Uncle Rajan"):
        resp = await client.post("/api/track", json={"guestName": name})
        assert resp.json()["stored"] == "kv"

    body = (await client.get("/api/visitors", headers=auth_headers)).json()
    assert body["source"] == "kv"
    assert [v["guestName"] for v in body["visitors"]] == ["Uncle Rajan", "Second Guest", "First Guest"]


@pytest.mark.anyio
async def test_list_log_only_store_returns_message(transport, client, auth_headers):
    app.dependency_overrides[get_visitor_store] = lambda: LogOnlyVisitorStore()
    resp = await client.get("/api/visitors", headers=auth_headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["source"] == "logs"
    assert body["visitors"] == []
    assert body["count"] == 0
    assert body["message"]


@pytest.mark.anyio
async def test_clear_empties_collection(client, auth_headers):
    await client.post("/api/track", json={"guestName": "Uncle Rajan"})

    resp = await client.delete("/api/visitors", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "message": "All visitors cleared"}

    body = (await client.get("/api/visitors", headers=auth_headers)).json()
    assert body["count"] == 0
    assert body["visitors"] == []

    resp = await client.delete("/api/visitors", headers=auth_headers)
    assert resp.status_code == 200


@pytest.mark.anyio
async def test_options_needs_no_auth(client):
    resp = await client.options("/api/visitors")
    assert resp.status_code == 200
    assert resp.content == b""


@pytest.mark.anyio
async def test_unsupported_method(client, auth_headers):
    resp = await client.put("/api/visitors", headers=auth_headers)
    assert resp.status_code == 405


@pytest.mark.anyio
async def test_list_backing_failure_returns_500(transport, client, auth_headers):
    class BrokenStore(LogOnlyVisitorStore):
        async def read_all(self):
            raise RuntimeError("read failed")

    app.dependency_overrides[get_visitor_store] = lambda: BrokenStore()
    resp = await client.get("/api/visitors", headers=auth_headers)
    assert resp.status_code == 500
    assert resp.json() == {"success": False, "error": "read failed"}


@pytest.mark.anyio
async def test_metrics_requires_token(client, auth_headers):
    assert (await client.get("/metrics")).status_code == 401
    resp = await client.get("/metrics", headers=auth_headers)
    assert resp.status_code == 200
    assert "visits_tracked_total" in resp.text
