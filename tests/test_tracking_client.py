import httpx
import pytest

from wedding_api.services.tracking_client import (
    AdminClient,
    ClientContext,
    TrackingEmitter,
    TrackingSession,
)
from wedding_api.utils.slug import deslugify

ADMIN_PASSWORD = "test-admin-secret"
IPHONE_CONTEXT = ClientContext(
    user_agent="Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X)",
    referrer="",
    screen_width=390,
    screen_height=844,
    language="en-IN",
)


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


@pytest.mark.anyio
async def test_duplicate_within_window_is_skipped(transport, file_store):
    clock = FakeClock()
    emitter = TrackingEmitter("http://test", transport=transport, clock=clock)
    guest = deslugify("uncle-rajan")

    first = await emitter.track_visit(guest, IPHONE_CONTEXT)
    assert first.success and not first.skipped
    assert first.stored == "json-file"
    assert first.data["deviceType"] == "Mobile"
    assert first.data["referrer"] == "Direct"

    clock.now += 3
    second = await emitter.track_visit(guest, IPHONE_CONTEXT)
    assert second.success and second.skipped
    assert second.reason == "duplicate"
    assert len((await file_store.read_all()).visitors) == 1

    clock.now += 10
    third = await emitter.track_visit(guest, IPHONE_CONTEXT)
    assert third.success and not third.skipped
    visitors = (await file_store.read_all()).visitors
    assert len(visitors) == 2
    assert all(v["guestName"] == "Uncle Rajan" for v in visitors)


@pytest.mark.anyio
async def test_different_guest_is_not_deduplicated(transport, file_store):
    emitter = TrackingEmitter("http://test", transport=transport, clock=FakeClock())
    await emitter.track_visit("Uncle Rajan")
    result = await emitter.track_visit(None)
    assert result.success and not result.skipped
    assert result.data["guestName"] == "Direct Visit"
    assert len((await file_store.read_all()).visitors) == 2


def test_session_state_is_explicit():
    session = TrackingSession()
    assert not session.is_duplicate("Direct Visit", 0.0)
    session.mark("Direct Visit", 0.0)
    assert session.is_duplicate("Direct Visit", 9.9)
    assert not session.is_duplicate("Direct Visit", 10.0)
    assert not session.is_duplicate("Uncle Rajan", 1.0)


@pytest.mark.anyio
async def test_transport_failure_is_swallowed():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    emitter = TrackingEmitter("http://test", transport=httpx.MockTransport(handler))
    result = await emitter.track_visit("Uncle Rajan")
    assert result.success is False
    assert "connection refused" in result.error


@pytest.mark.anyio
async def test_non_json_response_is_swallowed():
    emitter = TrackingEmitter(
        "http://test",
        transport=httpx.MockTransport(lambda request: httpx.Response(502, text="Bad Gateway")),
    )
    result = await emitter.track_visit("Uncle Rajan")
    assert result.success is False
    assert result.error


@pytest.mark.anyio
async def test_admin_client_list_and_clear(transport):
    emitter = TrackingEmitter("http://test", transport=transport)
    await emitter.track_visit("Uncle Rajan")

    admin = AdminClient("http://test", transport=transport)
    listed = await admin.list_visitors(ADMIN_PASSWORD)
    assert listed.success
    assert listed.count == 1
    assert listed.visitors[0]["guestName"] == "Uncle Rajan"

    denied = await admin.list_visitors("wrong")
    assert denied.success is False
    assert denied.error == "Unauthorized"
    assert denied.visitors == []

    cleared = await admin.clear_visitors(ADMIN_PASSWORD)
    assert cleared.success
    assert (await admin.list_visitors(ADMIN_PASSWORD)).count == 0


@pytest.mark.anyio
async def test_admin_client_network_failure():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    admin = AdminClient("http://test", transport=httpx.MockTransport(handler))
    result = await admin.list_visitors(ADMIN_PASSWORD)
    assert result.success is False
    assert result.visitors == []
