"""Tests for session, subscription, status, summary and dashboard endpoints."""
import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from hotel_realtime.core.security import create_access_token
from hotel_realtime.main import app, init_state
from hotel_realtime.services.backend_api import BackendClient
from hotel_realtime.services.connection import ConnectionManager
from hotel_realtime.services.realtime import RealTimeSession
from tests.conftest import FakeServer, auth_headers, make_payload, wait_until


@pytest.mark.asyncio
async def test_start_session_subscribes_role_channels(client, realtime, server):
    resp = await client.post("/v1/session", headers=auth_headers("staff-9", "housekeeping"))
    assert resp.status_code == 201
    body = resp.json()
    assert body["user_id"] == "staff-9"
    assert body["role"] == "housekeeping"
    assert body["channels"] == ["admin", "housekeeping"]

    await wait_until(lambda: realtime.is_connected and len(server.current.sent) == 2)
    assert {m["channel"] for m in server.current.sent} == {"admin", "housekeeping"}

    status = (await client.get("/v1/realtime/status", headers=auth_headers())).json()
    assert status["state"] == "connected"
    assert status["is_connected"] is True
    assert status["channels"] == ["admin", "housekeeping"]


@pytest.mark.asyncio
async def test_end_session_forgets_everything(client, realtime, server):
    await client.post("/v1/session", headers=auth_headers())
    await wait_until(lambda: realtime.is_connected)
    server.current.feed(make_payload())
    await wait_until(lambda: len(realtime.store) == 1)

    resp = await client.delete("/v1/session", headers=auth_headers())
    assert resp.status_code == 204
    assert len(realtime.store) == 0
    assert len(realtime.registry) == 0
    assert realtime.connection.state.value == "closed"


@pytest.mark.asyncio
async def test_subscriptions_endpoints(client, realtime):
    resp = await client.post("/v1/subscriptions/reception", headers=auth_headers())
    assert resp.json() == {"channel": "reception", "subscribed": True, "sent": False}

    resp = await client.get("/v1/subscriptions", headers=auth_headers())
    assert resp.json() == {"channels": ["reception"]}

    resp = await client.delete("/v1/subscriptions/reception", headers=auth_headers())
    assert resp.json()["subscribed"] is False

    resp = await client.delete("/v1/subscriptions/reception", headers=auth_headers())
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_summary(client, realtime):
    realtime.dispatcher.on_message(make_payload(id="m1"))
    realtime.dispatcher.on_message(make_payload(id="h1", type="housekeeping_update"))
    realtime.dispatcher.on_message(
        make_payload(id="r1", type="room_status_update", details={"room_number": "5", "new_status": "available"})
    )
    realtime.store.mark_read("h1")
    await realtime.registry.subscribe("admin")

    body = (await client.get("/v1/realtime/summary", headers=auth_headers())).json()
    assert body["total_notifications"] == 3
    assert body["unread_notifications"] == 2
    assert body["active_channels"] == 1
    assert body["by_type"]["maintenance_update"] == 1
    assert body["by_type"]["booking_update"] == 0
    assert [n["id"] for n in body["recent"]["room_status_update"]] == ["r1"]
    assert body["recent"]["room_status_update"][0]["message"] == "Room 5 is now available"


@pytest.mark.asyncio
async def test_dashboard_loads_and_refreshes(client, realtime, backend_routes):
    backend_routes["maintenance/get_maintenance.php"] = (200, {"success": True, "data": ["req-1"]})
    resp = await client.get("/v1/dashboards/maintenance", headers=auth_headers())
    body = resp.json()
    assert body["data"] == ["req-1"]
    assert body["error"] is None
    assert body["refresh_on"] == ["maintenance_update"]

    backend_routes["maintenance/get_maintenance.php"] = (200, {"success": True, "data": ["req-1", "req-2"]})
    feed = app.state.feeds["maintenance"]
    realtime.dispatcher.on_message(make_payload())
    await wait_until(lambda: feed.data == ["req-1", "req-2"])


@pytest.mark.asyncio
async def test_dashboard_error_is_reported(client, backend_routes):
    backend_routes["api/billing.php"] = (200, {"success": False, "message": "No billing records"})
    body = (await client.post("/v1/dashboards/billing/refresh", headers=auth_headers())).json()
    assert body["error"] == "No billing records"

    resp = await client.get("/v1/dashboards/spa", headers=auth_headers())
    assert resp.status_code == 404


def _ws_app():
    realtime = RealTimeSession(ConnectionManager(FakeServer().open, ping_interval=0))
    init_state(app, realtime=realtime, backend=BackendClient("http://backend.test/backend"))
    return realtime


def test_websocket_streams_changes():
    realtime = _ws_app()
    realtime.dispatcher.on_message(make_payload())
    token = create_access_token("staff-1", "reception")

    with TestClient(app).websocket_connect(f"/v1/ws?token={token}") as ws:
        first = ws.receive_json()
        assert first["event"] == "status"
        assert first["data"]["state"] == "disconnected"
        assert first["data"]["unread_count"] == 1

        ws.send_json({"action": "read", "id": "n1"})
        change = ws.receive_json()
        assert change["event"] == "notifications"
        assert change["data"]["kind"] == "read"
        assert change["data"]["ids"] == ["n1"]
        assert change["data"]["unread_count"] == 0


def test_websocket_rejects_bad_token():
    _ws_app()
    with pytest.raises(WebSocketDisconnect):
        with TestClient(app).websocket_connect("/v1/ws?token=nope") as ws:
            ws.receive_json()


def test_websocket_ignores_non_json_frames():
    _ws_app()
    token = create_access_token("staff-1", "reception")

    with TestClient(app).websocket_connect(f"/v1/ws?token={token}") as ws:
        assert ws.receive_json()["event"] == "status"
        ws.send_text("not json")
        ws.send_json({"action": "status"})
        assert ws.receive_json()["event"] == "status"
