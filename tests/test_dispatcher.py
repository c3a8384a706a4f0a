"""Tests for turning push frames into notification records."""
import json
from datetime import datetime, timezone

import pytest

from hotel_realtime.schemas.notification import (
    MaintenanceDetails,
    NotificationType,
    RoomStatusDetails,
    Severity,
    UnknownDetails,
)
from hotel_realtime.services.dispatcher import EventDispatcher
from hotel_realtime.services.notification_store import NotificationStore
from hotel_realtime.services.refresh_bus import RefreshBus
from tests.conftest import make_payload


@pytest.fixture
def store():
    return NotificationStore()


@pytest.fixture
def bus():
    return RefreshBus()


@pytest.fixture
def dispatcher(store, bus):
    return EventDispatcher(store, bus)


def test_flat_record_is_stored(dispatcher, store):
    record = dispatcher.on_message(json.dumps(make_payload()))
    assert record is not None
    assert record.id == "n1"
    assert record.type is NotificationType.MAINTENANCE_UPDATE
    assert isinstance(record.details, MaintenanceDetails)
    assert record.details.room_number == "204"
    assert record.severity is Severity.WARNING
    assert record.timestamp == datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)
    assert store.unread_count == 1


def test_envelope_from_push_server(dispatcher, store):
    frame = {
        "type": "notification",
        "channel": "reception",
        "timestamp": 1704103200,
        "data": {
            "id": 42,
            "type": "room_status_update",
            "action": "updated",
            "details": {"room_number": 101, "old_status": "occupied", "new_status": "cleaning"},
        },
    }
    record = dispatcher.on_message(json.dumps(frame))
    assert record.id == "42"
    assert record.channel == "reception"
    assert record.timestamp == datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)
    assert isinstance(record.details, RoomStatusDetails)
    assert record.details.room_number == "101"
    assert record.details.new_status == "cleaning"
    assert record.severity is Severity.INFO
    assert "42" in store


def test_booking_confirmed_becomes_booking_update(dispatcher):
    frame = {
        "type": "booking_confirmed",
        "booking_reference": "BK-1001",
        "guest_name": "A. Guest",
        "room_number": "305",
        "timestamp": "2024-02-01T12:00:00Z",
    }
    record = dispatcher.on_message(frame)
    assert record.type is NotificationType.BOOKING_UPDATE
    assert record.action == "confirmed"
    assert record.channel == "reception"
    assert record.details.booking_reference == "BK-1001"
    assert record.details.room_number == "305"


@pytest.mark.parametrize("kind", ["connected", "subscribed", "unsubscribed", "pong"])
def test_control_messages_are_not_stored(dispatcher, store, kind):
    assert dispatcher.on_message({"type": kind, "channel": "admin"}) is None
    assert len(store) == 0
    assert dispatcher.dropped == 0


@pytest.mark.parametrize(
    "frame",
    [
        json.dumps({"action": "created", "details": {"room_number": "1"}}),
        "not json at all",
        b"\xff\xfe",
        json.dumps([1, 2, 3]),
        json.dumps(make_payload(details="room 204")),
        json.dumps(make_payload(severity="apocalyptic")),
        json.dumps(make_payload(timestamp="yesterday")),
        json.dumps({"type": "notification", "channel": "admin", "data": "oops"}),
        json.dumps({"type": "", "id": "x"}),
        json.dumps({"type": ["maintenance_update"]}),
        json.dumps({"type": {"a": 1}}),
        pytest.param("[" * 100000 + "]" * 100000, id="deeply-nested-array"),
    ],
)
def test_malformed_frames_are_dropped(dispatcher, store, bus, frame):
    changes = []
    store.listeners.add(changes.append)
    signals = []
    bus.subscribe("maintenance_update", signals.append)

    assert dispatcher.on_message(frame) is None
    assert len(store) == 0
    assert changes == []
    assert signals == []
    assert dispatcher.dropped == 1


def test_missing_id_is_synthesized(dispatcher):
    payload = make_payload()
    del payload["id"]
    first = dispatcher.on_message(payload)
    second = dispatcher.on_message(payload)
    assert first.id and second.id
    assert first.id != second.id


def test_missing_timestamp_uses_receipt_time(dispatcher):
    payload = make_payload()
    del payload["timestamp"]
    record = dispatcher.on_message(payload)
    assert (datetime.now(timezone.utc) - record.timestamp).total_seconds() < 5


def test_duplicate_is_not_signalled_twice(dispatcher, bus):
    signals = []
    bus.subscribe("maintenance_update", signals.append)
    assert dispatcher.on_message(make_payload()) is not None
    assert dispatcher.on_message(make_payload()) is None
    assert [n.id for n in signals] == ["n1"]


def test_unknown_type_keeps_raw_payload(dispatcher):
    record = dispatcher.on_message(make_payload(id="x1", type="spa_update", details={"room_number": "9"}))
    assert record.type is NotificationType.UNKNOWN
    assert record.raw_type == "spa_update"
    assert isinstance(record.details, UnknownDetails)
    assert record.details.raw["type"] == "spa_update"


def test_extra_top_level_fields_fold_into_details(dispatcher):
    record = dispatcher.on_message(
        {"id": "s1", "type": "system_alert", "alert_type": "Fire drill", "message": "Assemble in the lobby"}
    )
    assert record.details.alert_type == "Fire drill"
    assert record.details.message == "Assemble in the lobby"


def test_refresh_signal_reaches_only_matching_type(dispatcher, bus):
    maintenance, billing = [], []
    bus.subscribe("maintenance_update", maintenance.append)
    bus.subscribe(NotificationType.BILLING_UPDATE, billing.append)

    dispatcher.on_message(make_payload())
    assert [n.id for n in maintenance] == ["n1"]
    assert billing == []


def test_refresh_listener_can_unsubscribe(dispatcher, bus):
    signals = []
    unsubscribe = bus.subscribe("maintenance_update", signals.append)
    unsubscribe()
    dispatcher.on_message(make_payload())
    assert signals == []
    assert bus.listener_count("maintenance_update") == 0


def test_envelope_channel_and_timestamp_win(dispatcher):
    frame = {
        "type": "notification",
        "channel": "reception",
        "timestamp": "2024-03-01T08:30:00Z",
        "data": {
            "id": "b7",
            "type": "booking_update",
            "action": "created",
            "channel": "admin",
            "timestamp": "2020-01-01T00:00:00Z",
        },
    }
    record = dispatcher.on_message(frame)
    assert record.channel == "reception"
    assert record.timestamp == datetime(2024, 3, 1, 8, 30, tzinfo=timezone.utc)


def test_envelope_without_channel_keeps_inner_one(dispatcher):
    frame = {"type": "notification", "data": make_payload(channel="maintenance")}
    record = dispatcher.on_message(frame)
    assert record.channel == "maintenance"
