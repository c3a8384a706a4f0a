import json
import logging
from typing import Any

from hotel_realtime.schemas.notification import Notification, NotificationType
from hotel_realtime.schemas.realtime import CONTROL_MESSAGE_TYPES
from hotel_realtime.services.notification_store import NotificationStore
from hotel_realtime.services.refresh_bus import RefreshBus

logger = logging.getLogger(__name__)


class EventDispatcher:
    """Turns push frames into notification records.

    This is the validation boundary: a frame that cannot become a record is
    logged and dropped, and ``on_message`` never raises.
    """

    def __init__(self, store: NotificationStore, bus: RefreshBus):
        self.store = store
        self.bus = bus
        self.dropped = 0

    def on_message(self, raw: str | bytes | dict) -> Notification | None:
        try:
            message = json.loads(raw) if isinstance(raw, (str, bytes, bytearray)) else raw
        except (ValueError, UnicodeDecodeError, RecursionError) as e:
            return self._drop("unparseable frame", e)
        if not isinstance(message, dict):
            return self._drop("frame is not an object", type(message).__name__)

        kind = message.get("type")
        if isinstance(kind, str) and kind in CONTROL_MESSAGE_TYPES:
            logger.debug("Control message %s (channel=%s)", kind, message.get("channel"))
            return None

        try:
            payload = self._payload(message)
            record = Notification.from_payload(payload)
        except (ValueError, TypeError, RecursionError) as e:
            return self._drop("invalid notification", e)

        if not self.store.insert(record):
            return None
        self.bus.emit(record)
        return record

    def _payload(self, message: dict[str, Any]) -> dict[str, Any]:
        kind = message.get("type")
        if kind == "notification":
            data = message.get("data")
            if not isinstance(data, dict):
                raise ValueError("notification envelope has no data object")
            payload = dict(data)
            # The envelope names the channel the event arrived on.
            for key in ("channel", "timestamp"):
                if message.get(key) is not None:
                    payload[key] = message[key]
            return payload
        if kind == "booking_confirmed":
            return {
                "id": message.get("id"),
                "type": NotificationType.BOOKING_UPDATE.value,
                "action": "confirmed",
                "channel": message.get("channel") or "reception",
                "timestamp": message.get("timestamp"),
                "details": {
                    "booking_reference": message.get("booking_reference"),
                    "guest_name": message.get("guest_name"),
                    "room_number": message.get("room_number"),
                },
            }
        return message

    def _drop(self, reason: str, detail: Any) -> None:
        self.dropped += 1
        logger.warning("Dropped push message: %s (%s)", reason, detail)
        return None
