import logging
from typing import Any, Callable

from hotel_realtime.schemas.notification import Notification, NotificationType
from hotel_realtime.services.callbacks import CallbackSet

logger = logging.getLogger(__name__)

RefreshCallback = Callable[[Notification], Any]


class RefreshBus:
    """Typed refresh signals for dashboards that fetch their own data.

    A signal only says "data of this kind changed on the server"; the record
    passed along is informational and must not be treated as the data itself.
    """

    def __init__(self):
        self._listeners: dict[NotificationType, CallbackSet] = {
            t: CallbackSet(f"refresh {t.value}") for t in NotificationType
        }

    def subscribe(self, event_type: NotificationType | str, callback: RefreshCallback) -> Callable[[], None]:
        return self._listeners[NotificationType(event_type)].add(callback)

    def listener_count(self, event_type: NotificationType | str) -> int:
        return len(self._listeners[NotificationType(event_type)])

    def emit(self, record: Notification) -> None:
        logger.debug("Refresh signal %s for %s", record.type.value, record.id)
        self._listeners[record.type].fire(record)
