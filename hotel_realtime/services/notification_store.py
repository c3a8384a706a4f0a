import logging
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterator

from hotel_realtime.core.config import settings
from hotel_realtime.schemas.notification import Notification, NotificationFilter, NotificationType
from hotel_realtime.services.callbacks import CallbackSet

logger = logging.getLogger(__name__)


class ChangeKind(str, Enum):
    INSERTED = "inserted"
    EVICTED = "evicted"
    READ = "read"
    ALL_READ = "all_read"
    CLEARED = "cleared"


@dataclass(frozen=True)
class StoreChange:
    kind: ChangeKind
    ids: tuple[str, ...] = field(default_factory=tuple)


class NotificationView:
    """A filtered projection of the store, re-derived on every iteration."""

    def __init__(self, source: Callable[[], Iterator[Notification]], predicate: Callable[[Notification], bool]):
        self._source = source
        self._predicate = predicate

    def __iter__(self) -> Iterator[Notification]:
        return (n for n in self._source() if self._predicate(n))

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def __bool__(self) -> bool:
        return any(True for _ in self)

    def first(self, limit: int) -> list[Notification]:
        items = []
        for n in self:
            if len(items) >= limit:
                break
            items.append(n)
        return items


class NotificationStore:
    """Bounded, newest-first collection of the session's notifications.

    Records live in an insertion-ordered dict keyed by id (oldest first), so
    eviction pops the first key and iteration walks it in reverse. The unread
    count is kept up to date by every mutation.
    """

    def __init__(self, limit: int = settings.NOTIFICATION_LIMIT):
        if limit < 1:
            raise ValueError("limit must be at least 1")
        self.limit = limit
        self._records: dict[str, Notification] = {}
        self._unread = 0
        self.listeners = CallbackSet("notification store")

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[Notification]:
        return reversed(list(self._records.values()))

    def __contains__(self, notification_id: object) -> bool:
        return notification_id in self._records

    @property
    def unread_count(self) -> int:
        return self._unread

    def get(self, notification_id: str) -> Notification | None:
        return self._records.get(notification_id)

    def insert(self, record: Notification) -> bool:
        if record.id in self._records:
            logger.debug("Duplicate notification %s ignored", record.id)
            return False
        self._records[record.id] = record
        if not record.read:
            self._unread += 1
        self.listeners.fire(StoreChange(ChangeKind.INSERTED, (record.id,)))

        evicted = []
        while len(self._records) > self.limit:
            oldest_id = next(iter(self._records))
            oldest = self._records.pop(oldest_id)
            if not oldest.read:
                self._unread -= 1
            evicted.append(oldest_id)
        if evicted:
            self.listeners.fire(StoreChange(ChangeKind.EVICTED, tuple(evicted)))
        return True

    def mark_read(self, notification_id: str) -> bool:
        record = self._records.get(notification_id)
        if record is None or record.read:
            return False
        self._records[notification_id] = record.model_copy(update={"read": True})
        self._unread -= 1
        self.listeners.fire(StoreChange(ChangeKind.READ, (notification_id,)))
        return True

    def mark_all_read(self) -> int:
        changed = []
        for notification_id, record in self._records.items():
            if not record.read:
                self._records[notification_id] = record.model_copy(update={"read": True})
                changed.append(notification_id)
        self._unread = 0
        if changed:
            self.listeners.fire(StoreChange(ChangeKind.ALL_READ, tuple(changed)))
        return len(changed)

    def clear(self) -> int:
        count = len(self._records)
        self._records.clear()
        self._unread = 0
        if count:
            self.listeners.fire(StoreChange(ChangeKind.CLEARED))
        return count

    def query(
        self,
        filter: NotificationFilter | str = NotificationFilter.ALL,
        type: NotificationType | str | None = None,
    ) -> NotificationView:
        """Return a live view: ``all``, ``unread`` or ``read``, optionally by type."""
        mode = NotificationFilter(filter)
        ntype = NotificationType(type) if type is not None else None

        def predicate(n: Notification) -> bool:
            if ntype is not None and n.type is not ntype:
                return False
            if mode is NotificationFilter.UNREAD:
                return not n.read
            if mode is NotificationFilter.READ:
                return n.read
            return True

        return NotificationView(self.__iter__, predicate)

    def recent(self, type: NotificationType | str, limit: int = 5) -> list[Notification]:
        return self.query(type=type).first(limit)

    def counts_by_type(self) -> dict[str, int]:
        counts = Counter(n.type.value for n in self._records.values())
        return {t.value: counts.get(t.value, 0) for t in NotificationType}
