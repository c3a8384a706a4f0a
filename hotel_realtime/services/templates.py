"""Display rules for notifications: titles, messages, icons and colours."""
from datetime import datetime, timezone

from hotel_realtime.schemas.notification import Notification, NotificationItem, NotificationType

UNKNOWN_ROOM = "Unknown"

ICONS = {
    NotificationType.MAINTENANCE_UPDATE: "🔧",
    NotificationType.HOUSEKEEPING_UPDATE: "🧹",
    NotificationType.ROOM_STATUS_UPDATE: "🚪",
    NotificationType.BOOKING_UPDATE: "📅",
    NotificationType.BILLING_UPDATE: "💰",
    NotificationType.SYSTEM_ALERT: "⚠️",
}
DEFAULT_ICON = "📢"


def _room(n: Notification) -> str:
    return getattr(n.details, "room_number", None) or UNKNOWN_ROOM


def display_title(n: Notification) -> str:
    if n.type is NotificationType.MAINTENANCE_UPDATE:
        return f"Maintenance {n.action}".strip()
    if n.type is NotificationType.HOUSEKEEPING_UPDATE:
        return f"Housekeeping {n.action}".strip()
    if n.type is NotificationType.ROOM_STATUS_UPDATE:
        return "Room Status Changed"
    if n.type is NotificationType.BOOKING_UPDATE:
        return f"Booking {n.action}".strip()
    if n.type is NotificationType.BILLING_UPDATE:
        return f"Billing {n.action}".strip()
    if n.type is NotificationType.SYSTEM_ALERT:
        return n.details.alert_type or "System Alert"
    return "Notification"


def display_message(n: Notification) -> str:
    if n.type is NotificationType.MAINTENANCE_UPDATE:
        return f"Room {_room(n)}: {n.details.description or n.action}"
    if n.type in (NotificationType.HOUSEKEEPING_UPDATE, NotificationType.BOOKING_UPDATE):
        return f"Room {_room(n)}: {n.action}"
    if n.type is NotificationType.ROOM_STATUS_UPDATE:
        return f"Room {_room(n)} is now {n.details.new_status or UNKNOWN_ROOM.lower()}"
    if n.type is NotificationType.BILLING_UPDATE:
        return f"Billing record {n.action}".strip()
    if n.type is NotificationType.SYSTEM_ALERT:
        return n.details.message or ""
    return "You have a new notification"


def icon(n: Notification) -> str:
    return ICONS.get(n.type, DEFAULT_ICON)


def color(n: Notification) -> str:
    # Severity values double as CSS classes in the panel.
    return n.severity.value


def relative_time(timestamp: datetime, now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    minutes = int((now - timestamp).total_seconds() // 60)
    if minutes < 1:
        return "Just now"
    if minutes < 60:
        return f"{minutes}m ago"
    if minutes < 1440:
        return f"{minutes // 60}h ago"
    return timestamp.date().isoformat()


def to_item(n: Notification, now: datetime | None = None) -> NotificationItem:
    return NotificationItem(
        id=n.id,
        type=n.raw_type,
        action=n.action,
        title=display_title(n),
        message=display_message(n),
        icon=icon(n),
        color=color(n),
        severity=n.severity,
        channel=n.channel,
        details=n.details_dict(),
        timestamp=n.timestamp,
        relative_time=relative_time(n.timestamp, now),
        read=n.read,
    )
