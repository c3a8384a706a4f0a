import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class NotificationType(str, Enum):
    MAINTENANCE_UPDATE = "maintenance_update"
    HOUSEKEEPING_UPDATE = "housekeeping_update"
    ROOM_STATUS_UPDATE = "room_status_update"
    BOOKING_UPDATE = "booking_update"
    BILLING_UPDATE = "billing_update"
    SYSTEM_ALERT = "system_alert"
    UNKNOWN = "unknown"

    @classmethod
    def from_tag(cls, tag: str) -> "NotificationType":
        try:
            member = cls(tag)
        except ValueError:
            return cls.UNKNOWN
        return member


class Severity(str, Enum):
    CRITICAL = "critical"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class NotificationFilter(str, Enum):
    ALL = "all"
    UNREAD = "unread"
    READ = "read"


class _Details(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True, coerce_numbers_to_str=True)


class MaintenanceDetails(_Details):
    room_number: str | None = None
    description: str | None = None


class HousekeepingDetails(_Details):
    room_number: str | None = None


class RoomStatusDetails(_Details):
    room_number: str | None = None
    old_status: str | None = None
    new_status: str | None = None


class BookingDetails(_Details):
    room_number: str | None = None
    booking_reference: str | None = None
    guest_name: str | None = None


class BillingDetails(_Details):
    room_number: str | None = None
    amount: float | None = None


class SystemAlertDetails(_Details):
    alert_type: str | None = None
    message: str | None = None


class UnknownDetails(BaseModel):
    """Whatever payload arrived with a type this client does not know."""

    model_config = ConfigDict(frozen=True)

    raw: dict[str, Any] = Field(default_factory=dict)


Details = (
    MaintenanceDetails
    | HousekeepingDetails
    | RoomStatusDetails
    | BookingDetails
    | BillingDetails
    | SystemAlertDetails
    | UnknownDetails
)

DETAILS_BY_TYPE: dict[NotificationType, type[BaseModel]] = {
    NotificationType.MAINTENANCE_UPDATE: MaintenanceDetails,
    NotificationType.HOUSEKEEPING_UPDATE: HousekeepingDetails,
    NotificationType.ROOM_STATUS_UPDATE: RoomStatusDetails,
    NotificationType.BOOKING_UPDATE: BookingDetails,
    NotificationType.BILLING_UPDATE: BillingDetails,
    NotificationType.SYSTEM_ALERT: SystemAlertDetails,
    NotificationType.UNKNOWN: UnknownDetails,
}

RECORD_FIELDS = {"id", "type", "action", "details", "severity", "channel", "timestamp", "read"}


class Notification(BaseModel):
    """A single real-time event as held by the notification store.

    Records are immutable; the store replaces a record with a copy when its
    read state changes.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    type: NotificationType
    raw_type: str
    action: str = ""
    details: Details
    severity: Severity = Severity.INFO
    channel: str = "general"
    timestamp: datetime
    read: bool = False

    @field_validator("timestamp")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @model_validator(mode="after")
    def _details_match_type(self) -> "Notification":
        expected = DETAILS_BY_TYPE[self.type]
        if not isinstance(self.details, expected):
            raise ValueError(f"details for {self.type.value} must be {expected.__name__}")
        return self

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "Notification":
        """Build a record from a decoded push message.

        Top-level keys that are not record fields are folded into ``details``
        (explicit ``details`` keys win). Raises ``ValueError`` (pydantic's
        ``ValidationError`` included) when the payload cannot form a record.
        """
        tag = payload.get("type")
        if not isinstance(tag, str) or not tag:
            raise ValueError("notification payload has no type")

        details = payload.get("details")
        if details is None:
            details = {}
        if not isinstance(details, dict):
            raise ValueError("notification details must be an object")

        ntype = NotificationType.from_tag(tag)
        if ntype is NotificationType.UNKNOWN:
            parsed_details = UnknownDetails(raw=dict(payload))
        else:
            extra = {k: v for k, v in payload.items() if k not in RECORD_FIELDS}
            parsed_details = DETAILS_BY_TYPE[ntype].model_validate({**extra, **details})

        raw_id = payload.get("id")
        if raw_id is None or raw_id == "":
            record_id = uuid.uuid4().hex
        else:
            record_id = str(raw_id)

        fields: dict[str, Any] = {
            "id": record_id,
            "type": ntype,
            "raw_type": tag,
            "details": parsed_details,
            "timestamp": payload.get("timestamp") or datetime.now(timezone.utc),
        }
        for key in ("action", "severity", "channel"):
            if payload.get(key) is not None:
                fields[key] = payload[key]
        return cls.model_validate(fields)

    def details_dict(self) -> dict[str, Any]:
        if isinstance(self.details, UnknownDetails):
            return dict(self.details.raw)
        return self.details.model_dump(exclude_none=True)


class NotificationItem(BaseModel):
    id: str
    type: str
    action: str
    title: str
    message: str
    icon: str
    color: str
    severity: Severity
    channel: str
    details: dict[str, Any]
    timestamp: datetime
    relative_time: str
    read: bool = False


class NotificationMeta(BaseModel):
    filter: NotificationFilter = NotificationFilter.ALL
    total: int
    unread_count: int = 0
    read_count: int = 0


class NotificationListResponse(BaseModel):
    data: list[NotificationItem]
    meta: NotificationMeta


class MarkReadResponse(BaseModel):
    id: str
    read: bool = True


class MarkAllReadResponse(BaseModel):
    updated_count: int


class ClearResponse(BaseModel):
    cleared_count: int
