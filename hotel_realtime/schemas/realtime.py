from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel

from hotel_realtime.schemas.notification import NotificationItem

CONTROL_MESSAGE_TYPES = {"connected", "subscribed", "unsubscribed", "pong"}


# Outbound frames (client -> push server)

class ChannelRequest(BaseModel):
    type: Literal["subscribe", "unsubscribe"]
    channel: str


class PingRequest(BaseModel):
    type: Literal["ping"] = "ping"


# Local API

class ConnectionStatusResponse(BaseModel):
    state: str
    is_connected: bool
    endpoint: str | None = None
    channels: list[str]


class SubscriptionListResponse(BaseModel):
    channels: list[str]


class SubscriptionResponse(BaseModel):
    channel: str
    subscribed: bool
    sent: bool = False


class SummaryResponse(BaseModel):
    total_notifications: int
    unread_notifications: int
    active_channels: int
    is_connected: bool
    by_type: dict[str, int]
    recent: dict[str, list[NotificationItem]]
    last_update: datetime


class SessionResponse(BaseModel):
    user_id: str | None = None
    role: str | None = None
    channels: list[str]
    state: str


class DashboardResponse(BaseModel):
    name: str
    data: Any = None
    error: str | None = None
    last_fetched_at: datetime | None = None
    refresh_on: list[str]
