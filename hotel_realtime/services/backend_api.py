import logging
from datetime import datetime, timezone
from typing import Any

import httpx

from hotel_realtime.core.config import settings
from hotel_realtime.core.exceptions import BackendError
from hotel_realtime.core.security import bearer_headers
from hotel_realtime.schemas.notification import Notification, NotificationType
from hotel_realtime.services.refresh_bus import RefreshBus

logger = logging.getLogger(__name__)


class BackendClient:
    """Calls the PHP endpoints, which all answer ``{success, data?, message?}``."""

    def __init__(
        self,
        base_url: str = settings.BACKEND_BASE_URL,
        token: str | None = None,
        timeout: float = settings.BACKEND_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/") + "/",
            headers=bearer_headers(token),
            timeout=timeout,
            transport=transport,
        )

    def set_token(self, token: str | None) -> None:
        self._client.headers.pop("Authorization", None)
        self._client.headers.update(bearer_headers(token))

    async def request(self, method: str, endpoint: str, **kwargs: Any) -> Any:
        try:
            resp = await self._client.request(method, endpoint.lstrip("/"), **kwargs)
        except httpx.HTTPError as e:
            raise BackendError(f"{method} {endpoint} failed: {e}") from e

        try:
            body = resp.json()
        except ValueError:
            raise BackendError(f"{endpoint} returned invalid JSON", resp.status_code)

        if not isinstance(body, dict):
            raise BackendError(f"{endpoint} returned an unexpected response", resp.status_code)
        if resp.is_error or not body.get("success", False):
            message = body.get("message") or body.get("error") or f"HTTP {resp.status_code}"
            raise BackendError(message, resp.status_code)
        return body.get("data")

    async def get(self, endpoint: str, **kwargs: Any) -> Any:
        return await self.request("GET", endpoint, **kwargs)

    async def post(self, endpoint: str, **kwargs: Any) -> Any:
        return await self.request("POST", endpoint, **kwargs)

    async def put(self, endpoint: str, **kwargs: Any) -> Any:
        return await self.request("PUT", endpoint, **kwargs)

    async def delete(self, endpoint: str, **kwargs: Any) -> Any:
        return await self.request("DELETE", endpoint, **kwargs)

    async def aclose(self) -> None:
        await self._client.aclose()


class DashboardFeed:
    """One dashboard's server data, re-fetched whenever a matching refresh
    signal arrives. Errors stay on the feed that hit them."""

    def __init__(self, name: str, endpoint: str, refresh_on: list[NotificationType], client: BackendClient):
        self.name = name
        self.endpoint = endpoint
        self.refresh_on = refresh_on
        self._client = client
        self.data: Any = None
        self.error: str | None = None
        self.last_fetched_at: datetime | None = None
        self._unsubscribers: list = []

    def attach(self, bus: RefreshBus) -> None:
        for event_type in self.refresh_on:
            self._unsubscribers.append(bus.subscribe(event_type, self._on_signal))

    def detach(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()

    async def refresh(self) -> Any:
        try:
            self.data = await self._client.get(self.endpoint)
        except BackendError as e:
            self.error = e.message
            logger.warning("Dashboard %s refresh failed: %s", self.name, e.message)
        else:
            self.error = None
            self.last_fetched_at = datetime.now(timezone.utc)
        return self.data

    async def _on_signal(self, record: Notification) -> None:
        logger.debug("Dashboard %s refreshing after %s", self.name, record.id)
        await self.refresh()


# Dashboards and the refresh signals that make them re-fetch.
DASHBOARDS: dict[str, tuple[str, list[NotificationType]]] = {
    "maintenance": ("maintenance/get_maintenance.php", [NotificationType.MAINTENANCE_UPDATE]),
    "housekeeping": ("housekeeping/get_tasks.php", [NotificationType.HOUSEKEEPING_UPDATE]),
    "rooms": ("rooms/getAll.php", [NotificationType.ROOM_STATUS_UPDATE, NotificationType.BOOKING_UPDATE]),
    "billing": ("api/billing.php", [NotificationType.BILLING_UPDATE]),
}


def build_feeds(client: BackendClient, bus: RefreshBus) -> dict[str, DashboardFeed]:
    feeds = {}
    for name, (endpoint, refresh_on) in DASHBOARDS.items():
        feed = DashboardFeed(name, endpoint, refresh_on, client)
        feed.attach(bus)
        feeds[name] = feed
    return feeds
