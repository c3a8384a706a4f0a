import logging

from hotel_realtime.core.config import settings
from hotel_realtime.services.connection import ConnectionManager
from hotel_realtime.services.dispatcher import EventDispatcher
from hotel_realtime.services.notification_store import NotificationStore
from hotel_realtime.services.refresh_bus import RefreshBus
from hotel_realtime.services.subscriptions import ChannelRegistry, channels_for_role
from hotel_realtime.services.transport import TransportFactory, WebSocketTransport

logger = logging.getLogger(__name__)


class RealTimeSession:
    """Everything the UI needs for real-time notifications of one login.

    Build exactly one per authenticated session and hand it to whoever needs
    it; ``stop`` on logout releases the connection and forgets the
    notifications.
    """

    def __init__(
        self,
        connection: ConnectionManager | None = None,
        *,
        transport_factory: TransportFactory = WebSocketTransport.open,
        limit: int = settings.NOTIFICATION_LIMIT,
    ):
        self.connection = connection or ConnectionManager(transport_factory)
        self.registry = ChannelRegistry(self.connection)
        self.store = NotificationStore(limit=limit)
        self.bus = RefreshBus()
        self.dispatcher = EventDispatcher(self.store, self.bus)
        self.connection.message_listeners.add(self.dispatcher.on_message)

        self.user_id: str | None = None
        self.role: str | None = None

    @property
    def is_connected(self) -> bool:
        return self.connection.is_connected

    async def start(
        self,
        token: str | None = None,
        *,
        role: str | None = None,
        user_id: str | None = None,
        endpoint: str | None = None,
    ) -> None:
        self.user_id = user_id
        self.role = role
        for channel in channels_for_role(role, settings.base_channels):
            await self.registry.subscribe(channel)
        await self.connection.connect(endpoint or settings.REALTIME_WS_URL, token)
        logger.info("Real-time session started for %s (role=%s)", user_id or "anonymous", role)

    async def stop(self) -> None:
        await self.connection.disconnect()
        self.registry.clear()
        self.store.clear()
        self.user_id = None
        self.role = None
        logger.info("Real-time session stopped")
