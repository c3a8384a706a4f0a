import asyncio
import json
import logging
from enum import Enum
from typing import Any, Awaitable, Callable

from hotel_realtime.core.config import settings
from hotel_realtime.core.exceptions import TransportError
from hotel_realtime.schemas.realtime import PingRequest
from hotel_realtime.services.callbacks import CallbackSet
from hotel_realtime.services.transport import Transport, TransportFactory, WebSocketTransport

logger = logging.getLogger(__name__)


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    CLOSED = "closed"


class ConnectionManager:
    """Owns the push connection of one session.

    ``connect`` starts a background task that opens the transport, reads
    frames until it drops and then retries with exponential backoff until
    ``disconnect`` is called. Every state change goes to the status
    listeners, every inbound frame to the message listeners.
    """

    def __init__(
        self,
        transport_factory: TransportFactory = WebSocketTransport.open,
        *,
        initial_delay: float = settings.RECONNECT_INITIAL_SECONDS,
        max_delay: float = settings.RECONNECT_MAX_SECONDS,
        factor: float = settings.RECONNECT_FACTOR,
        ping_interval: float = settings.PING_INTERVAL_SECONDS,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self._factory = transport_factory
        self._initial_delay = initial_delay
        self._max_delay = max_delay
        self._factor = factor
        self._ping_interval = ping_interval
        self._sleep = sleep

        self._state = ConnectionState.DISCONNECTED
        self._transport: Transport | None = None
        self._task: asyncio.Task | None = None
        self._endpoint: str | None = None
        self._token: str | None = None
        self._attempt = 0
        self._reconnect_hook: Callable[[], Awaitable[Any]] | None = None

        self.status_listeners = CallbackSet("connection status")
        self.message_listeners = CallbackSet("connection message")

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    @property
    def endpoint(self) -> str | None:
        return self._endpoint

    def on_reconnect(self, hook: Callable[[], Awaitable[Any]]) -> None:
        """Register the coroutine run on every transition into ``connected``."""
        self._reconnect_hook = hook

    def backoff_delay(self, attempt: int) -> float:
        return min(self._max_delay, self._initial_delay * self._factor ** attempt)

    async def connect(self, endpoint: str, token: str | None = None) -> None:
        if self._task is not None and not self._task.done():
            return
        self._endpoint = endpoint
        self._token = token
        self._attempt = 0
        self._set_state(ConnectionState.CONNECTING)
        self._task = asyncio.create_task(self._run(), name="realtime-connection")

    async def disconnect(self) -> None:
        task, self._task = self._task, None
        if task is None and self._state is ConnectionState.CLOSED:
            return
        self._set_state(ConnectionState.CLOSED)
        if task is not None and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        await self._close_transport()
        logger.info("Push connection closed")

    async def send(self, message: dict) -> bool:
        transport = self._transport
        if not self.is_connected or transport is None:
            return False
        try:
            await transport.send(json.dumps(message))
        except TransportError as e:
            logger.warning("Could not send %s frame: %s", message.get("type"), e)
            return False
        return True

    async def _run(self) -> None:
        while True:
            try:
                self._transport = await self._factory(self._endpoint, self._token)
            except TransportError as e:
                logger.warning("Push connection to %s failed: %s", self._endpoint, e)
            except Exception:
                logger.exception("Unexpected error connecting to %s", self._endpoint)
            else:
                self._attempt = 0
                self._set_state(ConnectionState.CONNECTED)
                logger.info("Push connection to %s established", self._endpoint)
                await self._read(self._transport)
                logger.info("Push connection to %s dropped", self._endpoint)

            await self._close_transport()
            self._set_state(ConnectionState.DISCONNECTED)
            delay = self.backoff_delay(self._attempt)
            self._attempt += 1
            logger.info("Reconnecting in %.1fs (attempt %d)", delay, self._attempt)
            await self._sleep(delay)
            self._set_state(ConnectionState.CONNECTING)

    async def _read(self, transport: Transport) -> None:
        if self._reconnect_hook is not None:
            try:
                await self._reconnect_hook()
            except Exception:
                logger.exception("Reconnect hook failed")

        ping_task = None
        if self._ping_interval > 0:
            ping_task = asyncio.create_task(self._ping_loop(), name="realtime-ping")
        try:
            async for frame in transport:
                if self._state is ConnectionState.CLOSED:
                    break
                self.message_listeners.fire(frame)
        except TransportError as e:
            logger.warning("Push connection error: %s", e)
        except Exception:
            logger.exception("Unexpected error reading push connection")
        finally:
            if ping_task is not None:
                ping_task.cancel()

    async def _ping_loop(self) -> None:
        ping = PingRequest().model_dump()
        while True:
            await asyncio.sleep(self._ping_interval)
            await self.send(ping)

    async def _close_transport(self) -> None:
        transport, self._transport = self._transport, None
        if transport is None:
            return
        try:
            await transport.close()
        except Exception as e:
            logger.debug("Ignoring error while closing transport: %s", e)

    def _set_state(self, state: ConnectionState) -> None:
        if state is self._state:
            return
        # A cancelled run loop must not move a closed connection back.
        if self._state is ConnectionState.CLOSED and state is not ConnectionState.CONNECTING:
            return
        logger.debug("Connection state %s -> %s", self._state.value, state.value)
        self._state = state
        self.status_listeners.fire(state)
