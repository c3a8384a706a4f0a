import asyncio
from typing import AsyncIterator, Awaitable, Callable, Protocol

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import WebSocketException

from hotel_realtime.core.exceptions import TransportError
from hotel_realtime.core.security import bearer_headers


class Transport(Protocol):
    """An open push connection: send text frames, iterate inbound frames."""

    async def send(self, data: str) -> None: ...

    def __aiter__(self) -> AsyncIterator[str | bytes]: ...

    async def close(self) -> None: ...


TransportFactory = Callable[[str, str | None], Awaitable[Transport]]


class WebSocketTransport:
    """Transport over a websockets client connection."""

    def __init__(self, ws: ClientConnection):
        self._ws = ws

    @classmethod
    async def open(cls, endpoint: str, token: str | None = None, open_timeout: float = 10.0) -> "WebSocketTransport":
        try:
            ws = await connect(
                endpoint,
                additional_headers=bearer_headers(token),
                open_timeout=open_timeout,
            )
        except (OSError, asyncio.TimeoutError, WebSocketException) as e:
            raise TransportError(f"could not connect to {endpoint}: {e}") from e
        return cls(ws)

    async def send(self, data: str) -> None:
        try:
            await self._ws.send(data)
        except WebSocketException as e:
            raise TransportError(f"send failed: {e}") from e

    async def __aiter__(self):
        # Iteration ends cleanly on a normal close and raises on an abnormal one.
        try:
            async for message in self._ws:
                yield message
        except WebSocketException as e:
            raise TransportError(f"connection lost: {e}") from e

    async def close(self) -> None:
        await self._ws.close()
