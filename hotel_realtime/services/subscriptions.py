import logging
from typing import Iterator

from hotel_realtime.schemas.realtime import ChannelRequest
from hotel_realtime.services.connection import ConnectionManager

logger = logging.getLogger(__name__)

# Staff roles that get a channel of their own next to the base channels.
ROLE_CHANNELS = {"reception", "housekeeping", "maintenance"}


def channels_for_role(role: str | None, base: list[str] | None = None) -> list[str]:
    channels = list(base) if base is not None else ["admin"]
    if role in ROLE_CHANNELS and role not in channels:
        channels.append(role)
    return channels


class ChannelRegistry:
    """The set of channels this client wants events for.

    The registry installs ``flush`` as the connection's reconnect hook, so
    every channel is subscribed again whenever the connection comes up.
    """

    def __init__(self, connection: ConnectionManager):
        self._connection = connection
        self._channels: set[str] = set()
        connection.on_reconnect(self.flush)

    @property
    def channels(self) -> frozenset[str]:
        return frozenset(self._channels)

    def __contains__(self, channel: object) -> bool:
        return channel in self._channels

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._channels))

    def __len__(self) -> int:
        return len(self._channels)

    async def subscribe(self, channel: str) -> bool:
        """Add a channel. Returns True if a subscribe frame was sent."""
        channel = _check_channel(channel)
        if channel in self._channels:
            return False
        self._channels.add(channel)
        if not self._connection.is_connected:
            logger.debug("Channel %s remembered until the next connect", channel)
            return False
        return await self._send("subscribe", channel)

    async def unsubscribe(self, channel: str) -> bool:
        """Remove a channel. Returns True if an unsubscribe frame was sent."""
        channel = _check_channel(channel)
        if channel not in self._channels:
            return False
        self._channels.discard(channel)
        if not self._connection.is_connected:
            return False
        return await self._send("unsubscribe", channel)

    async def flush(self) -> None:
        for channel in sorted(self._channels):
            await self._send("subscribe", channel)

    def clear(self) -> None:
        self._channels.clear()

    async def _send(self, action: str, channel: str) -> bool:
        sent = await self._connection.send(ChannelRequest(type=action, channel=channel).model_dump())
        if sent:
            logger.info("Sent %s for channel %s", action, channel)
        return sent


def _check_channel(channel: str) -> str:
    if not isinstance(channel, str) or not channel.strip():
        raise ValueError("channel name must be a non-empty string")
    return channel.strip()
