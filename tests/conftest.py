import asyncio
import json

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from hotel_realtime.core.exceptions import TransportError
from hotel_realtime.core.security import create_access_token
from hotel_realtime.main import app, init_state
from hotel_realtime.services.backend_api import BackendClient
from hotel_realtime.services.connection import ConnectionManager
from hotel_realtime.services.realtime import RealTimeSession

PUSH_URL = "ws://push.test:8080"
BACKEND_URL = "http://backend.test/backend"


class FakeTransport:
    """In-memory push connection; ``feed`` delivers a frame, ``drop`` ends it."""

    def __init__(self):
        self.sent: list[dict] = []
        self.closed = False
        self._inbox: asyncio.Queue = asyncio.Queue()

    async def send(self, data: str) -> None:
        if self.closed:
            raise TransportError("transport is closed")
        self.sent.append(json.loads(data))

    def feed(self, frame) -> None:
        if not isinstance(frame, (str, bytes)):
            frame = json.dumps(frame)
        self._inbox.put_nowait(frame)

    def drop(self) -> None:
        self._inbox.put_nowait(None)

    async def __aiter__(self):
        while True:
            frame = await self._inbox.get()
            if frame is None:
                return
            yield frame

    async def close(self) -> None:
        self.closed = True
        self._inbox.put_nowait(None)


class FakeServer:
    """Transport factory; refuses the first ``fail_times`` connection attempts."""

    def __init__(self, fail_times: int = 0):
        self.fail_times = fail_times
        self.attempts = 0
        self.transports: list[FakeTransport] = []
        self.last_token: str | None = None

    async def open(self, endpoint: str, token: str | None = None) -> FakeTransport:
        self.attempts += 1
        self.last_token = token
        if self.fail_times > 0:
            self.fail_times -= 1
            raise TransportError("connection refused")
        transport = FakeTransport()
        self.transports.append(transport)
        return transport

    @property
    def current(self) -> FakeTransport:
        return self.transports[-1]


async def wait_until(predicate, attempts: int = 500) -> None:
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition was not reached")


def auth_headers(user_id: str = "staff-1", role: str | None = "reception") -> dict:
    token = create_access_token(user_id, role)
    return {"Authorization": f"Bearer {token}"}


def make_payload(**overrides) -> dict:
    payload = {
        "id": "n1",
        "type": "maintenance_update",
        "action": "created",
        "details": {"room_number": "204"},
        "severity": "warning",
        "channel": "admin",
        "timestamp": "2024-01-01T10:00:00Z",
        "read": False,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def server():
    return FakeServer()


@pytest.fixture
def delays():
    return []


@pytest_asyncio.fixture
async def connection(server, delays):
    async def record_sleep(delay):
        delays.append(delay)
        await asyncio.sleep(0)

    conn = ConnectionManager(
        server.open,
        initial_delay=5,
        max_delay=60,
        factor=2,
        ping_interval=0,
        sleep=record_sleep,
    )
    yield conn
    await conn.disconnect()


@pytest.fixture
def realtime(connection):
    return RealTimeSession(connection, limit=100)


@pytest.fixture
def backend_routes():
    # endpoint suffix -> (status code, JSON body)
    return {}


@pytest_asyncio.fixture
async def backend(backend_routes):
    def handler(request: httpx.Request) -> httpx.Response:
        for suffix, (status_code, body) in backend_routes.items():
            if request.url.path.endswith(suffix):
                return httpx.Response(status_code, json=body)
        return httpx.Response(404, json={"success": False, "message": "Endpoint not found"})

    client = BackendClient(BACKEND_URL, token="backend-token", transport=httpx.MockTransport(handler))
    yield client
    await client.aclose()


@pytest_asyncio.fixture
async def client(realtime, backend):
    init_state(app, realtime=realtime, backend=backend)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    await realtime.stop()
