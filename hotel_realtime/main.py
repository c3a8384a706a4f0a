import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from hotel_realtime.core.config import settings
from hotel_realtime.core.logging import setup_logging
from hotel_realtime.core.security import decode_token
from hotel_realtime.routers import api_router
from hotel_realtime.routers.ws import ConsumerHub
from hotel_realtime.services.backend_api import BackendClient, build_feeds
from hotel_realtime.services.realtime import RealTimeSession

logger = logging.getLogger(__name__)

TAGS_METADATA = [
    {"name": "Session", "description": "Start (login) and end (logout) the real-time session."},
    {"name": "Notifications", "description": "Notification list with all/unread/read filters, mark as read, clear."},
    {"name": "Subscriptions", "description": "Channels the client listens to (admin, reception, housekeeping, maintenance, ...)."},
    {"name": "Real-time", "description": "Push connection status and the real-time dashboard summary."},
    {"name": "Dashboards", "description": "Backend data for dashboards, re-fetched when a matching update arrives."},
    {"name": "WebSocket", "description": "Live status and notification changes for UI consumers."},
]

DESCRIPTION = """
# Hotel real-time notifications

Keeps one push connection to the hotel notification server per session and
serves the notification bell, panel and dashboards.

## Authorization

```
Authorization: Bearer <token>
```

## WebSocket

```
ws://localhost:8000/v1/ws?token=<jwt_access_token>
```

**Actions:** `{"action": "read", "id": "..."}`, `{"action": "read_all"}`,
`{"action": "clear"}`, `{"action": "status"}`

**Events:** `status` (connection state, unread count) and `notifications`
(`kind` is inserted, evicted, read, all_read or cleared).
"""


def init_state(app: FastAPI, realtime: RealTimeSession | None = None, backend: BackendClient | None = None) -> None:
    """Build the session-wide objects and hang them on ``app.state``."""
    realtime = realtime or RealTimeSession()
    backend = backend or BackendClient(token=settings.AUTH_TOKEN)
    app.state.realtime = realtime
    app.state.backend = backend
    app.state.feeds = build_feeds(backend, realtime.bus)
    app.state.hub = ConsumerHub(realtime)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.LOG_LEVEL)
    realtime: RealTimeSession = app.state.realtime

    if settings.AUTH_TOKEN:
        claims = decode_token(settings.AUTH_TOKEN) or {}
        await realtime.start(settings.AUTH_TOKEN, role=claims.get("role"), user_id=claims.get("sub"))
    else:
        logger.info("No AUTH_TOKEN configured, waiting for POST %s/session", settings.API_V1_PREFIX)

    yield

    await realtime.stop()
    await app.state.backend.aclose()


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description=DESCRIPTION,
    openapi_tags=TAGS_METADATA,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix=settings.API_V1_PREFIX)

init_state(app)


@app.get("/health", tags=["Health"])
async def health():
    """Liveness check; also reports the push connection state."""
    return {"status": "ok", "realtime": app.state.realtime.connection.state.value}
