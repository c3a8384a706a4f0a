from fastapi import APIRouter

from hotel_realtime.routers import (
    dashboards,
    notifications,
    realtime,
    session,
    subscriptions,
    ws,
)

api_router = APIRouter()

api_router.include_router(session.router)
api_router.include_router(notifications.router)
api_router.include_router(subscriptions.router)
api_router.include_router(realtime.router)
api_router.include_router(dashboards.router)
api_router.include_router(ws.router)
