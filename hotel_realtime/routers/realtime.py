from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from hotel_realtime.core.deps import get_current_claims, get_realtime
from hotel_realtime.schemas.notification import NotificationType
from hotel_realtime.schemas.realtime import ConnectionStatusResponse, SummaryResponse
from hotel_realtime.services.realtime import RealTimeSession
from hotel_realtime.services.templates import to_item

router = APIRouter(prefix="/realtime", tags=["Real-time"], dependencies=[Depends(get_current_claims)])

SUMMARY_SECTIONS = (
    NotificationType.MAINTENANCE_UPDATE,
    NotificationType.HOUSEKEEPING_UPDATE,
    NotificationType.ROOM_STATUS_UPDATE,
)


@router.get("/status", response_model=ConnectionStatusResponse, summary="Connection status")
async def connection_status(realtime: RealTimeSession = Depends(get_realtime)):
    return ConnectionStatusResponse(
        state=realtime.connection.state.value,
        is_connected=realtime.is_connected,
        endpoint=realtime.connection.endpoint,
        channels=list(realtime.registry),
    )


@router.get("/summary", response_model=SummaryResponse, summary="Dashboard summary", description="Totals, per-type counts and the five most recent maintenance, housekeeping and room status updates.")
async def summary(realtime: RealTimeSession = Depends(get_realtime)):
    store = realtime.store
    now = datetime.now(timezone.utc)
    return SummaryResponse(
        total_notifications=len(store),
        unread_notifications=store.unread_count,
        active_channels=len(realtime.registry),
        is_connected=realtime.is_connected,
        by_type=store.counts_by_type(),
        recent={t.value: [to_item(n, now) for n in store.recent(t)] for t in SUMMARY_SECTIONS},
        last_update=now,
    )
