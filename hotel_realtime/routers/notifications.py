from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, status

from hotel_realtime.core.deps import get_current_claims, get_realtime
from hotel_realtime.schemas.notification import (
    ClearResponse,
    MarkAllReadResponse,
    MarkReadResponse,
    NotificationFilter,
    NotificationListResponse,
    NotificationMeta,
    NotificationType,
)
from hotel_realtime.services.realtime import RealTimeSession
from hotel_realtime.services.templates import to_item

router = APIRouter(prefix="/notifications", tags=["Notifications"], dependencies=[Depends(get_current_claims)])


@router.get("", response_model=NotificationListResponse, summary="List notifications", description="Newest first. `filter` is all, unread or read; `type` narrows to one notification type.")
async def list_notifications(
    filter: NotificationFilter = Query(NotificationFilter.ALL),
    notification_type: NotificationType | None = Query(None, alias="type"),
    realtime: RealTimeSession = Depends(get_realtime),
):
    store = realtime.store
    now = datetime.now(timezone.utc)
    items = [to_item(n, now) for n in store.query(filter, notification_type)]
    unread = store.unread_count

    return NotificationListResponse(
        data=items,
        meta=NotificationMeta(
            filter=filter,
            total=len(store),
            unread_count=unread,
            read_count=len(store) - unread,
        ),
    )


@router.post("/read-all", response_model=MarkAllReadResponse, summary="Mark all as read")
async def mark_all_read(realtime: RealTimeSession = Depends(get_realtime)):
    return MarkAllReadResponse(updated_count=realtime.store.mark_all_read())


@router.post("/{notification_id}/read", response_model=MarkReadResponse, summary="Mark as read", description="Marking an already read notification again is a no-op.")
async def mark_read(notification_id: str, realtime: RealTimeSession = Depends(get_realtime)):
    if notification_id not in realtime.store:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")

    realtime.store.mark_read(notification_id)
    return MarkReadResponse(id=notification_id)


@router.delete("", response_model=ClearResponse, summary="Clear all notifications")
async def clear_notifications(realtime: RealTimeSession = Depends(get_realtime)):
    return ClearResponse(cleared_count=realtime.store.clear())
