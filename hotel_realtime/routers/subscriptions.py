from fastapi import APIRouter, Depends, HTTPException, status

from hotel_realtime.core.deps import get_current_claims, get_realtime
from hotel_realtime.schemas.realtime import SubscriptionListResponse, SubscriptionResponse
from hotel_realtime.services.realtime import RealTimeSession

router = APIRouter(prefix="/subscriptions", tags=["Subscriptions"], dependencies=[Depends(get_current_claims)])


@router.get("", response_model=SubscriptionListResponse, summary="Active subscriptions")
async def list_subscriptions(realtime: RealTimeSession = Depends(get_realtime)):
    return SubscriptionListResponse(channels=list(realtime.registry))


@router.post("/{channel}", response_model=SubscriptionResponse, summary="Subscribe to a channel", description="While disconnected the channel is remembered and subscribed on the next connect.")
async def subscribe(channel: str, realtime: RealTimeSession = Depends(get_realtime)):
    try:
        sent = await realtime.registry.subscribe(channel)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    return SubscriptionResponse(channel=channel.strip(), subscribed=True, sent=sent)


@router.delete("/{channel}", response_model=SubscriptionResponse, summary="Unsubscribe from a channel")
async def unsubscribe(channel: str, realtime: RealTimeSession = Depends(get_realtime)):
    if channel not in realtime.registry:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not subscribed to this channel")

    sent = await realtime.registry.unsubscribe(channel)
    return SubscriptionResponse(channel=channel, subscribed=False, sent=sent)
