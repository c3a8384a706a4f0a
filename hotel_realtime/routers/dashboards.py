from fastapi import APIRouter, Depends, HTTPException, status

from hotel_realtime.core.deps import get_current_claims, get_feeds
from hotel_realtime.schemas.realtime import DashboardResponse
from hotel_realtime.services.backend_api import DashboardFeed

router = APIRouter(prefix="/dashboards", tags=["Dashboards"], dependencies=[Depends(get_current_claims)])


def _get_feed(name: str, feeds: dict[str, DashboardFeed]) -> DashboardFeed:
    feed = feeds.get(name)
    if feed is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Dashboard not found")
    return feed


def _response(feed: DashboardFeed) -> DashboardResponse:
    return DashboardResponse(
        name=feed.name,
        data=feed.data,
        error=feed.error,
        last_fetched_at=feed.last_fetched_at,
        refresh_on=[t.value for t in feed.refresh_on],
    )


@router.get("/{name}", response_model=DashboardResponse, summary="Dashboard data", description="Last data fetched from the backend; loaded on first access and re-fetched on matching real-time updates.")
async def get_dashboard(name: str, feeds: dict[str, DashboardFeed] = Depends(get_feeds)):
    feed = _get_feed(name, feeds)
    if feed.last_fetched_at is None and feed.error is None:
        await feed.refresh()
    return _response(feed)


@router.post("/{name}/refresh", response_model=DashboardResponse, summary="Re-fetch dashboard data")
async def refresh_dashboard(name: str, feeds: dict[str, DashboardFeed] = Depends(get_feeds)):
    feed = _get_feed(name, feeds)
    await feed.refresh()
    return _response(feed)
