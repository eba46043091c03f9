"""
Alert API endpoints: stored alerts, manual refresh and a live state stream.
"""
from typing import AsyncIterator, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import StreamingResponse

from alert_feed.core.config import get_settings
from alert_feed.core.exceptions import InputError
from alert_feed.feeds.fetcher import FeedFetcher
from alert_feed.schemas.alert import (
    AlertFeedStateResponse,
    AlertListResponse,
    AlertResponse,
    RefreshRequest,
)
from alert_feed.services.alert_store import AlertStore, alert_store
from alert_feed.services.feed import FeedService
from alert_feed.services.poller import AlertFeedPoller, subscribe

router = APIRouter(prefix="/alerts", tags=["alerts"])

# Shared HTTP client, started and closed by the application lifespan
feed_fetcher = FeedFetcher()


def get_alert_store() -> AlertStore:
    return alert_store


def get_feed_service() -> FeedService:
    return FeedService(feed_fetcher)


@router.get("", response_model=AlertListResponse)
async def list_alerts(
    keyword: str = Query(..., min_length=1, description="Tracked keyword"),
    store: AlertStore = Depends(get_alert_store),
):
    """
    Get alerts stored under a keyword, newest first.
    """
    keyword = keyword.strip()
    records = await store.get_alerts_by_keyword(keyword)
    return AlertListResponse(
        keyword=keyword,
        alerts=[AlertResponse.from_record(r) for r in records],
        total=len(records),
    )


@router.post("/refresh", response_model=AlertFeedStateResponse)
async def refresh_alerts(
    request: RefreshRequest,
    store: AlertStore = Depends(get_alert_store),
    feed_service: FeedService = Depends(get_feed_service),
):
    """
    Run a single fetch/store cycle and return the resulting state.
    """
    poller = AlertFeedPoller(
        feed_service=feed_service,
        store=store,
        url=request.url,
        keyword=request.keyword,
        auto_refresh=False,
    )
    state = await poller.refresh()
    if isinstance(state.error, InputError):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=state.message,
        )
    return AlertFeedStateResponse.from_state(state)


@router.get("/stream")
async def stream_alerts(
    url: str = Query(..., description="Feed URL to poll"),
    keyword: str = Query(..., description="Tracked keyword"),
    auto_refresh: Optional[bool] = Query(default=None, description="Keep polling on an interval"),
    store: AlertStore = Depends(get_alert_store),
    feed_service: FeedService = Depends(get_feed_service),
):
    """
    Stream poller state snapshots as newline-delimited JSON.
    """
    if auto_refresh is None:
        auto_refresh = get_settings().POLL_AUTO_REFRESH

    async def body() -> AsyncIterator[str]:
        async for state in subscribe(
            url,
            keyword,
            auto_refresh,
            feed_service=feed_service,
            store=store,
        ):
            yield AlertFeedStateResponse.from_state(state).model_dump_json() + "\n"

    return StreamingResponse(body(), media_type="application/x-ndjson")
