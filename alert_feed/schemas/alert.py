"""
Schemas for alert API endpoints.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from alert_feed.feeds.entry import AlertRecord
from alert_feed.services.poller import AlertFeedState


class AlertResponse(BaseModel):
    """Response schema for a single alert."""
    id: str
    title: str
    content: str
    link: str
    published: str
    source: str
    keyword: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @classmethod
    def from_record(cls, record: AlertRecord) -> "AlertResponse":
        return cls.model_validate(record)


class AlertListResponse(BaseModel):
    """Response schema for alerts stored under a keyword."""
    keyword: str
    alerts: List[AlertResponse]
    total: int


class RefreshRequest(BaseModel):
    """Request schema for running one polling cycle."""
    url: str = Field(..., description="Feed URL to poll")
    keyword: str = Field(..., description="Keyword the alerts are stored under")


class AlertFeedStateResponse(BaseModel):
    """Response schema for a poller state snapshot."""
    status: str
    data: Optional[List[AlertResponse]] = None
    error: Optional[str] = None
    is_loading: bool = False
    message: Optional[str] = None
    active_alert: Optional[AlertResponse] = None
    new_alerts_stored: int = 0

    @classmethod
    def from_state(cls, state: AlertFeedState) -> "AlertFeedStateResponse":
        return cls(
            status=state.status.value,
            data=(
                [AlertResponse.from_record(r) for r in state.data]
                if state.data is not None else None
            ),
            error=str(state.error) if state.error else None,
            is_loading=state.is_loading,
            message=state.message,
            active_alert=(
                AlertResponse.from_record(state.active_alert)
                if state.active_alert else None
            ),
            new_alerts_stored=state.new_alerts_stored,
        )
