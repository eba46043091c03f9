"""
SQLAlchemy models for the keyword alert feed.
"""
from alert_feed.models.alert import Alert

__all__ = [
    "Alert",
]
