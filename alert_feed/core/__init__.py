# Core module - configuration, database connection and errors
from alert_feed.core.config import Settings, get_settings
from alert_feed.core.database import AlertDatabase, Base, alert_db
from alert_feed.core.exceptions import (
    AlertFeedError,
    FetchError,
    InputError,
    ParseError,
    StorageError,
    StorageReadError,
    StorageWriteError,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Database
    "AlertDatabase",
    "Base",
    "alert_db",
    # Errors
    "AlertFeedError",
    "FetchError",
    "InputError",
    "ParseError",
    "StorageError",
    "StorageReadError",
    "StorageWriteError",
]
