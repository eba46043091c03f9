"""
Exception hierarchy for the feed ingestion pipeline.
"""
from typing import Optional


class AlertFeedError(Exception):
    """Base exception for alert feed errors."""
    pass


class InputError(AlertFeedError):
    """Feed URL or keyword missing."""
    pass


class FetchError(AlertFeedError):
    """Feed could not be retrieved (transport failure or non-2xx status)."""
    
    def __init__(self, url: str, message: str, status_code: Optional[int] = None):
        super().__init__(f"{message} ({url})")
        self.url = url
        self.status_code = status_code


class ParseError(AlertFeedError):
    """Feed document is not well-formed XML."""
    pass


class StorageError(AlertFeedError):
    """Database or connection failure inside a session."""
    pass


class StorageReadError(StorageError):
    """Alert query failed."""
    pass


class StorageWriteError(StorageError):
    """Insert of a single alert failed."""
    
    def __init__(self, key: str, message: str):
        super().__init__(f"{message} (key={key})")
        self.key = key
