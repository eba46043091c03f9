"""
Feed ingestion module: fetching, parsing, normalization and deduplication.
"""
from alert_feed.feeds.deduplication import dedup_key, deduplicate_alerts
from alert_feed.feeds.entry import AlertRecord, FeedEntry, sort_by_recency
from alert_feed.feeds.fetcher import FeedFetcher, FetcherConfig
from alert_feed.feeds.normalizer import EntryNormalizer
from alert_feed.feeds.parser import FeedDocumentParser
from alert_feed.feeds.sanitizer import TextSanitizer, sanitize_text

__all__ = [
    "AlertRecord",
    "FeedEntry",
    "sort_by_recency",
    "FeedFetcher",
    "FetcherConfig",
    "EntryNormalizer",
    "FeedDocumentParser",
    "TextSanitizer",
    "sanitize_text",
    "dedup_key",
    "deduplicate_alerts",
]
