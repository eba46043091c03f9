"""
Canonical feed entry and persisted alert record types.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import List, Optional, TypeVar

T = TypeVar("T", bound="FeedEntry")

EPOCH_MIN = datetime.min.replace(tzinfo=timezone.utc)


@dataclass
class FeedEntry:
    """One syndication item after normalization."""
    id: str
    title: str = ""
    content: str = ""
    link: str = ""
    published: str = ""
    source: str = ""


@dataclass
class AlertRecord(FeedEntry):
    """A feed entry stored under a tracked keyword."""
    keyword: str = ""
    created_at: Optional[datetime] = None
    record_id: Optional[int] = field(default=None, compare=False)

    @classmethod
    def from_entry(cls, entry: FeedEntry, keyword: str) -> "AlertRecord":
        """Build an unsaved record from a fetched entry."""
        return cls(
            id=entry.id,
            title=entry.title,
            content=entry.content,
            link=entry.link,
            published=entry.published,
            source=entry.source,
            keyword=keyword,
        )


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 or RFC 822 timestamp into an aware datetime.

    Naive values are taken as UTC.

    Returns:
        The datetime, or None if the value is neither format
    """
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        try:
            parsed = parsedate_to_datetime(value)
        except (TypeError, ValueError):
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_utc(moment: datetime) -> str:
    """Fixed-width UTC form, e.g. ``2024-05-01T10:00:00.000Z``."""
    utc = moment.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def published_sort_key(record: FeedEntry) -> datetime:
    """Parsed ``published`` timestamp; unparseable values sort last."""
    if not isinstance(record.published, str):
        return EPOCH_MIN
    return parse_timestamp(record.published) or EPOCH_MIN


def sort_by_recency(records: List[T]) -> List[T]:
    """Order records newest first, keeping input order for equal timestamps."""
    return sorted(records, key=published_sort_key, reverse=True)
