"""
Entry normalization for parsed Atom and RSS documents.

Each canonical field is resolved through an ordered tuple of accessors; the
first accessor returning a non-empty string wins.
"""
import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence

from alert_feed.core.config import get_settings
from alert_feed.feeds.entry import FeedEntry, format_utc, parse_timestamp
from alert_feed.feeds.parser import ATTRIBUTE_PREFIX, TEXT_KEY
from alert_feed.feeds.sanitizer import TextSanitizer

logger = logging.getLogger(__name__)

Accessor = Callable[[Dict[str, Any]], Optional[str]]

HREF_KEY = f"{ATTRIBUTE_PREFIX}href"
REL_KEY = f"{ATTRIBUTE_PREFIX}rel"


def as_list(value: Any) -> List[Any]:
    """Coerce a parser value that may be missing, singular or plural to a list."""
    if value is None or value == "":
        return []
    if isinstance(value, list):
        return value
    return [value]


def text_of(value: Any) -> str:
    """Text of a plain string or a ``{"#text": ...}`` node."""
    if isinstance(value, list):
        value = value[0] if value else None
    if isinstance(value, dict):
        value = value.get(TEXT_KEY)
    if isinstance(value, str):
        return value
    return ""


def _pick_link(value: Any) -> Any:
    """Prefer the alternate (or rel-less) link when several are present."""
    if not isinstance(value, list):
        return value
    for candidate in value:
        if isinstance(candidate, dict) and candidate.get(REL_KEY, "alternate") == "alternate":
            return candidate
    return value[0] if value else None


def link_href(value: Any) -> str:
    """The ``href`` attribute of a structured link node."""
    value = _pick_link(value)
    if isinstance(value, dict):
        href = value.get(HREF_KEY)
        return href if isinstance(href, str) else ""
    return ""


def link_value(value: Any) -> str:
    """Link href for structured nodes, the raw string for scalar links."""
    value = _pick_link(value)
    if isinstance(value, dict):
        return link_href(value)
    if isinstance(value, str):
        return value.strip()
    return ""


def to_utc_iso(value: str) -> str:
    """
    Rewrite an ISO-8601 or RFC 822 timestamp as fixed-width UTC.

    Unparseable values are returned unchanged.
    """
    parsed = parse_timestamp(value)
    if parsed is None:
        return value
    return format_utc(parsed)


def utc_now_iso() -> str:
    """Current time in the form used for stored timestamps."""
    return format_utc(datetime.now(timezone.utc))


ID_ACCESSORS: Sequence[Accessor] = (
    lambda e: text_of(e.get("id")),
    lambda e: text_of(e.get("guid")),
    lambda e: link_href(e.get("link")),
)

LINK_ACCESSORS: Sequence[Accessor] = (
    lambda e: link_value(e.get("link")),
)

TITLE_ACCESSORS: Sequence[Accessor] = (
    lambda e: text_of(e.get("title")),
)

CONTENT_ACCESSORS: Sequence[Accessor] = (
    lambda e: text_of(e.get("content")),
    lambda e: text_of(e.get("content:encoded")),
    lambda e: text_of(e.get("summary")),
    lambda e: text_of(e.get("description")),
)

PUBLISHED_ACCESSORS: Sequence[Accessor] = (
    lambda e: text_of(e.get("published")),
    lambda e: text_of(e.get("updated")),
    lambda e: text_of(e.get("pubDate")),
    lambda e: text_of(e.get("dc:date")),
)


def resolve_field(
    entry: Dict[str, Any],
    accessors: Sequence[Accessor],
    default: Callable[[], str] = lambda: "",
) -> str:
    """
    Evaluate accessors in priority order.
    
    Args:
        entry: Raw entry node
        accessors: Accessors to try
        default: Factory for the value used when every accessor comes up empty
        
    Returns:
        The first non-empty value
    """
    for accessor in accessors:
        value = accessor(entry)
        if value:
            return value
    return default()


class EntryNormalizer:
    """
    Maps a parsed feed document onto canonical ``FeedEntry`` records.
    
    No entry is dropped and the parser's order is preserved.
    """
    
    def __init__(
        self,
        sanitizer: Optional[TextSanitizer] = None,
        default_source: Optional[str] = None,
        clock_ms: Callable[[], int] = lambda: int(time.time() * 1000),
        now_iso: Callable[[], str] = utc_now_iso,
    ):
        self.sanitizer = sanitizer or TextSanitizer()
        self.default_source = default_source or get_settings().FEED_DEFAULT_SOURCE
        self._clock_ms = clock_ms
        self._now_iso = now_iso
    
    def locate_entries(self, document: Dict[str, Any]) -> tuple[List[Any], str]:
        """
        Find the entry list and feed title in an Atom or RSS document.
        
        Returns:
            Tuple of (raw entries, feed title or empty string)
        """
        feed = document.get("feed")
        if isinstance(feed, dict):
            return as_list(feed.get("entry")), text_of(feed.get("title"))
        
        rss = document.get("rss")
        if isinstance(rss, dict):
            channel = rss.get("channel")
            if isinstance(channel, dict):
                return as_list(channel.get("item")), text_of(channel.get("title"))
        
        return [], ""
    
    def normalize(self, document: Dict[str, Any]) -> List[FeedEntry]:
        """
        Normalize every entry of a parsed document.
        
        Args:
            document: Output of ``FeedDocumentParser.parse``
            
        Returns:
            Entries in document order
        """
        raw_entries, feed_title = self.locate_entries(document)
        source = feed_title.strip() or self.default_source
        
        entries = [self.normalize_entry(raw, source) for raw in raw_entries]
        logger.debug("Normalized %d entries from '%s'", len(entries), source)
        return entries
    
    def normalize_entry(self, raw: Any, source: str) -> FeedEntry:
        """Normalize a single raw entry node."""
        entry = raw if isinstance(raw, dict) else {}
        
        return FeedEntry(
            id=resolve_field(entry, ID_ACCESSORS, lambda: str(self._clock_ms())),
            title=self.sanitizer.clean(resolve_field(entry, TITLE_ACCESSORS)),
            content=self.sanitizer.clean(resolve_field(entry, CONTENT_ACCESSORS)),
            link=resolve_field(entry, LINK_ACCESSORS),
            published=to_utc_iso(resolve_field(entry, PUBLISHED_ACCESSORS, self._now_iso)),
            source=source,
        )
