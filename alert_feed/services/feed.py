"""
Feed service combining fetching, parsing and normalization.
"""
import logging
from typing import List, Optional

from alert_feed.feeds.entry import FeedEntry
from alert_feed.feeds.fetcher import FeedFetcher
from alert_feed.feeds.normalizer import EntryNormalizer
from alert_feed.feeds.parser import FeedDocumentParser

logger = logging.getLogger(__name__)


class FeedService:
    """
    Turns a feed URL into canonical entries.
    
    Fetch failures raise ``FetchError`` and malformed documents raise
    ``ParseError``; both are left to the caller.
    """
    
    def __init__(
        self,
        fetcher: FeedFetcher,
        parser: Optional[FeedDocumentParser] = None,
        normalizer: Optional[EntryNormalizer] = None,
    ):
        self.fetcher = fetcher
        self.parser = parser or FeedDocumentParser()
        self.normalizer = normalizer or EntryNormalizer()
    
    async def fetch_feed(self, url: str) -> List[FeedEntry]:
        """
        Fetch and normalize a feed.
        
        Args:
            url: Feed URL
            
        Returns:
            Entries in feed order, duplicates included
        """
        xml_text = await self.fetcher.fetch(url)
        document = self.parser.parse(xml_text)
        entries = self.normalizer.normalize(document)
        logger.info("Fetched %d entries from %s", len(entries), url)
        return entries
