#!/usr/bin/env python
"""
Poll a feed for a keyword and print each state change.

Usage:
    python scripts/poll_feed.py <feed-url> <keyword> [--once]
"""
import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from alert_feed.core.database import alert_db
from alert_feed.feeds.fetcher import FeedFetcher
from alert_feed.main import configure_logging
from alert_feed.services.alert_store import AlertStore
from alert_feed.services.feed import FeedService
from alert_feed.services.poller import PollStatus, subscribe


async def main(url: str, keyword: str, once: bool):
    """Run a poller until interrupted."""
    configure_logging()
    await alert_db.connect(pooled=False)
    
    try:
        store = AlertStore(alert_db)
        async with FeedFetcher() as fetcher:
            stream = subscribe(
                url,
                keyword,
                auto_refresh=not once,
                feed_service=FeedService(fetcher),
                store=store,
            )
            async for state in stream:
                if state.status == PollStatus.LOADING:
                    continue
                print(f"[{state.status.value}] {state.message}")
                if state.active_alert:
                    alert = state.active_alert
                    print(f"  latest: {alert.title} ({alert.published}) {alert.link}")
                if state.status == PollStatus.SUCCESS:
                    total = await store.count_by_keyword(keyword.strip())
                    print(f"  stored for '{keyword.strip()}': {total}")
    finally:
        await alert_db.disconnect()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Poll a feed for keyword alerts")
    parser.add_argument("url", help="Feed URL")
    parser.add_argument("keyword", help="Keyword the alerts are stored under")
    parser.add_argument("--once", action="store_true", help="Run a single cycle")
    args = parser.parse_args()
    
    try:
        asyncio.run(main(args.url, args.keyword, args.once))
    except KeyboardInterrupt:
        pass
