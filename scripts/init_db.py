#!/usr/bin/env python
"""
Create the alerts table and its constraints.

Usage:
    python scripts/init_db.py
"""
import asyncio
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from alert_feed.core.config import get_settings
from alert_feed.core.database import alert_db
# Registers the alert tables on the declarative base
import alert_feed.models  # noqa: F401


async def main():
    """Create database schema."""
    settings = get_settings()
    print(f"Initializing database {settings.POSTGRES_DB} on {settings.POSTGRES_HOST}...")
    
    try:
        await alert_db.connect(pooled=False)
        for table_name in await alert_db.create_schema():
            print(f"Table ready: {table_name}")
    except Exception as e:
        print(f"Error: {e}")
        sys.exit(1)
    finally:
        await alert_db.disconnect()


if __name__ == "__main__":
    asyncio.run(main())
