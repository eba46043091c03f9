"""
Alert persistence: conditional inserts and keyword-scoped retrieval.
"""
import logging
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert

from alert_feed.core.database import AlertDatabase, alert_db
from alert_feed.core.exceptions import StorageError, StorageReadError, StorageWriteError
from alert_feed.feeds.entry import AlertRecord
from alert_feed.models.alert import Alert

logger = logging.getLogger(__name__)


def record_key(record: AlertRecord) -> str:
    """Storage uniqueness key used in log messages."""
    return f"{record.title}|{record.published}"


class AlertStore:
    """
    Store for keyword alerts backed by the ``alerts`` table.

    Each operation runs in its own session so concurrent saves from one
    polling cycle never share a connection.
    """

    def __init__(self, database: Optional[AlertDatabase] = None):
        self.database = database or alert_db

    async def save_unique_alert(self, record: AlertRecord) -> bool:
        """
        Insert an alert unless one with the same title and published time exists.

        The existence check and the insert are one statement
        (``INSERT ... ON CONFLICT DO NOTHING``), so concurrent pollers cannot
        both store the same entry.

        Args:
            record: Alert to store

        Returns:
            True if the alert was saved, False if it already existed. A saved
            record gets its row id and server-assigned ``created_at``.

        Raises:
            StorageWriteError: If the insert failed
        """
        stmt = (
            pg_insert(Alert)
            .values(
                entry_id=record.id,
                title=record.title,
                content=record.content,
                link=record.link,
                published=record.published,
                source=record.source,
                keyword=record.keyword,
            )
            .on_conflict_do_nothing(constraint="uq_alerts_title_published")
            .returning(Alert.id, Alert.created_at)
        )

        try:
            async with self.database.session() as session:
                result = await session.execute(stmt)
                inserted = result.one_or_none()
        except StorageError as e:
            key = record_key(record)
            logger.error(
                "Failed to save alert %s for keyword '%s': %s", key, record.keyword, e
            )
            raise StorageWriteError(key, str(e)) from e

        if inserted is None:
            logger.debug("Alert %s already stored", record_key(record))
            return False

        record.record_id = inserted.id
        record.created_at = inserted.created_at
        return True

    async def _query_alerts(self, keyword: str) -> List[Alert]:
        stmt = (
            select(Alert)
            .where(Alert.keyword == keyword)
            .order_by(Alert.published.desc(), Alert.id.desc())
        )
        try:
            async with self.database.session() as session:
                result = await session.execute(stmt)
                return list(result.scalars().all())
        except StorageError as e:
            raise StorageReadError(f"Alert query failed for keyword '{keyword}': {e}") from e

    async def get_alerts_by_keyword(self, keyword: str) -> List[AlertRecord]:
        """
        Get all alerts stored under a keyword, newest first.

        Query failures are logged and degrade to an empty list.

        Args:
            keyword: Tracked keyword, compared exactly

        Returns:
            Alerts ordered by published time then row id, both descending
        """
        try:
            rows = await self._query_alerts(keyword)
        except StorageReadError:
            logger.exception("Error fetching alerts for keyword '%s'", keyword)
            return []

        return [self.to_record(row) for row in rows]

    async def count_by_keyword(self, keyword: str) -> int:
        """Number of alerts stored under a keyword, 0 if the query fails."""
        stmt = select(func.count()).select_from(Alert).where(Alert.keyword == keyword)
        try:
            async with self.database.session() as session:
                result = await session.execute(stmt)
                return int(result.scalar_one())
        except StorageError:
            logger.exception("Error counting alerts for keyword '%s'", keyword)
            return 0

    @staticmethod
    def to_record(row: Alert) -> AlertRecord:
        """Convert an ORM row into an ``AlertRecord``."""
        return AlertRecord(
            id=row.entry_id,
            title=row.title or "",
            content=row.content or "",
            link=row.link or "",
            published=row.published,
            source=row.source,
            keyword=row.keyword,
            created_at=row.created_at,
            record_id=row.id,
        )


# Global store instance
alert_store = AlertStore()
