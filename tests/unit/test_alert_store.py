"""
Unit tests for the alert store.
"""
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from alert_feed.core.database import AlertDatabase
from alert_feed.core.exceptions import StorageWriteError
from alert_feed.feeds.entry import AlertRecord
from alert_feed.models.alert import Alert
from alert_feed.services.alert_store import AlertStore


class StubSessionmaker:
    """Session maker whose transactions all yield one mocked session."""

    def __init__(self, session):
        self.session = session

    @asynccontextmanager
    async def begin(self):
        yield self.session


def connected_database(session) -> AlertDatabase:
    database = AlertDatabase()
    database._sessionmaker = StubSessionmaker(session)
    return database


def compiled_sql(statement) -> str:
    return str(statement.compile(dialect=postgresql.dialect()))


@pytest.fixture
def mock_session():
    return AsyncMock()


@pytest.fixture
def store(mock_session):
    return AlertStore(connected_database(mock_session))


@pytest.fixture
def sample_record():
    return AlertRecord(
        id="tag:google.com,2013:googlealerts/feed:1",
        title="AI beats benchmark",
        content="Details",
        link="https://example.com/a",
        published="2024-05-01T10:00:00Z",
        source="Google Alert - AI",
        keyword="AI",
    )


@pytest.fixture
def sample_rows():
    created = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    return [
        Alert(
            id=2,
            entry_id="e-2",
            title="Newer",
            content="",
            link="https://example.com/2",
            published="2024-05-02T00:00:00Z",
            source="Feed",
            keyword="AI",
            created_at=created,
        ),
        Alert(
            id=1,
            entry_id="e-1",
            title="Older",
            content="Body",
            link="https://example.com/1",
            published="2024-05-01T00:00:00Z",
            source="Feed",
            keyword="AI",
            created_at=created,
        ),
    ]


class TestSaveUniqueAlert:
    """Tests for AlertStore.save_unique_alert."""

    @pytest.mark.asyncio
    async def test_new_alert_is_saved(self, store, mock_session, sample_record):
        """Test a returned row means the alert was inserted and carries server values."""
        created = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        result = MagicMock()
        result.one_or_none.return_value = SimpleNamespace(id=42, created_at=created)
        mock_session.execute.return_value = result

        saved = await store.save_unique_alert(sample_record)

        assert saved is True
        assert sample_record.record_id == 42
        assert sample_record.created_at == created
        mock_session.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_existing_alert_is_not_saved(self, store, mock_session, sample_record):
        """Test a conflict (no returned row) reports the alert as existing."""
        result = MagicMock()
        result.one_or_none.return_value = None
        mock_session.execute.return_value = result

        saved = await store.save_unique_alert(sample_record)

        assert saved is False
        assert sample_record.record_id is None
        assert sample_record.created_at is None

    @pytest.mark.asyncio
    async def test_insert_is_a_single_conditional_statement(self, store, mock_session, sample_record):
        """Test existence check and insert happen in one statement."""
        result = MagicMock()
        result.one_or_none.return_value = SimpleNamespace(id=1, created_at=None)
        mock_session.execute.return_value = result

        await store.save_unique_alert(sample_record)

        statement = mock_session.execute.call_args.args[0]
        sql = compiled_sql(statement)
        assert sql.startswith("INSERT INTO alerts")
        assert "ON CONFLICT ON CONSTRAINT uq_alerts_title_published DO NOTHING" in sql
        assert "RETURNING alerts.id, alerts.created_at" in sql

    @pytest.mark.asyncio
    async def test_write_failure_raises(self, store, mock_session, sample_record):
        """Test database errors surface as StorageWriteError with the record key."""
        mock_session.execute.side_effect = SQLAlchemyError("disk full")

        with pytest.raises(StorageWriteError) as exc_info:
            await store.save_unique_alert(sample_record)

        assert exc_info.value.key == "AI beats benchmark|2024-05-01T10:00:00Z"


class TestGetAlertsByKeyword:
    """Tests for AlertStore.get_alerts_by_keyword."""

    @pytest.mark.asyncio
    async def test_returns_records(self, store, mock_session, sample_rows):
        """Test rows are converted into AlertRecords in query order."""
        result = MagicMock()
        result.scalars.return_value.all.return_value = sample_rows
        mock_session.execute.return_value = result

        records = await store.get_alerts_by_keyword("AI")

        assert [r.title for r in records] == ["Newer", "Older"]
        assert records[0].id == "e-2"
        assert records[0].record_id == 2
        assert records[1].content == "Body"
        assert all(r.keyword == "AI" for r in records)

    @pytest.mark.asyncio
    async def test_query_filters_and_orders(self, store, mock_session):
        """Test filtering by keyword and ordering by published then id."""
        result = MagicMock()
        result.scalars.return_value.all.return_value = []
        mock_session.execute.return_value = result

        await store.get_alerts_by_keyword("AI")

        sql = compiled_sql(mock_session.execute.call_args.args[0])
        assert "WHERE alerts.keyword = " in sql
        assert "ORDER BY alerts.published DESC, alerts.id DESC" in sql

    @pytest.mark.asyncio
    async def test_query_failure_returns_empty(self, store, mock_session, caplog):
        """Test read failures degrade to an empty result and are logged."""
        mock_session.execute.side_effect = OperationalError("SELECT", {}, Exception("down"))

        records = await store.get_alerts_by_keyword("AI")

        assert records == []
        assert "Error fetching alerts for keyword 'AI'" in caplog.text

    @pytest.mark.asyncio
    async def test_connection_failure_returns_empty(self, store, mock_session):
        """Test driver connection errors degrade the same way."""
        mock_session.execute.side_effect = ConnectionRefusedError("refused")

        assert await store.get_alerts_by_keyword("AI") == []


class TestCountByKeyword:
    """Tests for AlertStore.count_by_keyword."""

    @pytest.mark.asyncio
    async def test_count(self, store, mock_session):
        result = MagicMock()
        result.scalar_one.return_value = 3
        mock_session.execute.return_value = result

        assert await store.count_by_keyword("AI") == 3

    @pytest.mark.asyncio
    async def test_count_failure(self, store, mock_session):
        mock_session.execute.side_effect = SQLAlchemyError("down")

        assert await store.count_by_keyword("AI") == 0
