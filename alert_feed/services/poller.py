"""
Polling controller for keyword alert feeds.

One cycle loads the alerts already stored for a keyword, fetches the feed,
stores entries whose links are new and publishes the merged result as
``AlertFeedState``.
"""
import asyncio
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, AsyncIterator, Callable, List, Optional, Set

from alert_feed.core.config import get_settings
from alert_feed.core.exceptions import AlertFeedError, InputError, StorageReadError
from alert_feed.feeds.deduplication import dedup_key, deduplicate_alerts
from alert_feed.feeds.entry import AlertRecord, sort_by_recency
from alert_feed.services.alert_store import AlertStore
from alert_feed.services.feed import FeedService

logger = logging.getLogger(__name__)

MESSAGE_URL_MISSING = "Feed URL is missing"
MESSAGE_KEYWORD_MISSING = "Search keyword is missing"
MESSAGE_MONITORING = "Monitoring feed for updates..."
MESSAGE_WAITING = "Waiting for first alert..."
MESSAGE_UP_TO_DATE = "Feed is up to date"
MESSAGE_FAILED = "Failed to fetch alerts"


class PollStatus(str, Enum):
    """Poller state."""
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


class SaveOutcome(str, Enum):
    """Result of one save attempt."""
    SAVED = "saved"
    DUPLICATE = "duplicate"
    FAILED = "failed"


@dataclass
class SaveResult:
    record: AlertRecord
    outcome: SaveOutcome
    error: Optional[BaseException] = None


@dataclass
class AlertFeedState:
    """Snapshot of what a poller exposes to its consumers."""
    status: PollStatus = PollStatus.IDLE
    data: Optional[List[AlertRecord]] = None
    error: Optional[Exception] = None
    is_loading: bool = False
    message: Optional[str] = None
    active_alert: Optional[AlertRecord] = None
    new_alerts_stored: int = 0


class RefreshTimer:
    """
    Periodic trigger owned by a single poller.

    The callback is invoked every ``interval_seconds`` until ``cancel()``.
    """

    def __init__(self, interval_seconds: float):
        self.interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, callback: Callable[[], Any]) -> None:
        if self.is_running:
            raise RuntimeError("Refresh timer already running")
        self._task = asyncio.create_task(self._run(callback))

    async def _run(self, callback: Callable[[], Any]) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            callback()

    def cancel(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None


class AlertFeedPoller:
    """
    Fetch/store cycle for one feed URL and keyword.

    ``start()`` runs a cycle immediately and, with auto-refresh, schedules
    one per timer tick. ``stop()`` cancels the timer; cycles already running
    finish their I/O but no longer update the state.
    """

    def __init__(
        self,
        feed_service: FeedService,
        store: AlertStore,
        url: Optional[str],
        keyword: Optional[str],
        auto_refresh: Optional[bool] = None,
        timer: Optional[RefreshTimer] = None,
    ):
        settings = get_settings()
        self.feed_service = feed_service
        self.store = store
        self.url = url
        self.keyword = keyword
        self.auto_refresh = settings.POLL_AUTO_REFRESH if auto_refresh is None else auto_refresh
        self.timer = timer or RefreshTimer(settings.POLL_INTERVAL_SECONDS)
        self._state = AlertFeedState()
        self._alive = True
        self._cycles: Set[asyncio.Task] = set()
        self._listeners: List[asyncio.Queue] = []

    @property
    def state(self) -> AlertFeedState:
        """A copy of the current state."""
        data = list(self._state.data) if self._state.data is not None else None
        return replace(self._state, data=data)

    def add_listener(self) -> asyncio.Queue:
        """Register a queue that receives every state change, then None on stop."""
        queue: asyncio.Queue = asyncio.Queue()
        self._listeners.append(queue)
        return queue

    def remove_listener(self, queue: asyncio.Queue) -> None:
        if queue in self._listeners:
            self._listeners.remove(queue)

    def start(self) -> asyncio.Task:
        """
        Activate the poller.

        Returns:
            The task running the first cycle
        """
        self._alive = True
        first_cycle = self._schedule_cycle()
        if self.auto_refresh:
            self.timer.start(self._schedule_cycle)
        return first_cycle

    def stop(self) -> None:
        """Tear down: stop the timer and discard results of in-flight cycles."""
        self._alive = False
        self.timer.cancel()
        for queue in self._listeners:
            queue.put_nowait(None)

    async def wait_for_cycles(self) -> None:
        """Wait until every scheduled cycle has finished."""
        if self._cycles:
            await asyncio.gather(*list(self._cycles), return_exceptions=True)

    def _schedule_cycle(self) -> asyncio.Task:
        task = asyncio.create_task(self.refresh())
        self._cycles.add(task)
        task.add_done_callback(self._cycles.discard)
        return task

    def _set_state(self, **changes: Any) -> None:
        if not self._alive:
            return
        self._state = replace(self._state, **changes)
        snapshot = self.state
        for queue in self._listeners:
            queue.put_nowait(snapshot)

    async def refresh(
        self,
        url: Optional[str] = None,
        keyword: Optional[str] = None,
    ) -> AlertFeedState:
        """
        Run one fetch/store cycle.

        Args:
            url: Feed URL, defaults to the poller's URL
            keyword: Keyword, defaults to the poller's keyword

        Returns:
            The state after the cycle
        """
        url = self.url if url is None else url
        keyword = self.keyword if keyword is None else keyword

        missing_url = not url or not url.strip()
        if missing_url or not keyword or not keyword.strip():
            message = MESSAGE_URL_MISSING if missing_url else MESSAGE_KEYWORD_MISSING
            logger.warning("Alert refresh skipped: %s", message)
            self._set_state(
                status=PollStatus.ERROR,
                error=InputError("URL is required" if missing_url else "Keyword is required"),
                is_loading=False,
                message=message,
            )
            return self.state

        url = url.strip()
        keyword = keyword.strip()
        self._set_state(status=PollStatus.LOADING, is_loading=True, error=None, message=None)

        try:
            await self._run_cycle(url, keyword)
        except AlertFeedError as e:
            logger.error("Alert refresh failed for keyword '%s' (%s): %s", keyword, url, e)
            self._fail(e)
        except Exception as e:
            logger.exception("Unexpected error refreshing keyword '%s' (%s)", keyword, url)
            self._fail(e)

        return self.state

    def _fail(self, error: Exception) -> None:
        # data and active_alert keep their previous values
        self._set_state(
            status=PollStatus.ERROR,
            error=error,
            is_loading=False,
            message=MESSAGE_FAILED,
        )

    async def _run_cycle(self, url: str, keyword: str) -> None:
        existing = deduplicate_alerts(await self._load_existing(keyword))

        entries = await self.feed_service.fetch_feed(url)
        if not entries:
            self._succeed(
                existing,
                MESSAGE_MONITORING if existing else MESSAGE_WAITING,
            )
            return

        existing_links = {record.link for record in existing}
        candidates = [
            AlertRecord.from_entry(entry, keyword)
            for entry in entries
            if entry.link and entry.link not in existing_links
        ]
        if not candidates:
            self._succeed(existing, MESSAGE_UP_TO_DATE)
            return

        results = await self._save_all(candidates)
        saved = [r.record for r in results if r.outcome == SaveOutcome.SAVED]
        failed = sum(1 for r in results if r.outcome == SaveOutcome.FAILED)

        if saved:
            message = f"Found {len(saved)} new alerts"
        else:
            message = MESSAGE_UP_TO_DATE
        if failed:
            message += f" ({failed} could not be saved)"

        merged = deduplicate_alerts([*saved, *existing])
        self._succeed(merged, message, new_alerts_stored=len(saved))

    def _succeed(
        self,
        data: List[AlertRecord],
        message: str,
        new_alerts_stored: int = 0,
    ) -> None:
        data = sort_by_recency(data)
        self._set_state(
            status=PollStatus.SUCCESS,
            data=data,
            error=None,
            is_loading=False,
            message=message,
            active_alert=data[0] if data else None,
            new_alerts_stored=new_alerts_stored,
        )

    async def _load_existing(self, keyword: str) -> List[AlertRecord]:
        try:
            return await self.store.get_alerts_by_keyword(keyword)
        except StorageReadError as e:
            logger.error("Could not load stored alerts for keyword '%s': %s", keyword, e)
            return []

    async def _save_all(self, records: List[AlertRecord]) -> List[SaveResult]:
        """Save records concurrently, collecting one outcome per record."""
        outcomes = await asyncio.gather(
            *(self.store.save_unique_alert(record) for record in records),
            return_exceptions=True,
        )

        results = []
        for record, outcome in zip(records, outcomes):
            if isinstance(outcome, BaseException):
                logger.error(
                    "Failed to save alert %s for keyword '%s': %s",
                    dedup_key(record), record.keyword, outcome,
                )
                results.append(SaveResult(record, SaveOutcome.FAILED, outcome))
            elif outcome:
                results.append(SaveResult(record, SaveOutcome.SAVED))
            else:
                results.append(SaveResult(record, SaveOutcome.DUPLICATE))
        return results


TERMINAL_STATUSES = (PollStatus.SUCCESS, PollStatus.ERROR)


async def subscribe(
    url: Optional[str],
    keyword: Optional[str],
    auto_refresh: bool = True,
    *,
    feed_service: FeedService,
    store: AlertStore,
    timer: Optional[RefreshTimer] = None,
) -> AsyncIterator[AlertFeedState]:
    """
    Stream state snapshots of a poller for ``url`` and ``keyword``.

    With auto-refresh the stream lasts until the consumer closes it; without
    it the stream ends after the first cycle.
    """
    poller = AlertFeedPoller(
        feed_service=feed_service,
        store=store,
        url=url,
        keyword=keyword,
        auto_refresh=auto_refresh,
        timer=timer,
    )
    queue = poller.add_listener()
    poller.start()
    try:
        while True:
            state = await queue.get()
            if state is None:
                break
            yield state
            if not auto_refresh and state.status in TERMINAL_STATUSES:
                break
    finally:
        poller.stop()
        poller.remove_listener(queue)
