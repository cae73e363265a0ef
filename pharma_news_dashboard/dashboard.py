from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Callable, Optional

import aiohttp

from pharma_news_dashboard.config import Config
from pharma_news_dashboard.coordinator import FetchCoordinator, FetchOutcome, RecordSource
from pharma_news_dashboard.feed import FeedRequest, NewsFeed
from pharma_news_dashboard.filters import local_now
from pharma_news_dashboard.http import HttpClient, RetryPolicy
from pharma_news_dashboard.saved_store import BookmarkStore
from pharma_news_dashboard.scheduler import DEFAULT_INTERVAL_SECONDS, RefreshScheduler, Sleep
from pharma_news_dashboard.state import Action, DashboardState, PageView, compute_view, initial_state, reduce
from pharma_news_dashboard.types import Article

logger = logging.getLogger(__name__)

Listener = Callable[[DashboardState], None]


class Dashboard:
    """Single owner of the dashboard's state, bookmarks, fetches and timer.

    All methods must be called from the event loop thread.
    """

    def __init__(
        self,
        source: RecordSource,
        *,
        bookmarks: Optional[BookmarkStore] = None,
        page_size: int = 9,
        refresh_interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        clock: Callable[[], datetime] = local_now,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._state = initial_state(page_size)
        self._clock = clock
        self._listeners: list[Listener] = []
        self._closed = False
        self.bookmarks = bookmarks if bookmarks is not None else BookmarkStore(clock=clock)
        self.coordinator = FetchCoordinator(source, self.dispatch, clock=clock)
        self.scheduler = RefreshScheduler(self.refresh, interval_seconds=refresh_interval_seconds, sleep=sleep)

    @property
    def state(self) -> DashboardState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._closed

    def view(self) -> PageView:
        return compute_view(self._state, now=self._clock())

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def dispatch(self, action: Action) -> None:
        if self._closed:
            return
        new_state = reduce(self._state, action, now=self._clock())
        if new_state is self._state:
            return
        self._state = new_state
        for listener in list(self._listeners):
            listener(new_state)

    async def refresh(self) -> Optional[FetchOutcome]:
        """Fetch now. Returns None when another fetch is already running."""
        return await self.coordinator.fetch()

    @property
    def auto_refresh(self) -> bool:
        return self.scheduler.enabled

    def set_auto_refresh(self, enabled: bool) -> None:
        if self._closed:
            return
        self.scheduler.set_enabled(enabled)

    def toggle_bookmark(self, article: Article) -> bool:
        return self.bookmarks.toggle(article)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.scheduler.close()
        self.coordinator.close()
        self._listeners.clear()
        logger.info("Dashboard closed")


def build_feed(cfg: Config, session: aiohttp.ClientSession) -> NewsFeed:
    client = HttpClient(
        session=session,
        retry=RetryPolicy.from_config(cfg.retry),
        timeout_seconds=cfg.timeout_seconds,
    )
    return NewsFeed(client, FeedRequest.from_config(cfg))


def dashboard_from_config(cfg: Config, session: aiohttp.ClientSession) -> Dashboard:
    if not cfg.api_key:
        logger.warning("No NewsAPI key configured; requests will be rejected by the provider")
    feed = build_feed(cfg, session)
    bookmarks = BookmarkStore(cfg.output_dir if cfg.persist_bookmarks else None)
    return Dashboard(
        feed.fetch_records,
        bookmarks=bookmarks,
        page_size=cfg.page_size,
        refresh_interval_seconds=cfg.refresh_interval_seconds,
    )
