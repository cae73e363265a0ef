"""End-to-end tests for the Dashboard controller with a fake feed."""

import asyncio
from unittest.mock import MagicMock

from pharma_news_dashboard.config import Config
from pharma_news_dashboard.dashboard import Dashboard, dashboard_from_config
from pharma_news_dashboard.errors import FeedError
from pharma_news_dashboard.state import GoToPage, SetPageSize, SetQuery, ToggleSource
from pharma_news_dashboard.types import ApiStatus


class _FakeFeed:
    def __init__(self, *results):
        self._results = list(results)
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        result = self._results.pop(0) if len(self._results) > 1 else self._results[0]
        if isinstance(result, Exception):
            raise result
        return result


class TestDashboard:
    def test_first_failure_then_retry(self, make_record, now):
        feed = _FakeFeed(FeedError("NewsAPI error: 500 - down"), [make_record() for _ in range(4)])
        dashboard = Dashboard(feed, clock=lambda: now)

        asyncio.run(dashboard.refresh())
        assert dashboard.view().is_empty
        assert dashboard.state.api_status == ApiStatus.ERROR

        asyncio.run(dashboard.refresh())
        assert dashboard.view().total_count == 4
        assert dashboard.state.error is None

    def test_filters_sources_and_pages(self, make_record, now):
        records = [make_record(source={"name": "Reuters"}) for _ in range(5)]
        records += [make_record(source={"name": "STAT"}) for _ in range(3)]
        dashboard = Dashboard(_FakeFeed(records), page_size=3, clock=lambda: now)
        asyncio.run(dashboard.refresh())

        dashboard.dispatch(ToggleSource("Reuters"))
        view = dashboard.view()

        assert view.total_count == 5
        assert view.total_pages == 2
        assert all(a.source_name == "Reuters" for a in view.items)
        assert dashboard.state.sources == ("Reuters", "STAT")

    def test_listeners_see_each_change(self, make_record, now):
        dashboard = Dashboard(_FakeFeed([make_record() for _ in range(12)]), clock=lambda: now)
        seen = []
        unsubscribe = dashboard.subscribe(lambda s: seen.append(s.pagination.page_index))

        asyncio.run(dashboard.refresh())
        dashboard.dispatch(GoToPage(2))
        dashboard.dispatch(SetQuery(""))  # no change, no notification
        unsubscribe()
        dashboard.dispatch(SetPageSize(6))

        assert seen == [1, 1, 2]

    def test_refetch_resets_page_and_keeps_bookmarks(self, make_record, now):
        records = [make_record() for _ in range(12)]
        dashboard = Dashboard(_FakeFeed(records), clock=lambda: now)
        asyncio.run(dashboard.refresh())
        article = dashboard.view().items[0]
        dashboard.toggle_bookmark(article)
        dashboard.dispatch(GoToPage(2))

        asyncio.run(dashboard.refresh())

        assert dashboard.state.pagination.page_index == 1
        assert dashboard.bookmarks.is_saved(article.id)

    def test_auto_refresh_fetches_until_disabled(self, make_record, timer):
        feed = _FakeFeed([make_record()])

        async def scenario():
            dashboard = Dashboard(feed, refresh_interval_seconds=300, sleep=timer.sleep)
            dashboard.set_auto_refresh(True)
            assert dashboard.auto_refresh
            for _ in range(2):
                await timer.settle()
                timer.fire()
            await timer.settle()
            dashboard.set_auto_refresh(False)
            fetched = feed.calls
            await timer.settle()
            timer.fire()
            await timer.settle()
            dashboard.close()
            return fetched

        fetched = asyncio.run(scenario())

        assert fetched == 2
        assert feed.calls == fetched

    def test_disable_before_first_tick_means_no_fetch(self, make_record, timer):
        feed = _FakeFeed([make_record()])

        async def scenario():
            dashboard = Dashboard(feed, refresh_interval_seconds=300, sleep=timer.sleep)
            dashboard.set_auto_refresh(True)
            await timer.settle()
            dashboard.set_auto_refresh(False)
            await timer.settle()
            timer.fire()
            await timer.settle()
            dashboard.close()

        asyncio.run(scenario())

        assert feed.calls == 0

    def test_manual_and_scheduled_refresh_never_overlap(self, make_record, timer):
        calls = []
        active = []
        peaks = []

        async def scenario():
            release = asyncio.Event()

            async def slow_feed():
                calls.append(1)
                active.append(1)
                peaks.append(len(active))
                try:
                    await release.wait()
                    return [make_record()]
                finally:
                    active.pop()

            dashboard = Dashboard(slow_feed, refresh_interval_seconds=300, sleep=timer.sleep)
            manual = asyncio.ensure_future(dashboard.refresh())
            await timer.settle()
            dashboard.set_auto_refresh(True)
            # three ticks land while the manual fetch is still outstanding
            for _ in range(3):
                await timer.settle()
                timer.fire()
            await timer.settle()
            during = len(calls)
            dashboard.set_auto_refresh(False)
            release.set()
            outcome = await manual
            dashboard.close()
            return during, outcome

        during, outcome = asyncio.run(scenario())

        assert during == 1
        assert len(calls) == 1
        assert max(peaks) == 1
        assert outcome is not None and outcome.ok

    def test_close_stops_timer_and_ignores_late_results(self, make_record):
        async def scenario():
            release = asyncio.Event()

            async def slow_feed():
                await release.wait()
                return [make_record()]

            dashboard = Dashboard(slow_feed, refresh_interval_seconds=10)
            dashboard.set_auto_refresh(True)
            pending = asyncio.ensure_future(dashboard.refresh())
            await asyncio.sleep(0)
            dashboard.close()
            release.set()
            await pending
            dashboard.set_auto_refresh(True)
            return dashboard

        dashboard = asyncio.run(scenario())

        assert dashboard.closed
        assert not dashboard.auto_refresh
        assert dashboard.state.articles == ()


class TestDashboardFromConfig:
    def test_wires_config(self, tmp_path):
        cfg = Config(
            raw={
                "feed": {"api_key": "k"},
                "refresh": {"interval_seconds": 42},
                "pagination": {"page_size": 6},
                "storage": {"output_dir": str(tmp_path), "persist_bookmarks": True},
            }
        )

        dashboard = dashboard_from_config(cfg, MagicMock())

        assert dashboard.state.pagination.page_size == 6
        assert dashboard.scheduler.interval_seconds == 42
        assert len(dashboard.bookmarks) == 0

    def test_bookmarks_persist_to_output_dir(self, tmp_path, make_article):
        cfg = Config(raw={"storage": {"output_dir": str(tmp_path)}})
        dashboard = dashboard_from_config(cfg, MagicMock())

        dashboard.toggle_bookmark(make_article())

        assert (tmp_path / "saved.jsonl").exists()
