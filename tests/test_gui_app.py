"""Tests for the tk glue that do not need a display."""

from unittest.mock import Mock

import pytest

pytest.importorskip("tkinter")

from pharma_news_dashboard.gui_app import NewsApp, Snapshot  # noqa: E402
from pharma_news_dashboard.state import (  # noqa: E402
    FetchFailed,
    FetchStarted,
    SetQuery,
    compute_view,
    initial_state,
    reduce,
)


def _snapshot(state, now):
    return Snapshot(state=state, view=compute_view(state, now=now), saved=[], auto_refresh=False)


class TestDispatch:
    def test_action_is_built_before_submitting(self):
        app = Mock()

        NewsApp._dispatch(app, SetQuery("trial"))

        (submitted,), _ = app._submit.call_args
        dashboard = Mock()
        submitted(dashboard)
        dashboard.dispatch.assert_called_once_with(SetQuery("trial"))


class TestRenderStatus:
    def test_error_shows_issue_badge_and_retry(self, now):
        app = Mock()
        state = reduce(initial_state(), FetchFailed("Request timed out"), now=now)

        NewsApp._render_status(app, _snapshot(state, now))

        app.api_badge.configure.assert_called_once_with(text="API Connection Issue", bg="#dc2626")
        app.status.set.assert_called_once_with("Error: Request timed out")
        app.retry_button.pack.assert_called_once()

    def test_retry_in_progress_hides_old_error(self, now):
        app = Mock()
        failed = reduce(initial_state(), FetchFailed("Request timed out"), now=now)
        state = reduce(failed, FetchStarted(), now=now)

        NewsApp._render_status(app, _snapshot(state, now))

        app.api_badge.configure.assert_called_once_with(text="Checking API...", bg="#64748b")
        app.status.set.assert_called_once_with("Fetching latest news...")
        app.retry_button.pack_forget.assert_called_once()
