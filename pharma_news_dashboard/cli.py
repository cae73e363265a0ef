"""Headless entry point: fetch once, apply filters, print one page."""

from __future__ import annotations

import argparse
import asyncio
import logging

import aiohttp

from pharma_news_dashboard.config import load_config
from pharma_news_dashboard.dashboard import Dashboard, dashboard_from_config
from pharma_news_dashboard.present import api_status_label, image_url, relative_date, results_summary, source_label
from pharma_news_dashboard.state import (
    Action,
    GoToPage,
    SetDateRange,
    SetPageSize,
    SetQuery,
    SetSortMode,
    ToggleSource,
)
from pharma_news_dashboard.types import DateRange, SortMode

logger = logging.getLogger(__name__)


def positive_int(value: str) -> int:
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {value!r}") from None
    if n <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer: {value!r}")
    return n


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Browse recent pharmaceutical news")
    parser.add_argument("--config", default="config/config.yaml", help="Path to YAML config")
    parser.add_argument("--query", "-q", default="", help="Free-text search")
    parser.add_argument(
        "--source",
        "-s",
        action="append",
        default=[],
        help="Only show this source (repeatable)",
    )
    parser.add_argument(
        "--date-range",
        choices=[d.value for d in DateRange],
        default=DateRange.ALL.value,
    )
    parser.add_argument("--sort", choices=[s.value for s in SortMode], default=SortMode.NEWEST.value)
    parser.add_argument("--page", type=positive_int, default=1)
    parser.add_argument("--page-size", type=positive_int, default=None)
    parser.add_argument("--list-sources", action="store_true", help="Print available sources and exit")
    parser.add_argument("--saved", action="store_true", help="Print bookmarked articles and exit")
    return parser


def actions_from_args(args: argparse.Namespace) -> list[Action]:
    actions: list[Action] = []
    if args.page_size:
        actions.append(SetPageSize(args.page_size))
    if args.query:
        actions.append(SetQuery(args.query))
    for s in args.source:
        actions.append(ToggleSource(s))
    actions.append(SetDateRange(DateRange(args.date_range)))
    actions.append(SetSortMode(SortMode(args.sort)))
    # page last: filter changes reset it to 1
    actions.append(GoToPage(args.page))
    return actions


def render_page(dashboard: Dashboard) -> str:
    view = dashboard.view()
    lines = []
    state = dashboard.state
    lines.append(api_status_label(state.api_status))
    if state.error:
        lines.append(f"Error: {state.error}")
    lines.append(results_summary(len(view.items), view.total_count, view.page_index, view.total_pages))

    for a in view.items:
        flags = []
        if a.trending:
            flags.append("TRENDING")
        if dashboard.bookmarks.is_saved(a.id):
            flags.append("SAVED")
        suffix = f" [{', '.join(flags)}]" if flags else ""
        lines.append("")
        lines.append(f"* {a.title}{suffix}")
        lines.append(f"  {source_label(a)} | {relative_date(a.published_at)}")
        lines.append(f"  {a.url}")
        lines.append(f"  Image: {image_url(a)}")
    return "\n".join(lines)


def render_saved(dashboard: Dashboard) -> str:
    saved = dashboard.bookmarks.list()
    if not saved:
        return "No saved articles yet."
    lines = [f"{len(saved)} saved articles"]
    for s in saved:
        lines.append(f"* {s.article.title} (saved {s.saved_at:%Y-%m-%d %H:%M})")
        lines.append(f"  {s.article.url}")
    return "\n".join(lines)


async def run(args: argparse.Namespace) -> int:
    cfg = load_config(args.config)

    async with aiohttp.ClientSession() as session:
        dashboard = dashboard_from_config(cfg, session)
        try:
            if args.saved:
                print(render_saved(dashboard))
                return 0

            await dashboard.refresh()

            if args.list_sources:
                for s in dashboard.state.sources:
                    print(s)
                return 0

            for action in actions_from_args(args):
                dashboard.dispatch(action)
            print(render_page(dashboard))
            return 1 if dashboard.state.error else 0
        finally:
            dashboard.close()


def main() -> int:
    args = build_parser().parse_args()
    cfg = load_config(args.config)

    logging.basicConfig(
        level=getattr(logging, cfg.log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    return asyncio.run(run(args))


if __name__ == "__main__":
    raise SystemExit(main())
