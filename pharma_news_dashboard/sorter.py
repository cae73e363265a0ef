from __future__ import annotations

from datetime import datetime, timezone
from typing import Sequence

from pharma_news_dashboard.types import Article, SortMode

# undated articles rank as the oldest possible
_VERY_OLD = datetime.min.replace(tzinfo=timezone.utc)


def _published_key(a: Article) -> datetime:
    return a.published_at or _VERY_OLD


def sort_articles(articles: Sequence[Article], sort_mode: SortMode, query: str = "") -> list[Article]:
    items = list(articles)

    # list.sort is stable, so ties keep batch order in every mode
    if sort_mode == SortMode.NEWEST:
        items.sort(key=_published_key, reverse=True)
    elif sort_mode == SortMode.OLDEST:
        items.sort(key=_published_key)
    elif sort_mode == SortMode.RELEVANCE and query:
        q = query.lower()
        items.sort(key=lambda a: q not in a.title.lower())
    return items
