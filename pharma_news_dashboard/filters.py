from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional, Sequence

from pharma_news_dashboard.types import Article, DateRange, FilterState

_RANGE_DAYS = {
    DateRange.WEEK: 7,
    DateRange.MONTH: 30,
}


def local_now() -> datetime:
    """Current time as an aware datetime in the machine's local zone."""
    return datetime.now().astimezone()


def matches_query(article: Article, query: str) -> bool:
    q = query.lower()
    fields = (article.title, article.description, article.content, article.source_name)
    return any(q in f.lower() for f in fields if f)


def by_query(articles: Sequence[Article], query: str) -> list[Article]:
    if not query:
        return list(articles)
    return [a for a in articles if matches_query(a, query)]


def by_sources(articles: Sequence[Article], selected: frozenset[str]) -> list[Article]:
    # empty selection means every source
    if not selected:
        return list(articles)
    return [a for a in articles if a.source_name in selected]


def by_date_range(
    articles: Sequence[Article],
    date_range: DateRange,
    now: datetime,
) -> list[Article]:
    if date_range == DateRange.ALL:
        return list(articles)

    if date_range == DateRange.TODAY:
        # calendar day in the zone `now` carries
        today = now.date()
        return [
            a for a in articles
            if a.published_at is not None and a.published_at.astimezone(now.tzinfo).date() == today
        ]

    cutoff = now - timedelta(days=_RANGE_DAYS[date_range])
    return [a for a in articles if a.published_at is not None and a.published_at >= cutoff]


def filter_articles(
    articles: Sequence[Article],
    filters: FilterState,
    *,
    now: Optional[datetime] = None,
) -> list[Article]:
    """Narrow `articles` by search text, then source, then date range.

    Every stage only removes entries, so the result keeps input order and
    applying the same filters twice changes nothing.
    """

    if now is None:
        now = local_now()
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    out = by_query(articles, filters.query)
    out = by_sources(out, filters.selected_sources)
    out = by_date_range(out, filters.date_range, now)
    return out
