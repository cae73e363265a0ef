from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Optional

from dateutil import parser as dateparser

from pharma_news_dashboard.types import Article

logger = logging.getLogger(__name__)

REMOVED_MARKER = "[Removed]"
TRENDING_WINDOW = 5


@dataclass(frozen=True)
class NormalizedBatch:
    articles: list[Article]
    sources: list[str]


def parse_published_at(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        dt = value
    else:
        if not value:
            return None
        try:
            dt = dateparser.parse(str(value))
        except (ValueError, OverflowError):
            return None
        if dt is None:
            return None
    # Ensure tz-aware for consistent comparisons
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _clean(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def record_to_article(record: Mapping[str, Any]) -> Optional[Article]:
    """Build an Article from one provider record, or None if it is unusable."""

    title = _clean(record.get("title"))
    url = _clean(record.get("url"))
    description = _clean(record.get("description"))
    if not title or title == REMOVED_MARKER or not url or not description:
        return None

    source = record.get("source")
    source_name = _clean(source.get("name")) if isinstance(source, Mapping) else ""

    return Article(
        id=url,
        title=title,
        description=description,
        url=url,
        published_at=parse_published_at(record.get("publishedAt")),
        source_name=source_name,
        content=_clean(record.get("content")) or None,
        image_url=_clean(record.get("urlToImage")) or None,
    )


def distinct_sources(articles: Iterable[Article]) -> list[str]:
    return sorted({a.source_name for a in articles if a.source_name})


def normalize_records(records: Iterable[Any] | None) -> NormalizedBatch:
    accepted: list[Article] = []
    seen: set[str] = set()
    dropped = 0

    for record in records or []:
        if not isinstance(record, Mapping):
            dropped += 1
            continue
        article = record_to_article(record)
        if article is None or article.id in seen:
            dropped += 1
            continue
        seen.add(article.id)
        accepted.append(replace(article, trending=len(accepted) < TRENDING_WINDOW))

    if dropped:
        logger.debug("Dropped %d malformed or duplicate feed records", dropped)

    return NormalizedBatch(articles=accepted, sources=distinct_sources(accepted))


def renormalize(articles: Iterable[Article]) -> NormalizedBatch:
    """Dedup an already-normalized set again; a no-op on normalizer output."""

    out: list[Article] = []
    seen: set[str] = set()
    for a in articles:
        if a.id in seen:
            continue
        seen.add(a.id)
        out.append(a)
    return NormalizedBatch(articles=out, sources=distinct_sources(out))
