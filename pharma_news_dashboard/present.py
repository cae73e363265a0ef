from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional
from urllib.parse import quote

from pharma_news_dashboard.types import ApiStatus, Article

PLACEHOLDER_IMAGE = (
    "https://images.unsplash.com/photo-1559757148-5c350d0d3c56"
    "?ixlib=rb-4.0.3&auto=format&fit=crop&w=500&q=80"
)
UNKNOWN_SOURCE = "Unknown source"


def image_url(article: Article) -> str:
    if article.image_url:
        return article.image_url
    return f"{PLACEHOLDER_IMAGE}&text={quote((article.title or 'News')[:20])}"


def source_label(article: Article) -> str:
    return article.source_name or UNKNOWN_SOURCE


def relative_date(published_at: Optional[datetime], *, now: Optional[datetime] = None) -> str:
    if published_at is None:
        return "Recent"
    now = now or datetime.now(timezone.utc)
    hours = int((now - published_at).total_seconds() // 3600)

    if hours < 1:
        return "Just now"
    if hours < 24:
        return f"{hours}h ago"
    if hours < 168:
        return f"{hours // 24}d ago"
    return f"{published_at:%b} {published_at.day}, {published_at.year}"


def results_summary(shown: int, total: int, page_index: int, total_pages: int) -> str:
    if total == 0:
        return "No articles match your filters"
    return f"Showing {shown} of {total} articles (page {page_index} of {total_pages})"


_API_STATUS_LABELS = {
    ApiStatus.CHECKING: "Checking API...",
    ApiStatus.CONNECTED: "Live API Connected",
    ApiStatus.ERROR: "API Connection Issue",
}


def api_status_label(status: ApiStatus) -> str:
    return _API_STATUS_LABELS[status]
