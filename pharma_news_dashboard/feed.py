from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Sequence

from pharma_news_dashboard.config import Config
from pharma_news_dashboard.errors import FeedError
from pharma_news_dashboard.http import HttpClient

logger = logging.getLogger(__name__)

NO_RESULTS_MESSAGE = "No recent pharmaceutical news found"


def build_query(keywords: Sequence[str]) -> str:
    """Join keywords into one disjunction, quoting multi-word phrases."""

    parts = []
    for k in keywords:
        k = k.strip()
        if not k:
            continue
        parts.append(f'"{k}"' if " " in k else k)
    return " OR ".join(parts)


@dataclass(frozen=True)
class FeedRequest:
    endpoint: str
    query: str
    language: str
    sort_by: str
    page_size: int
    api_key: str

    @classmethod
    def from_config(cls, cfg: Config) -> "FeedRequest":
        return cls(
            endpoint=cfg.feed_endpoint,
            query=build_query(cfg.feed_keywords),
            language=cfg.feed_language,
            sort_by=cfg.feed_sort_by,
            page_size=cfg.feed_page_size,
            api_key=cfg.api_key,
        )

    def params(self) -> dict[str, str]:
        return {
            "q": self.query,
            "language": self.language,
            "sortBy": self.sort_by,
            "pageSize": str(self.page_size),
            "apiKey": self.api_key,
        }


class NewsFeed:
    def __init__(self, client: HttpClient, request: FeedRequest) -> None:
        self._client = client
        self._request = request

    async def fetch_records(self) -> list[dict[str, Any]]:
        """Return the provider's raw article records.

        Raises FeedError on a non-2xx status or when the response carries no
        articles.
        """

        r = await self._client.get_json(self._request.endpoint, params=self._request.params())

        if not r.ok:
            detail = ""
            if isinstance(r.payload, dict):
                detail = str(r.payload.get("message") or "")
            raise FeedError(
                f"NewsAPI error: {r.status} - {detail or 'Please check your API key'}",
                status=r.status,
            )

        articles = r.payload.get("articles") if isinstance(r.payload, dict) else None
        if not articles:
            raise FeedError(NO_RESULTS_MESSAGE, status=r.status)

        logger.info("Feed returned %d records", len(articles))
        return list(articles)
