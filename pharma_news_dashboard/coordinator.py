from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional

import aiohttp

from pharma_news_dashboard.errors import FeedError
from pharma_news_dashboard.normalize import normalize_records
from pharma_news_dashboard.state import Action, FetchFailed, FetchStarted, FetchSucceeded
from pharma_news_dashboard.types import Article

logger = logging.getLogger(__name__)

RecordSource = Callable[[], Awaitable[list[Any]]]


@dataclass(frozen=True)
class FetchOutcome:
    articles: list[Article] = field(default_factory=list)
    sources: list[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class FetchCoordinator:
    """Runs at most one feed fetch at a time and reports results as actions."""

    def __init__(
        self,
        source: RecordSource,
        dispatch: Callable[[Action], None],
        *,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._source = source
        self._dispatch = dispatch
        self._clock = clock
        self._in_flight = False
        self._closed = False

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def close(self) -> None:
        """Stop publishing results. A request already on the wire finishes, unseen."""
        self._closed = True

    async def fetch(self) -> Optional[FetchOutcome]:
        if self._closed:
            return None
        if self._in_flight:
            logger.debug("Fetch already in progress; ignoring request")
            return None

        self._in_flight = True
        self._dispatch(FetchStarted())
        try:
            outcome = await self._run()
        finally:
            self._in_flight = False

        if self._closed:
            logger.debug("Dashboard closed during fetch; discarding result")
            return None

        if outcome.ok:
            self._dispatch(
                FetchSucceeded(
                    articles=tuple(outcome.articles),
                    sources=tuple(outcome.sources),
                    fetched_at=self._clock(),
                )
            )
        else:
            self._dispatch(FetchFailed(message=outcome.error or "Fetch failed"))
        return outcome

    async def _run(self) -> FetchOutcome:
        try:
            records = await self._source()
        except FeedError as e:
            logger.error("Error fetching news: %s", e.message)
            return FetchOutcome(error=e.message)
        except asyncio.TimeoutError:
            logger.error("Error fetching news: request timed out")
            return FetchOutcome(error="Request timed out")
        except aiohttp.ClientError as e:
            logger.error("Error fetching news: %s", e)
            return FetchOutcome(error=f"Network error: {e}")

        batch = normalize_records(records)
        logger.info("Fetched %d articles from %d sources", len(batch.articles), len(batch.sources))
        return FetchOutcome(articles=batch.articles, sources=batch.sources)
