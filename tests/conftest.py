from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

import pytest

from pharma_news_dashboard.types import Article

NOW = datetime(2024, 3, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def make_article() -> Callable[..., Article]:
    counter = {"n": 0}

    def _make(
        title: Optional[str] = None,
        *,
        source: str = "Reuters",
        hours_ago: Optional[float] = 1,
        description: str = "A description",
        content: Optional[str] = None,
        url: Optional[str] = None,
    ) -> Article:
        counter["n"] += 1
        n = counter["n"]
        url = url or f"https://example.com/{n}"
        published = NOW - timedelta(hours=hours_ago) if hours_ago is not None else None
        return Article(
            id=url,
            title=title or f"Article {n}",
            description=description,
            url=url,
            published_at=published,
            source_name=source,
            content=content,
        )

    return _make


@pytest.fixture
def make_record() -> Callable[..., dict[str, Any]]:
    counter = {"n": 0}

    def _make(**overrides: Any) -> dict[str, Any]:
        counter["n"] += 1
        n = counter["n"]
        record: dict[str, Any] = {
            "title": f"Headline {n}",
            "description": f"Summary {n}",
            "content": f"Body {n}",
            "url": f"https://news.example.com/{n}",
            "urlToImage": None,
            "source": {"id": None, "name": "Reuters"},
            "publishedAt": "2024-03-15T10:00:00Z",
        }
        record.update(overrides)
        return record

    return _make


class ManualTimer:
    """Stand-in for `asyncio.sleep`: waits until the test calls `fire()`."""

    def __init__(self) -> None:
        self.waiting: list[tuple[float, asyncio.Future[None]]] = []

    async def sleep(self, seconds: float) -> None:
        fut: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        entry = (seconds, fut)
        self.waiting.append(entry)
        try:
            await fut
        finally:
            self.waiting.remove(entry)

    @property
    def pending(self) -> list[float]:
        return [s for s, fut in self.waiting if not fut.done()]

    def fire(self) -> int:
        """Wake every pending sleeper; returns how many were woken."""
        woken = 0
        for _, fut in self.waiting:
            if not fut.done():
                fut.set_result(None)
                woken += 1
        return woken

    async def settle(self, rounds: int = 10) -> None:
        """Let scheduled callbacks and shielded tasks run to their next await."""
        for _ in range(rounds):
            await asyncio.sleep(0)


@pytest.fixture
def timer() -> ManualTimer:
    return ManualTimer()
