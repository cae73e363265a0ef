from __future__ import annotations

import json
import logging
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Optional

import pandas as pd

from pharma_news_dashboard.normalize import parse_published_at
from pharma_news_dashboard.types import Article, SavedArticle

logger = logging.getLogger(__name__)


def saved_path(output_dir: Path) -> Path:
    return output_dir / "saved.jsonl"


def _to_row(saved: SavedArticle) -> dict[str, Any]:
    payload = asdict(saved.article)
    # json-friendly datetimes
    if payload.get("published_at") is not None:
        payload["published_at"] = saved.article.published_at.isoformat()
    payload["saved_at"] = saved.saved_at.isoformat()
    return payload


def _from_row(obj: dict[str, Any]) -> Optional[SavedArticle]:
    article_id = str(obj.get("id") or "")
    if not article_id:
        return None
    saved_at = parse_published_at(obj.get("saved_at")) or datetime.now(timezone.utc)
    article = Article(
        id=article_id,
        title=str(obj.get("title") or ""),
        description=str(obj.get("description") or ""),
        url=str(obj.get("url") or ""),
        published_at=parse_published_at(obj.get("published_at")),
        source_name=str(obj.get("source_name") or ""),
        content=obj.get("content") or None,
        image_url=obj.get("image_url") or None,
        trending=bool(obj.get("trending", False)),
    )
    return SavedArticle(article=article, saved_at=saved_at)


class BookmarkStore:
    """Ordered set of saved articles keyed by article id.

    Independent of the live feed: fetches and filter changes never touch it.
    When `output_dir` is given, the collection is mirrored to `saved.jsonl`.
    """

    def __init__(
        self,
        output_dir: Optional[Path] = None,
        *,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._items: dict[str, SavedArticle] = {}
        self._output_dir = output_dir
        self._clock = clock
        if output_dir is not None:
            self._load()

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, article_id: object) -> bool:
        return article_id in self._items

    def is_saved(self, article_id: str) -> bool:
        return article_id in self._items

    def list(self) -> list[SavedArticle]:
        return list(self._items.values())

    def toggle(self, article: Article) -> bool:
        """Save `article`, or unsave it if already saved. Returns the new saved state."""

        if article.id in self._items:
            del self._items[article.id]
            saved = False
        else:
            self._items[article.id] = SavedArticle(article=article, saved_at=self._clock())
            saved = True
        self._flush()
        return saved

    def remove(self, article_id: str) -> None:
        if self._items.pop(article_id, None) is not None:
            self._flush()

    def clear(self) -> None:
        self._items.clear()
        self._flush()

    def to_frame(self) -> pd.DataFrame:
        rows = [_to_row(s) for s in self._items.values()]
        df = pd.DataFrame(rows)
        if not df.empty:
            df["published_at"] = pd.to_datetime(df["published_at"], utc=True, errors="coerce")
            df["saved_at"] = pd.to_datetime(df["saved_at"], utc=True, errors="coerce")
        return df

    def _load(self) -> None:
        path = saved_path(self._output_dir)
        if not path.exists():
            return

        with open(path, "r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    obj = json.loads(line)
                except json.JSONDecodeError:
                    logger.warning("Skipping malformed bookmark line in %s", path)
                    continue
                saved = _from_row(obj) if isinstance(obj, dict) else None
                if saved is not None and saved.id not in self._items:
                    self._items[saved.id] = saved
        logger.info("Loaded %d bookmarks from %s", len(self._items), path)

    def _flush(self) -> None:
        if self._output_dir is None:
            return
        self._output_dir.mkdir(parents=True, exist_ok=True)
        path = saved_path(self._output_dir)
        with open(path, "w", encoding="utf-8") as f:
            for saved in self._items.values():
                f.write(json.dumps(_to_row(saved), ensure_ascii=False) + "\n")
