from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class DateRange(str, Enum):
    ALL = "all"
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"


class SortMode(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    RELEVANCE = "relevance"


class ApiStatus(str, Enum):
    CHECKING = "checking"
    CONNECTED = "connected"
    ERROR = "error"


@dataclass(frozen=True)
class Article:
    id: str
    title: str
    description: str
    url: str
    published_at: Optional[datetime]
    source_name: str = ""
    content: Optional[str] = None
    image_url: Optional[str] = None

    # head window of the latest batch; recomputed on every fetch
    trending: bool = False


@dataclass(frozen=True)
class SavedArticle:
    article: Article
    saved_at: datetime

    @property
    def id(self) -> str:
        return self.article.id


@dataclass(frozen=True)
class FilterState:
    query: str = ""
    selected_sources: frozenset[str] = field(default_factory=frozenset)
    date_range: DateRange = DateRange.ALL
    sort_mode: SortMode = SortMode.NEWEST

    @property
    def is_default(self) -> bool:
        return self == FilterState()


@dataclass(frozen=True)
class PaginationState:
    page_index: int = 1
    page_size: int = 9

    def __post_init__(self) -> None:
        if self.page_index < 1:
            raise ValueError("page_index must be >= 1")
        if self.page_size <= 0:
            raise ValueError("page_size must be > 0")
