"""Dashboard state and the reducer that is its only mutator.

Every user gesture and every fetch result is an action. `reduce` returns a new
`DashboardState`; `compute_view` derives the visible page from it.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional, Union

from pharma_news_dashboard.filters import filter_articles
from pharma_news_dashboard.paginate import clamp_page, paginate, total_pages_for, visible_pages
from pharma_news_dashboard.sorter import sort_articles
from pharma_news_dashboard.types import (
    ApiStatus,
    Article,
    DateRange,
    FilterState,
    PaginationState,
    SortMode,
)


@dataclass(frozen=True)
class DashboardState:
    articles: tuple[Article, ...] = ()
    sources: tuple[str, ...] = ()
    filters: FilterState = field(default_factory=FilterState)
    pagination: PaginationState = field(default_factory=PaginationState)
    loading: bool = False
    error: Optional[str] = None
    api_status: ApiStatus = ApiStatus.CHECKING
    last_updated: Optional[datetime] = None
    has_fetched: bool = False


# --- actions -----------------------------------------------------------------


@dataclass(frozen=True)
class SetQuery:
    query: str


@dataclass(frozen=True)
class ToggleSource:
    source: str


@dataclass(frozen=True)
class ClearSources:
    pass


@dataclass(frozen=True)
class SetSources:
    sources: frozenset[str]


@dataclass(frozen=True)
class SetDateRange:
    date_range: DateRange


@dataclass(frozen=True)
class SetSortMode:
    sort_mode: SortMode


@dataclass(frozen=True)
class ClearFilters:
    pass


@dataclass(frozen=True)
class GoToPage:
    page_index: int


@dataclass(frozen=True)
class NextPage:
    pass


@dataclass(frozen=True)
class PrevPage:
    pass


@dataclass(frozen=True)
class SetPageSize:
    page_size: int


@dataclass(frozen=True)
class FetchStarted:
    pass


@dataclass(frozen=True)
class FetchSucceeded:
    articles: tuple[Article, ...]
    sources: tuple[str, ...]
    fetched_at: datetime


@dataclass(frozen=True)
class FetchFailed:
    message: str


Action = Union[
    SetQuery,
    ToggleSource,
    ClearSources,
    SetSources,
    SetDateRange,
    SetSortMode,
    ClearFilters,
    GoToPage,
    NextPage,
    PrevPage,
    SetPageSize,
    FetchStarted,
    FetchSucceeded,
    FetchFailed,
]


# --- derived view ------------------------------------------------------------


@dataclass(frozen=True)
class PageView:
    items: list[Article]
    page_index: int
    page_size: int
    total_pages: int
    total_count: int
    page_numbers: list[Optional[int]]

    @property
    def is_empty(self) -> bool:
        return self.total_count == 0

    @property
    def has_next(self) -> bool:
        return self.page_index < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.page_index > 1


def filtered_sorted(state: DashboardState, *, now: Optional[datetime] = None) -> list[Article]:
    f = state.filters
    items = filter_articles(state.articles, f, now=now)
    return sort_articles(items, f.sort_mode, f.query)


def compute_view(state: DashboardState, *, now: Optional[datetime] = None) -> PageView:
    items = filtered_sorted(state, now=now)
    size = state.pagination.page_size
    total = total_pages_for(len(items), size)
    index = clamp_page(state.pagination.page_index, total)
    page = paginate(items, index, size)
    return PageView(
        items=page.items,
        page_index=index,
        page_size=size,
        total_pages=total,
        total_count=len(items),
        page_numbers=visible_pages(index, total),
    )


# --- reducer -----------------------------------------------------------------


def _with_filters(state: DashboardState, filters: FilterState) -> DashboardState:
    if filters == state.filters:
        return state
    return replace(state, filters=filters, pagination=replace(state.pagination, page_index=1))


def _with_page(state: DashboardState, page_index: int, *, now: Optional[datetime]) -> DashboardState:
    count = len(filtered_sorted(state, now=now))
    total = total_pages_for(count, state.pagination.page_size)
    return replace(state, pagination=replace(state.pagination, page_index=clamp_page(page_index, total)))


def reduce(state: DashboardState, action: Action, *, now: Optional[datetime] = None) -> DashboardState:
    f = state.filters

    if isinstance(action, SetQuery):
        return _with_filters(state, replace(f, query=action.query))

    if isinstance(action, ToggleSource):
        selected = set(f.selected_sources)
        selected.symmetric_difference_update({action.source})
        return _with_filters(state, replace(f, selected_sources=frozenset(selected)))

    if isinstance(action, ClearSources):
        return _with_filters(state, replace(f, selected_sources=frozenset()))

    if isinstance(action, SetSources):
        return _with_filters(state, replace(f, selected_sources=frozenset(action.sources)))

    if isinstance(action, SetDateRange):
        return _with_filters(state, replace(f, date_range=DateRange(action.date_range)))

    if isinstance(action, SetSortMode):
        return _with_filters(state, replace(f, sort_mode=SortMode(action.sort_mode)))

    if isinstance(action, ClearFilters):
        return _with_filters(state, FilterState())

    if isinstance(action, GoToPage):
        return _with_page(state, action.page_index, now=now)

    if isinstance(action, NextPage):
        return _with_page(state, state.pagination.page_index + 1, now=now)

    if isinstance(action, PrevPage):
        return _with_page(state, state.pagination.page_index - 1, now=now)

    if isinstance(action, SetPageSize):
        if action.page_size <= 0:
            raise ValueError("page_size must be > 0")
        resized = replace(state, pagination=replace(state.pagination, page_size=action.page_size))
        return _with_page(resized, resized.pagination.page_index, now=now)

    if isinstance(action, FetchStarted):
        return replace(state, loading=True, error=None, api_status=ApiStatus.CHECKING)

    if isinstance(action, FetchSucceeded):
        return replace(
            state,
            articles=tuple(action.articles),
            sources=tuple(action.sources),
            pagination=replace(state.pagination, page_index=1),
            loading=False,
            error=None,
            api_status=ApiStatus.CONNECTED,
            last_updated=action.fetched_at,
            has_fetched=True,
        )

    if isinstance(action, FetchFailed):
        # keep the last good batch; there is nothing to keep before the first success
        articles = state.articles if state.has_fetched else ()
        sources = state.sources if state.has_fetched else ()
        return replace(
            state,
            articles=articles,
            sources=sources,
            loading=False,
            error=action.message,
            api_status=ApiStatus.ERROR,
        )

    raise TypeError(f"unknown action: {action!r}")


def initial_state(page_size: int = 9) -> DashboardState:
    return DashboardState(pagination=PaginationState(page_index=1, page_size=page_size))