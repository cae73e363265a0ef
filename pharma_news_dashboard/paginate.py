from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence

from pharma_news_dashboard.types import Article


@dataclass(frozen=True)
class Page:
    items: list[Article]
    total_pages: int


def total_pages_for(count: int, page_size: int) -> int:
    if page_size <= 0:
        raise ValueError("page_size must be > 0")
    return max(1, math.ceil(count / page_size))


def clamp_page(page_index: int, total_pages: int) -> int:
    return max(1, min(page_index, total_pages))


def paginate(articles: Sequence[Article], page_index: int, page_size: int) -> Page:
    total = total_pages_for(len(articles), page_size)
    if page_index < 1 or page_index > total:
        return Page(items=[], total_pages=total)
    start = (page_index - 1) * page_size
    return Page(items=list(articles[start : start + page_size]), total_pages=total)


def visible_pages(current: int, total: int, delta: int = 2) -> list[Optional[int]]:
    """Page-number strip around `current`; None marks a gap ("...")."""

    if total <= 1:
        return [1]

    middle = list(range(max(2, current - delta), min(total - 1, current + delta) + 1))

    out: list[Optional[int]] = [1]
    if current - delta > 2:
        out.append(None)
    out.extend(middle)
    if current + delta < total - 1:
        out.append(None)
    out.append(total)
    return out
