from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Mapping, Optional

from pharma_news_dashboard.errors import ShareUnavailable
from pharma_news_dashboard.types import Article

logger = logging.getLogger(__name__)

NativeShare = Callable[[Mapping[str, str]], None]


class ShareResult(str, Enum):
    SHARED = "shared"
    COPIED = "copied"


def share_payload(article: Article) -> dict[str, str]:
    return {"title": article.title, "text": article.description, "url": article.url}


def share_article(
    article: Article,
    *,
    clipboard: Callable[[str], None],
    native: Optional[NativeShare] = None,
) -> ShareResult:
    """Share through the native dialog when there is one, else copy the link.

    The returned value tells the caller which path was taken so it can tell
    the user.
    """

    if native is not None:
        try:
            native(share_payload(article))
            return ShareResult.SHARED
        except ShareUnavailable:
            logger.debug("Native share unavailable; copying link instead")
        except Exception as e:
            # dismissed by the user or failed in the target; no clipboard fallback
            logger.info("Error sharing: %s", e)
            return ShareResult.SHARED

    clipboard(article.url)
    return ShareResult.COPIED


def share_message(result: ShareResult) -> str:
    if result == ShareResult.COPIED:
        return "Article link copied to clipboard!"
    return "Article shared"
