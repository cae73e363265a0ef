from __future__ import annotations

from typing import Optional


class DashboardError(Exception):
    """Base class for errors raised by the dashboard core."""


class FeedError(DashboardError):
    """The feed request failed or returned nothing usable. Always retryable."""

    def __init__(self, message: str, *, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


class ShareUnavailable(DashboardError):
    """No native share target exists on this platform."""
