from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

import aiohttp

logger = logging.getLogger(__name__)


@dataclass
class RetryPolicy:
    max_attempts: int = 3
    base_delay_seconds: float = 1.0
    max_delay_seconds: float = 8.0
    retry_statuses: set[int] = field(default_factory=lambda: {429, 500, 502, 503, 504})

    @classmethod
    def from_config(cls, raw: Mapping[str, Any]) -> "RetryPolicy":
        default = cls()
        return cls(
            max_attempts=max(1, int(raw.get("max_attempts", default.max_attempts))),
            base_delay_seconds=float(raw.get("base_delay_seconds", default.base_delay_seconds)),
            max_delay_seconds=float(raw.get("max_delay_seconds", default.max_delay_seconds)),
            retry_statuses=set(int(x) for x in raw.get("retry_statuses", default.retry_statuses)),
        )

    def delay_for(self, attempt: int) -> float:
        delay = min(self.max_delay_seconds, self.base_delay_seconds * (2 ** (attempt - 1)))
        # jitter to avoid thundering herd
        return delay * random.uniform(0.7, 1.3)


@dataclass(frozen=True)
class JsonResponse:
    status: int
    payload: Any

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class HttpClient:
    def __init__(
        self,
        session: aiohttp.ClientSession,
        retry: RetryPolicy,
        timeout_seconds: int,
        user_agent: str = "pharma-news-dashboard/0.1",
    ) -> None:
        self._session = session
        self._retry = retry
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._ua = user_agent

    async def get_json(self, url: str, params: Optional[Mapping[str, str]] = None) -> JsonResponse:
        """GET `url` and decode its JSON body.

        Retryable statuses and transport errors are retried per the policy.
        The last response is returned as-is once attempts run out; the last
        transport error is re-raised.
        """

        headers = {"User-Agent": self._ua, "Accept": "application/json"}

        for attempt in range(1, self._retry.max_attempts + 1):
            try:
                async with self._session.get(url, params=params, headers=headers, timeout=self._timeout) as r:
                    try:
                        payload = await r.json(content_type=None)
                    except ValueError:
                        payload = None
                    response = JsonResponse(status=r.status, payload=payload)
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                if attempt >= self._retry.max_attempts:
                    raise
                logger.warning("GET %s failed (%s), attempt %d/%d", url, e, attempt, self._retry.max_attempts)
                await asyncio.sleep(self._retry.delay_for(attempt))
                continue

            if response.status in self._retry.retry_statuses and attempt < self._retry.max_attempts:
                logger.warning(
                    "GET %s returned %d, attempt %d/%d", url, response.status, attempt, self._retry.max_attempts
                )
                await asyncio.sleep(self._retry.delay_for(attempt))
                continue
            return response

        raise ValueError("retry policy allows no attempts")
