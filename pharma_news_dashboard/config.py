from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

DEFAULT_KEYWORDS = (
    "pharmaceutical",
    "clinical trial",
    "FDA approval",
    "biotechnology",
    "drug discovery",
    "medical research",
    "medicine",
    "healthcare",
)

PAGE_SIZE_CHOICES = (6, 9, 12, 18, 24)


@dataclass(frozen=True)
class Config:
    raw: dict[str, Any]

    def _section(self, name: str) -> dict[str, Any]:
        return self.raw.get(name, {}) or {}

    @property
    def feed_endpoint(self) -> str:
        return str(self._section("feed").get("endpoint", "https://newsapi.org/v2/everything"))

    @property
    def feed_keywords(self) -> list[str]:
        return [str(k) for k in (self._section("feed").get("keywords") or DEFAULT_KEYWORDS)]

    @property
    def feed_language(self) -> str:
        return str(self._section("feed").get("language", "en"))

    @property
    def feed_sort_by(self) -> str:
        return str(self._section("feed").get("sort_by", "publishedAt"))

    @property
    def feed_page_size(self) -> int:
        # provider hard cap is 100
        return min(100, int(self._section("feed").get("page_size", 100)))

    @property
    def timeout_seconds(self) -> int:
        return int(self._section("feed").get("timeout_seconds", 20))

    @property
    def api_key(self) -> str:
        env_name = str(self._section("feed").get("api_key_env", "NEWS_API_KEY"))
        return os.environ.get(env_name) or str(self._section("feed").get("api_key") or "")

    @property
    def retry(self) -> dict[str, Any]:
        return self._section("retry")

    @property
    def refresh_interval_seconds(self) -> float:
        return float(self._section("refresh").get("interval_seconds", 300))

    @property
    def auto_refresh(self) -> bool:
        return bool(self._section("refresh").get("auto_start", False))

    @property
    def page_size(self) -> int:
        return int(self._section("pagination").get("page_size", 9))

    @property
    def output_dir(self) -> Path:
        return Path(self._section("storage").get("output_dir", "data"))

    @property
    def persist_bookmarks(self) -> bool:
        return bool(self._section("storage").get("persist_bookmarks", True))

    @property
    def log_level(self) -> str:
        return str(self._section("logging").get("level", "INFO")).upper()


def load_yaml(path: str | Path) -> dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_config(path: str | Path | None = None) -> Config:
    # .env is optional; only NEWS_API_KEY is read from it
    load_dotenv()
    if path is None or not Path(path).exists():
        return Config(raw={})
    return Config(raw=load_yaml(path))
