"""Tests for config loading."""

from pathlib import Path

from pharma_news_dashboard.config import DEFAULT_KEYWORDS, load_config

REPO_CONFIG = Path(__file__).resolve().parents[1] / "config" / "config.yaml"


class TestLoadConfig:
    def test_missing_file_gives_defaults(self, tmp_path):
        cfg = load_config(tmp_path / "nope.yaml")

        assert cfg.raw == {}
        assert cfg.feed_keywords == list(DEFAULT_KEYWORDS)
        assert cfg.refresh_interval_seconds == 300
        assert cfg.page_size == 9
        assert not cfg.auto_refresh

    def test_reads_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "refresh:\n  interval_seconds: 60\n  auto_start: true\n"
            "pagination:\n  page_size: 12\n"
            "storage:\n  output_dir: out\n  persist_bookmarks: false\n"
            "logging:\n  level: debug\n",
            encoding="utf-8",
        )

        cfg = load_config(path)

        assert cfg.refresh_interval_seconds == 60
        assert cfg.auto_refresh
        assert cfg.page_size == 12
        assert cfg.output_dir == Path("out")
        assert not cfg.persist_bookmarks
        assert cfg.log_level == "DEBUG"

    def test_empty_sections_are_tolerated(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("feed:\nretry:\n", encoding="utf-8")

        cfg = load_config(path)

        assert cfg.feed_endpoint == "https://newsapi.org/v2/everything"
        assert cfg.retry == {}

    def test_shipped_config_loads(self):
        cfg = load_config(REPO_CONFIG)

        assert cfg.feed_page_size == 100
        assert "clinical trial" in cfg.feed_keywords
        assert cfg.retry["max_attempts"] == 3
