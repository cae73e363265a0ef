"""Tests for the feed record normalizer."""

from datetime import datetime, timezone

from pharma_news_dashboard.normalize import (
    REMOVED_MARKER,
    normalize_records,
    parse_published_at,
    renormalize,
)


class TestNormalizeRecords:
    def test_builds_articles_in_input_order(self, make_record):
        records = [make_record(), make_record(), make_record()]

        batch = normalize_records(records)

        assert [a.url for a in batch.articles] == [r["url"] for r in records]
        first = batch.articles[0]
        assert first.id == first.url
        assert first.source_name == "Reuters"
        assert first.content == "Body 1"
        assert first.published_at == datetime(2024, 3, 15, 10, 0, tzinfo=timezone.utc)

    def test_rejects_records_missing_required_fields(self, make_record):
        records = [
            make_record(title=None),
            make_record(title="   "),
            make_record(title=REMOVED_MARKER),
            make_record(url=None),
            make_record(description=""),
            make_record(),
        ]

        batch = normalize_records(records)

        assert len(batch.articles) == 1
        assert batch.articles[0].title == "Headline 6"

    def test_skips_non_mapping_records(self, make_record):
        batch = normalize_records([None, "junk", 42, make_record()])

        assert len(batch.articles) == 1

    def test_none_input_is_empty(self):
        batch = normalize_records(None)

        assert batch.articles == []
        assert batch.sources == []

    def test_duplicate_urls_keep_first(self, make_record):
        first = make_record(url="https://x.test/a", title="First")
        second = make_record(url="https://x.test/a", title="Second")

        batch = normalize_records([first, second])

        assert len(batch.articles) == 1
        assert batch.articles[0].title == "First"

    def test_first_five_are_trending(self, make_record):
        records = [make_record() for _ in range(8)]

        batch = normalize_records(records)

        assert [a.trending for a in batch.articles] == [True] * 5 + [False] * 3

    def test_trending_counts_only_accepted_records(self, make_record):
        records = [make_record(title=REMOVED_MARKER)] + [make_record() for _ in range(6)]

        batch = normalize_records(records)

        assert sum(a.trending for a in batch.articles) == 5
        assert batch.articles[0].trending

    def test_unparsable_date_is_kept_without_timestamp(self, make_record):
        batch = normalize_records([make_record(publishedAt="not a date")])

        assert len(batch.articles) == 1
        assert batch.articles[0].published_at is None

    def test_sources_are_distinct_and_sorted(self, make_record):
        records = [
            make_record(source={"name": "STAT"}),
            make_record(source={"name": "BBC News"}),
            make_record(source={"name": "STAT"}),
            make_record(source=None),
        ]

        batch = normalize_records(records)

        assert batch.sources == ["BBC News", "STAT"]
        assert batch.articles[-1].source_name == ""

    def test_missing_image_is_none(self, make_record):
        batch = normalize_records([make_record(urlToImage=""), make_record(urlToImage="https://img/1.png")])

        assert batch.articles[0].image_url is None
        assert batch.articles[1].image_url == "https://img/1.png"


class TestRenormalize:
    def test_normalized_output_is_a_fixed_point(self, make_record):
        records = [make_record(), make_record(url="https://dup"), make_record(url="https://dup")]
        batch = normalize_records(records)

        again = renormalize(batch.articles)

        assert again.articles == batch.articles
        assert again.sources == batch.sources


class TestParsePublishedAt:
    def test_naive_is_assumed_utc(self):
        assert parse_published_at("2024-01-01T12:00:00") == datetime(2024, 1, 1, 12, tzinfo=timezone.utc)

    def test_offset_is_converted_to_utc(self):
        assert parse_published_at("2024-01-01T14:00:00+02:00") == datetime(2024, 1, 1, 12, tzinfo=timezone.utc)

    def test_empty_and_garbage(self):
        assert parse_published_at(None) is None
        assert parse_published_at("") is None
        assert parse_published_at("yesterday-ish") is None
