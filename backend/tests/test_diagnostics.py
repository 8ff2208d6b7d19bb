"""Tests for the frequency store diagnostics views."""
from datetime import datetime, timezone

import pytest

import database
from diagnostics import age_string, keyword_report, word_report

NOW = datetime(2024, 5, 10, 12, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "timestamp,expected",
    [
        ("2024-05-07T12:00:00+00:00", "3 days ago"),
        ("2024-05-09T12:00:00+00:00", "1 day ago"),
        ("2024-05-10T07:00:00+00:00", "5 hours ago"),
        ("2024-05-10T11:58:00", "2 minutes ago"),
        ("2024-05-10T11:59:30+00:00", "just now"),
        ("2024-05-11T12:00:00+00:00", "just now"),
        ("not a date", ""),
        (None, ""),
    ],
)
def test_age_string(timestamp, expected):
    assert age_string(timestamp, NOW) == expected


def test_keyword_report(temp_db):
    database.upsert_keywords("garden soil test", 500, "datamuse")
    database.upsert_keywords("spring planting", 50000, "estimated")
    database.upsert_keywords("compost", 250000, "datamuse")

    report = keyword_report(top=2)

    assert report.total == 3
    assert [e.keywords for e in report.most_common] == ["compost", "spring planting"]
    assert [e.keywords for e in report.least_common] == ["garden soil test", "spring planting"]
    assert report.least_common[0].rarity == "very-unique"
    assert report.most_common[1].rarity == "somewhat-unique"
    assert report.recent[0].age == "just now"


def test_word_report(temp_db):
    database.increment_word("soil", 6)
    database.increment_word("soil", 4)
    database.increment_word("mulch", 3, datamuse_frequency=0.3)

    report = word_report(limit=5)

    assert report.total == 2
    top = report.most_common[0]
    assert (top.word, top.total_count, top.url_count, top.avg_per_url) == ("soil", 10, 2, 5.0)
    assert top.datamuse_frequency is None
    assert report.least_common[0].word == "mulch"
    assert report.least_common[0].datamuse_frequency == 0.3


def test_empty_stores(temp_db):
    assert keyword_report().total == 0
    assert word_report().most_common == []
