"""Tests for the sqlite frequency stores."""
from datetime import datetime, timedelta, timezone

import database


def test_init_db_is_idempotent(temp_db):
    database.init_db()
    assert database.count_keywords() == 0
    assert database.count_words() == 0


def test_keyword_upsert_and_read(temp_db):
    database.upsert_keywords("garden soil", 4200, "datamuse-estimate")
    database.upsert_keywords("garden soil", 3900, "datamuse-estimate")
    cached = database.get_cached_keywords("garden soil")
    assert cached["search_count"] == 3900
    assert database.count_keywords() == 1


def test_expired_keywords(temp_db, monkeypatch):
    old = datetime.now(timezone.utc) - timedelta(days=45)
    with monkeypatch.context() as m:
        m.setattr(database, "_now", lambda: old)
        database.upsert_keywords("stale phrase", 100, "datamuse-estimate")

    assert database.get_cached_keywords("stale phrase", max_age_days=30) is None
    assert database.purge_expired_keywords(30) == 1
    assert database.count_keywords() == 0


def test_writes_purge_expired_keywords(temp_db, monkeypatch):
    old = datetime.now(timezone.utc) - timedelta(days=45)
    with monkeypatch.context() as m:
        m.setattr(database, "_now", lambda: old)
        database.upsert_keywords("stale phrase", 100, "datamuse-estimate")
        database.upsert_keywords("another stale phrase", 150, "datamuse-estimate")
    database.upsert_keywords("fresh phrase", 200, "datamuse-estimate", max_age_days=30)
    assert [row["keywords"] for row in database.list_keywords()] == ["fresh phrase"]


def test_naive_timestamps_are_read_as_utc(temp_db):
    stamp = (datetime.now(timezone.utc) - timedelta(days=2)).replace(tzinfo=None).isoformat()
    conn = database.get_connection()
    try:
        conn.execute(
            "INSERT INTO keyword_frequency (keywords, search_count, source, last_checked) VALUES (?, ?, ?, ?)",
            ("legacy row", 300, "datamuse-estimate", stamp),
        )
        conn.commit()
    finally:
        conn.close()
    assert database.get_cached_keywords("legacy row", max_age_days=30)["search_count"] == 300
    assert database.get_cached_keywords("legacy row", max_age_days=1) is None


def test_keywords_by_search_count(temp_db):
    for phrase, count in (("a b", 10), ("c d", 5000), ("e f", 200)):
        database.upsert_keywords(phrase, count, "datamuse-estimate")
    assert [r["keywords"] for r in database.keywords_by_search_count(2)] == ["c d", "e f"]
    assert [r["keywords"] for r in database.keywords_by_search_count(1, descending=False)] == ["a b"]


def test_word_counters(temp_db):
    database.increment_word("Mulch", 3, 0.3)
    database.increment_word("mulch", 2)
    database.increment_word("garden", 1, 40.0)

    assert database.get_word_url_counts(["mulch", "garden", "unseen"]) == {"mulch": 2, "garden": 1, "unseen": 0}
    top = database.most_common_words(1)[0]
    assert top["word"] == "mulch"
    assert top["total_count"] == 5
    # A later write without a frequency keeps the stored one.
    assert top["datamuse_frequency"] == 0.3
    assert database.least_common_words(1)[0]["word"] == "garden"


def test_clear_frequency_data(temp_db):
    database.upsert_keywords("garden soil", 4200, "datamuse-estimate")
    database.increment_word("mulch", 1)
    assert database.clear_frequency_data() == {"keywords_deleted": 1, "words_deleted": 1}
    assert database.count_keywords() == 0
    assert database.count_words() == 0
