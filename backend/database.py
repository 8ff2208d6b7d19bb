"""SQLite storage for the uniqueness subsystem.

Table: keyword_frequency (cache of keyword-combination search estimates, 30 day TTL)
- keywords (text, primary key; lowercase words sorted and space-joined)
- search_count (integer)
- source (text)
- last_checked (datetime)

Table: word_frequency (cross-corpus counters, no TTL)
- word (text, primary key)
- total_count (integer)
- url_count (integer; distinct analyzed pages)
- datamuse_frequency (real, nullable)
- last_seen (datetime)
"""

import sqlite3
from datetime import datetime, timedelta, timezone

import config


def get_connection() -> sqlite3.Connection:
    """Return a connection to the SQLite database."""
    conn = sqlite3.connect(config.DB_PATH, timeout=10)
    conn.row_factory = sqlite3.Row
    return conn


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_timestamp(value: str) -> datetime:
    """Stored timestamps are UTC; rows written before they carried an offset are naive."""
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def init_db() -> None:
    """Create the frequency tables if they do not exist."""
    conn = get_connection()
    try:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS keyword_frequency (
                keywords TEXT PRIMARY KEY,
                search_count INTEGER NOT NULL DEFAULT 0,
                source TEXT NOT NULL,
                last_checked TEXT NOT NULL
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS word_frequency (
                word TEXT PRIMARY KEY,
                total_count INTEGER NOT NULL DEFAULT 1,
                url_count INTEGER NOT NULL DEFAULT 1,
                datamuse_frequency REAL,
                last_seen TEXT NOT NULL
            )
            """
        )
        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_keyword_last_checked ON keyword_frequency (last_checked)"
        )
        conn.commit()
    finally:
        conn.close()


# --- keyword_frequency ---


def get_cached_keywords(keyphrase: str, max_age_days: int = 30) -> dict | None:
    """Return the cached record, or None when missing or older than max_age_days."""
    conn = get_connection()
    try:
        row = conn.execute(
            "SELECT keywords, search_count, source, last_checked FROM keyword_frequency WHERE keywords = ?",
            (keyphrase,),
        ).fetchone()
    finally:
        conn.close()

    if row is None:
        return None
    checked = _parse_timestamp(row["last_checked"])
    if _now() - checked > timedelta(days=max_age_days):
        return None
    return dict(row)


def upsert_keywords(keyphrase: str, search_count: int, source: str, max_age_days: int | None = None) -> None:
    """Insert or refresh one record, dropping records past the TTL in the same transaction."""
    max_age_days = config.KEYWORD_CACHE_MAX_AGE_DAYS if max_age_days is None else max_age_days
    now = _now()
    conn = get_connection()
    try:
        conn.execute(
            "DELETE FROM keyword_frequency WHERE last_checked < ?",
            ((now - timedelta(days=max_age_days)).isoformat(),),
        )
        conn.execute(
            """
            INSERT INTO keyword_frequency (keywords, search_count, source, last_checked)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(keywords) DO UPDATE SET
                search_count = excluded.search_count,
                source = excluded.source,
                last_checked = excluded.last_checked
            """,
            (keyphrase, int(search_count), source, now.isoformat()),
        )
        conn.commit()
    finally:
        conn.close()


def purge_expired_keywords(max_age_days: int = 30) -> int:
    """Delete keyword records past the TTL. Returns the number removed."""
    cutoff = (_now() - timedelta(days=max_age_days)).isoformat()
    conn = get_connection()
    try:
        cursor = conn.execute("DELETE FROM keyword_frequency WHERE last_checked < ?", (cutoff,))
        conn.commit()
        return cursor.rowcount
    finally:
        conn.close()


def list_keywords(limit: int = 20) -> list[dict]:
    """Most recently checked keyword records."""
    safe_limit = max(1, min(500, int(limit)))
    conn = get_connection()
    try:
        rows = conn.execute(
            """
            SELECT keywords, search_count, source, last_checked
            FROM keyword_frequency
            ORDER BY last_checked DESC
            LIMIT ?
            """,
            (safe_limit,),
        ).fetchall()
        return [dict(row) for row in rows]
    finally:
        conn.close()


def keywords_by_search_count(limit: int = 5, descending: bool = True) -> list[dict]:
    order = "DESC" if descending else "ASC"
    conn = get_connection()
    try:
        rows = conn.execute(
            f"""
            SELECT keywords, search_count, source, last_checked
            FROM keyword_frequency
            ORDER BY search_count {order}
            LIMIT ?
            """,
            (max(1, int(limit)),),
        ).fetchall()
        return [dict(row) for row in rows]
    finally:
        conn.close()


def count_keywords() -> int:
    conn = get_connection()
    try:
        return conn.execute("SELECT COUNT(*) FROM keyword_frequency").fetchone()[0]
    finally:
        conn.close()


# --- word_frequency ---


def increment_word(word: str, count: int, datamuse_frequency: float | None = None) -> None:
    """Add one page's occurrences of `word` to the corpus counters."""
    conn = get_connection()
    try:
        conn.execute(
            """
            INSERT INTO word_frequency (word, total_count, url_count, datamuse_frequency, last_seen)
            VALUES (?, ?, 1, ?, ?)
            ON CONFLICT(word) DO UPDATE SET
                total_count = total_count + excluded.total_count,
                url_count = url_count + 1,
                datamuse_frequency = COALESCE(excluded.datamuse_frequency, datamuse_frequency),
                last_seen = excluded.last_seen
            """,
            (word.lower(), max(1, int(count)), datamuse_frequency, _now().isoformat()),
        )
        conn.commit()
    finally:
        conn.close()


def get_word_url_counts(words: list[str]) -> dict[str, int]:
    """Map each word to the number of analyzed pages it appeared on (0 when unseen)."""
    counts = {w: 0 for w in words}
    if not words:
        return counts
    placeholders = ",".join("?" for _ in words)
    conn = get_connection()
    try:
        rows = conn.execute(
            f"SELECT word, url_count FROM word_frequency WHERE word IN ({placeholders})",
            tuple(words),
        ).fetchall()
    finally:
        conn.close()
    for row in rows:
        counts[row["word"]] = row["url_count"]
    return counts


def _words_ordered(order_sql: str, limit: int) -> list[dict]:
    conn = get_connection()
    try:
        rows = conn.execute(
            f"""
            SELECT word, total_count, url_count, datamuse_frequency, last_seen
            FROM word_frequency
            ORDER BY {order_sql}
            LIMIT ?
            """,
            (max(1, int(limit)),),
        ).fetchall()
        return [dict(row) for row in rows]
    finally:
        conn.close()


def most_common_words(limit: int = 10) -> list[dict]:
    return _words_ordered("url_count DESC, total_count DESC", limit)


def least_common_words(limit: int = 10) -> list[dict]:
    return _words_ordered("url_count ASC, total_count ASC", limit)


def count_words() -> int:
    conn = get_connection()
    try:
        return conn.execute("SELECT COUNT(*) FROM word_frequency").fetchone()[0]
    finally:
        conn.close()


def clear_frequency_data() -> dict[str, int]:
    """Administrative purge of both collections. Returns deleted row counts."""
    conn = get_connection()
    try:
        keywords = conn.execute("DELETE FROM keyword_frequency").rowcount
        words = conn.execute("DELETE FROM word_frequency").rowcount
        conn.commit()
        return {"keywords_deleted": keywords, "words_deleted": words}
    finally:
        conn.close()
