"""Read-only views over the frequency stores for the /diagnostic endpoints."""

from datetime import datetime, timezone

import database
from schemas import KeywordDiagnostics, KeywordEntry, WordDiagnostics, WordEntry
from uniqueness import rarity_from_count


def age_string(timestamp: str | None, now: datetime | None = None) -> str:
    """'3 days ago', '5 hours ago', 'just now'; '' when unparseable."""
    if not timestamp:
        return ""
    try:
        checked = datetime.fromisoformat(timestamp)
    except ValueError:
        return ""
    if checked.tzinfo is None:
        checked = checked.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    seconds = max(0, int((now - checked).total_seconds()))
    for unit, size in (("day", 86400), ("hour", 3600), ("minute", 60)):
        if seconds >= size:
            n = seconds // size
            return f"{n} {unit}{'s' if n != 1 else ''} ago"
    return "just now"


def _keyword_entry(row: dict, now: datetime | None = None) -> KeywordEntry:
    return KeywordEntry(
        keywords=row["keywords"],
        search_count=row["search_count"],
        source=row["source"],
        rarity=rarity_from_count(row["search_count"])["level"],
        age=age_string(row.get("last_checked"), now),
    )


def keyword_report(top: int = 5, recent: int = 20) -> KeywordDiagnostics:
    return KeywordDiagnostics(
        total=database.count_keywords(),
        most_common=[_keyword_entry(r) for r in database.keywords_by_search_count(top, descending=True)],
        least_common=[_keyword_entry(r) for r in database.keywords_by_search_count(top, descending=False)],
        recent=[_keyword_entry(r) for r in database.list_keywords(recent)],
    )


def _word_entry(row: dict) -> WordEntry:
    url_count = row["url_count"] or 0
    avg = row["total_count"] / url_count if url_count else 0.0
    return WordEntry(
        word=row["word"],
        total_count=row["total_count"],
        url_count=url_count,
        avg_per_url=round(avg, 2),
        datamuse_frequency=row.get("datamuse_frequency"),
    )


def word_report(limit: int = 10) -> WordDiagnostics:
    return WordDiagnostics(
        total=database.count_words(),
        most_common=[_word_entry(r) for r in database.most_common_words(limit)],
        least_common=[_word_entry(r) for r in database.least_common_words(limit)],
    )
