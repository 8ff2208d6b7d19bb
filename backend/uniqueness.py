"""
Vocabulary uniqueness: how rare a page's words are on the web (Datamuse
frequency) and across every page this service has analyzed (word_frequency).

Datamuse frequency is occurrences per million words: "the" is ~407, "pizza"
~2.2, "chipotle" ~0.04. A word Datamuse does not know returns 0, which is
read as "rare enough to be unindexed" rather than as missing data.
"""

import functools
import logging
import math
import random
import sqlite3
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable

import requests

import config
import database
from models import Keyword, KeywordRarityResult, UniquenessReport, UniquenessResult
from scorers.normalize import round_half_up
from text_analysis import extract_keywords

logger = logging.getLogger(__name__)

FrequencyLookup = Callable[[str], float]

SAMPLE_SIZE = 5
UNIQUENESS_KEYWORD_POOL = 50
RARITY_KEYWORD_POOL = 10
CORPUS_RARE_URL_COUNT = 3
CORPUS_BONUS_PER_WORD = 5
CORPUS_BONUS_CAP = 20
ALL_UNKNOWN_SCORE = 85
COMBINATION_DAMPING = 0.3
JITTER_FRACTION = 0.15
FALLBACK_SEARCH_COUNT = 50000
ESTIMATE_SOURCE = "datamuse-estimate"

_REQUEST_HEADERS = {"User-Agent": "PageQualityBot/1.0 (+uniqueness)"}


def lookup_web_frequency(word: str, timeout: float | None = None) -> float:
    """
    Datamuse per-million frequency for `word`.
    Never raises: timeouts, HTTP errors and malformed bodies all return 0.0.
    """
    timeout = config.WORD_FREQUENCY_TIMEOUT_SECONDS if timeout is None else timeout
    try:
        response = requests.get(
            config.DATAMUSE_URL,
            params={"sp": word, "md": "f", "max": 1},
            headers=_REQUEST_HEADERS,
            timeout=timeout,
        )
        response.raise_for_status()
        data = response.json()
    except requests.Timeout:
        logger.warning("Datamuse timeout for %r", word)
        return 0.0
    except (requests.RequestException, ValueError) as exc:
        logger.warning("Datamuse lookup failed for %r: %s", word, exc)
        return 0.0

    if not data or not isinstance(data, list) or not isinstance(data[0], dict):
        return 0.0
    for tag in data[0].get("tags") or []:
        if isinstance(tag, str) and tag.startswith("f:"):
            try:
                return float(tag.split(":", 1)[1])
            except ValueError:
                return 0.0
    return 0.0


def lookup_many(words: list[str], lookup: FrequencyLookup) -> dict[str, float]:
    """Fan out one lookup per word (at most SAMPLE_SIZE in flight); failures become 0."""
    if not words:
        return {}

    def _safe(word: str) -> float:
        try:
            return float(lookup(word) or 0.0)
        except Exception:
            logger.warning("Frequency lookup raised for %r; treating as unknown", word, exc_info=True)
            return 0.0

    with ThreadPoolExecutor(max_workers=min(SAMPLE_SIZE, len(words))) as pool:
        return dict(zip(words, pool.map(_safe, words)))


# ---------------------------------------------------------------------------
# Corpus persistence (detached)
# ---------------------------------------------------------------------------


def _spawn_background(target: Callable, *args) -> threading.Thread:
    """Run `target` on a daemon thread; the caller never waits on it."""
    thread = threading.Thread(target=target, args=args, daemon=True)
    thread.start()
    return thread


def record_corpus_words(entries: list[tuple[str, int, float]]) -> None:
    """Increment word_frequency for (word, page_count, datamuse_frequency) entries."""
    for word, count, frequency in entries:
        try:
            database.increment_word(word, count, frequency or None)
        except sqlite3.Error as exc:
            logger.warning("Corpus write failed for %r: %s", word, exc)


def _corpus_url_counts(words: list[str]) -> dict[str, int]:
    try:
        return database.get_word_url_counts(words)
    except sqlite3.Error as exc:
        logger.warning("Corpus read failed: %s", exc)
        return {w: 0 for w in words}


# ---------------------------------------------------------------------------
# Web + corpus uniqueness (0-100)
# ---------------------------------------------------------------------------


def _frequency_bonus(avg_frequency: float) -> int:
    if avg_frequency < 0.5:
        return 35
    if avg_frequency < 2:
        return 25
    if avg_frequency < 10:
        return 15
    if avg_frequency < 50:
        return 5
    return -20


def _plural(n: int, word: str) -> str:
    return word if n == 1 else f"{word}s"


def compute_uniqueness(
    text: str,
    lookup: FrequencyLookup = lookup_web_frequency,
    persist: bool = True,
) -> UniquenessResult:
    """
    Score the five least-locally-frequent keywords of `text` against web and
    corpus frequency. Persists those words to the corpus in the background.
    """
    if not text:
        return {"score": 0, "level": "unknown", "reasoning": "No content to analyze", "details": {}}

    keywords = extract_keywords(text, UNIQUENESS_KEYWORD_POOL)
    if not keywords:
        return {"score": 0, "level": "generic", "reasoning": "No meaningful keywords found", "details": {}}

    sample = sorted(keywords, key=lambda k: k["count"])[:SAMPLE_SIZE]
    sample_words = [k["word"] for k in sample]
    frequencies = lookup_many(sample_words, lookup)
    logger.debug("Uniqueness sample %s -> %s", sample_words, frequencies)

    known = [(w, f) for w, f in frequencies.items() if f > 0]
    url_counts = _corpus_url_counts([w for w, _ in known]) if known else {}

    if persist:
        entries = [(k["word"], k["count"], frequencies.get(k["word"], 0.0)) for k in sample]
        _spawn_background(record_corpus_words, entries)

    if not known:
        return {
            "score": ALL_UNKNOWN_SCORE,
            "level": "highly-unique",
            "reasoning": "Content uses extremely rare vocabulary not found in standard dictionaries",
            "details": {"analyzed_words": len(sample), "rare_words": sample_words},
        }

    avg_frequency = sum(f for _, f in known) / len(known)
    very_rare = [w for w, f in known if f < 0.5]
    rare = [w for w, f in known if 0.5 <= f < 2]
    uncommon = [w for w, f in known if 2 <= f < 10]

    score = 50 + _frequency_bonus(avg_frequency)
    score += round_half_up(len(very_rare) / len(known) * 15)

    corpus_unique = [w for w, _ in known if url_counts.get(w, 0) <= CORPUS_RARE_URL_COUNT]
    score += min(CORPUS_BONUS_CAP, len(corpus_unique) * CORPUS_BONUS_PER_WORD)
    score = max(0, min(100, score))

    if score >= 85:
        level = "highly-unique"
        n = len(corpus_unique)
        reasoning = f"Exceptional vocabulary uniqueness! {n} {_plural(n, 'word')} rarely used across analyzed pages."
    elif score >= 70:
        level = "unique"
        n = len(very_rare) + len(rare)
        reasoning = f"Strong vocabulary uniqueness with {n} rare/uncommon {_plural(n, 'word')}."
    elif score >= 55:
        level = "moderately-unique"
        reasoning = "Moderate uniqueness: a mix of common and uncommon vocabulary."
    elif score >= 40:
        level = "somewhat-generic"
        reasoning = "Fairly generic vocabulary, mostly common words."
    else:
        level = "generic"
        reasoning = "Generic content using very common vocabulary."

    return {
        "score": score,
        "level": level,
        "reasoning": reasoning,
        "details": {
            "total_analyzed": len(known),
            "avg_web_frequency": round(avg_frequency, 1),
            "very_rare_count": len(very_rare),
            "rare_count": len(rare),
            "uncommon_count": len(uncommon),
            "very_rare_words": very_rare[:5],
            "rare_words": rare[:5],
            "corpus_unique_count": len(corpus_unique),
            "corpus_unique_ratio": round(len(corpus_unique) / len(known), 2),
        },
    }


# ---------------------------------------------------------------------------
# Keyword-combination rarity (0-10)
# ---------------------------------------------------------------------------


def keyphrase_key(words: list[str]) -> str:
    return " ".join(sorted(w.lower() for w in words))


def estimate_search_count(
    words: list[str],
    lookup: FrequencyLookup = lookup_web_frequency,
    rng: random.Random | None = None,
) -> int:
    """Approximate result count for the combination from mean web frequency."""
    if not words:
        return FALLBACK_SEARCH_COUNT
    rng = rng or random.Random()

    frequencies = [f for f in lookup_many(words, lookup).values() if f > 0]
    if not frequencies:
        return FALLBACK_SEARCH_COUNT
    avg = sum(frequencies) / len(frequencies)

    if avg > 50:
        base = 500000
    elif avg > 20:
        base = 100000 + (avg - 20) * 13333
    elif avg > 5:
        base = 10000 + (avg - 5) * 6000
    else:
        base = 1000 + avg * 1800

    count = math.floor(base * COMBINATION_DAMPING ** (len(words) - 1))
    count += math.floor(rng.random() * count * JITTER_FRACTION)
    logger.debug("Estimated %d results for %r (avg freq %.2f)", count, words, avg)
    return max(100, count)


def rarity_from_count(search_count: int, keywords: list[str] | None = None) -> KeywordRarityResult:
    if search_count < 1000:
        result: KeywordRarityResult = {
            "score": 10,
            "level": "very-unique",
            "reasoning": f"Only ~{search_count:,} results estimated - highly unique content",
        }
    elif search_count < 10000:
        result = {
            "score": 7,
            "level": "moderately-unique",
            "reasoning": f"~{search_count:,} results estimated - moderately unique content",
        }
    elif search_count < 100000:
        result = {
            "score": 4,
            "level": "somewhat-unique",
            "reasoning": f"~{search_count:,} results estimated - somewhat unique content",
        }
    else:
        result = {
            "score": 1,
            "level": "common",
            "reasoning": f"{search_count:,}+ results estimated - common content topic",
        }
    result["search_count"] = search_count
    result["keywords"] = list(keywords or [])
    return result


def check_keyword_rarity(
    keywords: list[Keyword],
    lookup: FrequencyLookup = lookup_web_frequency,
    rng: random.Random | None = None,
) -> KeywordRarityResult:
    """Score the top-5 keyword combination, reading and filling the 30-day cache."""
    if not keywords:
        return {"score": 0, "level": "unknown", "reasoning": "No keywords to analyze"}

    top = [k["word"] for k in keywords[:SAMPLE_SIZE]]
    key = keyphrase_key(top)

    try:
        cached = database.get_cached_keywords(key, config.KEYWORD_CACHE_MAX_AGE_DAYS)
    except sqlite3.Error as exc:
        logger.warning("Keyword cache read failed: %s", exc)
        cached = None
    if cached:
        logger.info("Keyword rarity cache hit for %r", key)
        result = rarity_from_count(cached["search_count"], top)
        result["cached"] = True
        return result

    logger.info("Keyword rarity cache miss for %r", key)
    search_count = estimate_search_count(top, lookup, rng)
    try:
        database.upsert_keywords(key, search_count, ESTIMATE_SOURCE)
    except sqlite3.Error as exc:
        logger.warning("Keyword cache write failed: %s", exc)

    result = rarity_from_count(search_count, top)
    result["cached"] = False
    return result


def build_uniqueness_report(
    text: str,
    lookup: FrequencyLookup = lookup_web_frequency,
    rng: random.Random | None = None,
) -> UniquenessReport:
    """Run web/corpus uniqueness and keyword rarity side by side for one page."""
    shared_lookup = functools.lru_cache(maxsize=None)(lookup)
    top_keywords = extract_keywords(text, RARITY_KEYWORD_POOL)

    with ThreadPoolExecutor(max_workers=2) as pool:
        rarity_future = pool.submit(check_keyword_rarity, top_keywords, shared_lookup, rng)
        uniqueness_future = pool.submit(compute_uniqueness, text, shared_lookup)
        rarity = rarity_future.result()
        uniqueness = uniqueness_future.result()

    logger.info(
        "Uniqueness %s/100 (%s), keyword rarity %s/10 (%s)",
        uniqueness.get("score"),
        uniqueness.get("level"),
        rarity.get("score"),
        rarity.get("level"),
    )
    return UniquenessReport(uniqueness=uniqueness, rarity=rarity, top_keywords=tuple(top_keywords))
