"""Text analytics: readability, sentence/word segmentation and keyword extraction.

All functions are pure and operate on already-normalized text.
"""

import re
from collections import Counter

from models import Keyword
from wordlists import DENIED_KEYWORDS, STOP_WORDS

SENTENCE_SPLIT = re.compile(r"[.!?]+")
WORD_SPLIT = re.compile(r"\s+")
_SYLLABLE_SUFFIX = re.compile(r"(?:[^laeiouy]es|ed|[^laeiouy]e)$")
_VOWEL_RUN = re.compile(r"[aeiouy]{1,2}")
_NON_LETTER = re.compile(r"[^a-z\s]")
_VOWEL = re.compile(r"[aeiou]")
_PASSIVE_VOICE = re.compile(r"\b(is|was|were|be|been|being|are|am)\s+\w+ed\b", re.IGNORECASE)

BIGRAM_MIN_OCCURRENCES = 2
BIGRAM_WEIGHT = 1.2
MIN_KEYWORD_LENGTH = 4


def words(text: str) -> list[str]:
    return [w for w in WORD_SPLIT.split(text or "") if w]


def sentences(text: str) -> list[str]:
    return [s for s in SENTENCE_SPLIT.split(text or "") if s.strip()]


def count_syllables(word: str) -> int:
    """Crude vowel-group estimate; every word counts at least one syllable."""
    word = word.lower()
    if len(word) <= 3:
        return 1
    word = _SYLLABLE_SUFFIX.sub("", word)
    word = re.sub(r"^y", "", word)
    runs = _VOWEL_RUN.findall(word)
    return len(runs) if runs else 1


def flesch_reading_ease(text: str) -> float:
    """206.835 - 1.015 * (words / sentences) - 84.6 * (syllables / words).

    Returns 0.0 when the text has no words or no sentences.
    """
    sentence_count = len(sentences(text))
    tokens = words(text)
    if sentence_count == 0 or not tokens:
        return 0.0
    syllables = sum(count_syllables(w) for w in tokens)
    return 206.835 - 1.015 * (len(tokens) / sentence_count) - 84.6 * (syllables / len(tokens))


def average_sentence_length(text: str) -> float:
    parts = sentences(text)
    if not parts:
        return 0.0
    return sum(len(s.split()) for s in parts) / len(parts)


def reading_time_minutes(word_count: int) -> int:
    return max(1, round(word_count / 200))


def complex_word_ratio(text: str, min_length: int = 12, scan_limit: int = 3000) -> float:
    tokens = words(text)
    if not tokens:
        return 0.0
    complex_count = sum(1 for w in tokens[:scan_limit] if len(w) >= min_length)
    return complex_count / len(tokens)


def passive_voice_count(text: str) -> int:
    return len(_PASSIVE_VOICE.findall(text or ""))


def is_candidate_keyword(token: str) -> bool:
    if len(token) < MIN_KEYWORD_LENGTH:
        return False
    if token in STOP_WORDS or token in DENIED_KEYWORDS:
        return False
    if any(ch.isdigit() for ch in token):
        return False
    return len(_VOWEL.findall(token)) >= 2


def keyword_tokens(text: str) -> list[str]:
    """Lowercase letter-only tokens that survive the stop-word and denylist filters."""
    normalized = _NON_LETTER.sub(" ", (text or "").lower())
    return [t for t in normalized.split() if is_candidate_keyword(t)]


def extract_keywords(text: str, top_n: int = 10) -> list[Keyword]:
    """Rank single words and repeated adjacent bigrams by frequency.

    Bigrams are built from the filtered token stream, kept only when they occur
    at least twice, and their counts are boosted by 1.2 (rounded). Ties keep
    single words ahead of bigrams, in first-seen order.
    """
    if not text:
        return []

    tokens = keyword_tokens(text)
    singles = Counter(tokens)
    bigrams = Counter(f"{a} {b}" for a, b in zip(tokens, tokens[1:]))

    candidates: list[Keyword] = [{"word": w, "count": c} for w, c in singles.items()]
    candidates.extend(
        {"word": phrase, "count": round(c * BIGRAM_WEIGHT)}
        for phrase, c in bigrams.items()
        if c >= BIGRAM_MIN_OCCURRENCES
    )
    candidates.sort(key=lambda k: k["count"], reverse=True)
    return candidates[:top_n]
