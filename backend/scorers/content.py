"""
Content quality: five-factor point system (max 120, rescaled to 100).

Readability (40) + word count (20) + reading time (20) + depth (20) +
engagement (20). The older seven-factor formula is still computed and
reported under `legacy_score` for comparison, but never drives the score.
"""

import re
from datetime import datetime, timezone

from models import ContentMetrics, ModuleResult, SignalBundle, UniquenessReport
from scorers.normalize import clamp_score, rescale, round_half_up
from text_analysis import (
    average_sentence_length,
    complex_word_ratio,
    extract_keywords,
    flesch_reading_ease,
    passive_voice_count,
    reading_time_minutes,
    sentences,
)

MAX_RAW = 120
FRESH_CONTENT_DAYS = 365

_CALL_TO_ACTION = re.compile(
    r"tell us|share|comment|let us know|what do you think|leave a comment|subscribe|join", re.IGNORECASE
)
_STORYTELLING = re.compile(
    r"personal|story|experience|journey|learned|discovered|tried|tested|favorite|love|hate|"
    r"recommend|advice|tip|secret|mistake|success|fail",
    re.IGNORECASE,
)


def flesch_points(flesch: float) -> int:
    if flesch >= 60:
        return 20
    if flesch >= 30:
        return 15
    if flesch >= 0:
        return 10
    if flesch >= -30:
        return 5
    return 2


def sentence_length_points(avg: float) -> int:
    if 10 <= avg <= 20:
        return 20
    if 20 < avg <= 25:
        return 15
    if 5 <= avg < 10:
        return 12
    if avg < 5:
        return 10
    return 5


def word_count_points(word_count: int) -> int:
    if 1500 <= word_count <= 3000:
        return 20
    if 800 <= word_count < 1500:
        return 18
    if 500 <= word_count < 800:
        return 12
    if 200 <= word_count < 500:
        return 8
    if word_count < 200:
        return 2
    return 10


def reading_time_points(minutes: int) -> int:
    if 4 <= minutes <= 8:
        return 20
    if 2 <= minutes < 4:
        return 15
    if 8 < minutes <= 12:
        return 12
    if minutes < 2:
        return 5
    return 6


def depth_points(ratio: float) -> int:
    if 15 <= ratio <= 25:
        return 20
    if 12 <= ratio < 15:
        return 16
    if 9 <= ratio < 12:
        return 12
    if 6 <= ratio < 9:
        return 8
    if ratio < 6:
        return 4
    return 12


def visual_density_points(ratio: float) -> int:
    if 0.3 <= ratio <= 0.8:
        return 5
    if 0.15 <= ratio <= 1.2:
        return 3
    return 1


def days_since(timestamp: str | None, now: datetime | None = None) -> int | None:
    """Whole days between an ISO-ish date string and now; None when unparseable."""
    if not timestamp:
        return None
    try:
        parsed = datetime.fromisoformat(timestamp.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    return (now - parsed).days


def _legacy_components(
    bundle: SignalBundle, word_count: int, flesch: float, questions: int, ctas: int, uniqueness_score: int
) -> dict[str, int]:
    """Seven-factor breakdown kept as telemetry (max 100)."""
    soup = bundle.document
    depth = 20 if word_count >= 1500 else 15 if word_count >= 800 else 10 if word_count >= 300 else 5
    readability = 20 if flesch >= 60 else 14 if flesch >= 40 else 8 if flesch >= 20 else 4
    subheads = bundle.headings(2) + bundle.headings(3)
    lists = len(soup.find_all(["ul", "ol"]))
    structure = min(15, (10 if subheads >= 3 else 6 if subheads >= 1 else 2) + min(5, lists))
    media = 10 if len(bundle.images) >= 3 else 6 if bundle.images else 2
    engagement = min(10, questions + ctas * 2)
    originality = round_half_up(uniqueness_score / 100 * 15)

    keywords = extract_keywords(bundle.body_text, top_n=1)
    density = keywords[0]["count"] / max(1, word_count) * 100 if keywords else 0.0
    relevance = 10 if 0.5 <= density <= 3 else 6 if density > 0 else 2

    return {
        "depth": depth,
        "readability": readability,
        "structure": structure,
        "media": media,
        "engagement": engagement,
        "originality": originality,
        "relevance": relevance,
    }


def score_content(bundle: SignalBundle, uniqueness: UniquenessReport) -> ModuleResult:
    soup = bundle.document
    text = bundle.body_text
    word_count = len(text.split())

    # --- Readability (max 40) ---
    flesch = flesch_reading_ease(text)
    avg_sentence = average_sentence_length(text)
    flesch_pts = flesch_points(flesch)
    sentence_pts = sentence_length_points(avg_sentence)
    readability = flesch_pts + sentence_pts

    # --- Length (max 40) ---
    minutes = reading_time_minutes(word_count)
    words_pts = word_count_points(word_count)
    reading_pts = reading_time_points(minutes)

    # --- Depth (max 20) ---
    depth_ratio = word_count / max(1, len(sentences(text)))
    depth_pts = depth_points(depth_ratio)

    # --- Engagement (max 20) ---
    questions = text.count("?")
    ctas = len(_CALL_TO_ACTION.findall(text))
    interactive = (4 if 3 <= questions <= 20 else 0) + (4 if ctas >= 2 else 0)
    story_matches = len(_STORYTELLING.findall(text))
    story_pts = 7 if story_matches >= 10 else 5 if story_matches >= 5 else 3 if story_matches >= 2 else 0
    blocks = max(1, len(soup.find_all("p")) + len(soup.find_all(["h2", "h3", "h4"])))
    visuals_ratio = (len(bundle.images) + len(soup.find_all("video"))) / blocks
    visual_pts = visual_density_points(visuals_ratio)
    engagement = interactive + story_pts + visual_pts

    raw = readability + words_pts + reading_pts + depth_pts + engagement
    score = rescale(raw, MAX_RAW)

    age_days = days_since(bundle.page_signals.published_at)
    uniqueness_score = int(uniqueness.uniqueness.get("score", 50))
    legacy = _legacy_components(bundle, word_count, flesch, questions, ctas, uniqueness_score)

    metrics: ContentMetrics = {
        "normalized_score": score,
        "raw_score": raw,
        "readability_points_total": readability,
        "readability_flesch_points": flesch_pts,
        "readability_sentence_length_points": sentence_pts,
        "word_count_points": words_pts,
        "reading_time_points": reading_pts,
        "content_depth_points": depth_pts,
        "engagement_points": engagement,
        "interactive_engagement_points": interactive,
        "storytelling_points": story_pts,
        "visual_density_points": visual_pts,
        "questions_count": questions,
        "call_to_actions_count": ctas,
        "storytelling_matches": story_matches,
        "visuals_ratio": round(visuals_ratio, 2),
        "flesch_score": round(flesch, 1),
        "avg_sentence_length": round(avg_sentence, 1),
        "word_count": word_count,
        "reading_time_min": minutes,
        "content_depth_ratio": round(depth_ratio, 2),
        "days_since_published": age_days,
        "fresh_content": age_days <= FRESH_CONTENT_DAYS if age_days is not None else None,
        "complex_word_ratio": round(complex_word_ratio(text), 3),
        "passive_voice_matches": passive_voice_count(text),
        "uniqueness_score": uniqueness_score,
        "uniqueness_level": uniqueness.uniqueness.get("level", "unknown"),
        "legacy_score": clamp_score(sum(legacy.values())),
        "legacy_components": legacy,
    }
    return {"score": score, "metrics": dict(metrics)}
