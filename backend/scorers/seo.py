"""SEO: identity, content, linking and technical components (raw max 57)."""

import re
from urllib.parse import urljoin, urlparse

from models import ModuleResult, SeoMetrics, SignalBundle
from scorers.common import meta_content
from scorers.normalize import rescale, round_half_up
from text_analysis import flesch_reading_ease

MAX_RAW = 57
IDENTITY_MAX = 18
CONTENT_MAX = 13
TECHNICAL_MAX = 16
CONTENT_SAMPLE_CHARS = 6000
MAX_TITLE_CHARS = 120

_TITLE_SEPARATOR = re.compile(r"\s*[|\-–—]\s*")


def clean_title(title: str) -> str:
    """Collapse repeated separator-delimited parts ("Foo | Foo | Bar") and cap length."""
    cleaned = title.strip()
    parts = [p.strip() for p in _TITLE_SEPARATOR.split(cleaned) if p.strip()]
    distinct: list[str] = []
    for part in parts:
        if not distinct or distinct[-1] != part:
            distinct.append(part)
    if distinct and len(" ".join(distinct)) < len(cleaned) * 0.9:
        cleaned = " | ".join(distinct)
    if len(cleaned) > MAX_TITLE_CHARS:
        cleaned = cleaned[:MAX_TITLE_CHARS].strip()
    return cleaned


def title_length_points(length: int) -> int:
    if 45 <= length <= 65:
        return 6
    if 30 <= length <= 75:
        return 4
    return 2


def description_length_points(length: int) -> int:
    if 120 <= length <= 160:
        return 4
    if 60 <= length <= 180:
        return 3
    return 1


def linking_points(internal_links: int) -> int:
    if internal_links == 0:
        return 2
    if internal_links < 10:
        return 6
    if internal_links < 30:
        return 8
    return 10


def score_seo(bundle: SignalBundle) -> ModuleResult:
    soup = bundle.document

    title_tag = soup.find("title")
    title = title_tag.get_text().strip() if title_tag else ""
    description = meta_content(bundle, name="description")
    canonical_tag = soup.find("link", attrs={"rel": "canonical"})
    canonical = (canonical_tag.get("href") or "").strip() if canonical_tag else ""
    og_present = any(meta_content(bundle, property=p) for p in ("og:title", "og:description", "og:image"))
    twitter_present = bool(meta_content(bundle, name="twitter:card") or meta_content(bundle, name="twitter:title"))
    robots = meta_content(bundle, name="robots")
    meta_keywords = [k for k in re.split(r"[,\s]+", meta_content(bundle, name="keywords")) if k]

    # --- Identity (max 18) ---
    cleaned = clean_title(title)
    title_optimal = 30 <= len(cleaned) <= 75
    description_optimal = 60 <= len(description) <= 180
    identity = (
        (3 if cleaned else 0)
        + (2 if title_optimal else 1)
        + (3 if description else 0)
        + (2 if description_optimal else 1 if description else 0)
        + (3 if canonical else 0)
        + (3 if og_present else 0)
        + (2 if twitter_present else 0)
    )

    # --- Content (max 13) ---
    main = soup.find("main")
    source_text = " ".join(main.get_text(" ").split()) if main is not None else bundle.body_text
    sample = source_text[:CONTENT_SAMPLE_CHARS]
    sample_words = len(sample.split())
    if sample_words >= 1200:
        word_points = 6
    elif sample_words >= 600:
        word_points = 5
    elif sample_words >= 300:
        word_points = 4
    elif sample_words > 0:
        word_points = 2
    else:
        word_points = 0
    flesch = flesch_reading_ease(bundle.body_text)
    readability_points = 4 if flesch >= 60 else 3 if flesch >= 50 else 2 if flesch >= 40 else 1
    heading_points = 3 if bundle.headings(1) else 1
    content = word_points + readability_points + heading_points

    # --- Linking (max 10) ---
    internal_links = sum(1 for link in bundle.links if link.is_internal)
    linking = linking_points(internal_links)

    # --- Technical (max 16) ---
    ttfb = bundle.response_meta.elapsed_ms
    schema_present = bool(soup.select('script[type="application/ld+json"]'))
    technical = (
        (3 if bundle.is_https else 0)
        + (3 if canonical else 0)
        + (3 if ttfb <= 300 else 2 if ttfb <= 800 else 1)
        + (3 if og_present else 0)
        + (2 if twitter_present else 0)
        + (2 if schema_present else 0)
    )

    raw_total = identity + content + linking + technical

    # Legacy identity breakdown (title/description bands, canonical host, meta keywords)
    canonical_self = bool(canonical) and (urlparse(urljoin(bundle.url, canonical)).hostname or "").lower() == bundle.hostname
    title_points = title_length_points(len(title)) if title else 0
    description_points = description_length_points(len(description)) if description else 0

    metrics: SeoMetrics = {
        "raw_total_components": raw_total,
        "max_raw_total": MAX_RAW,
        "identity_raw": identity,
        "content_raw": content,
        "linking_raw": linking,
        "technical_raw": technical,
        "identity_scaled_20": round_half_up(identity / IDENTITY_MAX * 20),
        "content_scaled_20": round_half_up(content / CONTENT_MAX * 20),
        "linking_scaled_10": linking,
        "technical_scaled_10": round_half_up(technical / TECHNICAL_MAX * 10),
        "title_cleaned": cleaned,
        "title_length": len(title),
        "title_optimal": title_optimal,
        "title_points": title_points,
        "meta_description_length": len(description),
        "meta_description_optimal": description_optimal,
        "description_points": description_points,
        "canonical_present": bool(canonical),
        "canonical_self": canonical_self,
        "open_graph_present": og_present,
        "twitter_card_present": twitter_present,
        "schema_present": schema_present,
        "meta_keywords_count": len(meta_keywords),
        "robots_indexable": not re.search(r"noindex", robots, re.IGNORECASE),
        "internal_links_count": internal_links,
        "sample_word_count": sample_words,
        "sample_chars": len(sample),
        "flesch_score": round(flesch, 1),
        "ttfb_ms": ttfb,
    }
    return {"score": rescale(raw_total, MAX_RAW), "metrics": dict(metrics)}
