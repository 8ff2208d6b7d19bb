"""
Trust / E-E-A-T: identity, author credibility, content reliability, safety,
professionalism and social proof (raw max 110, rescaled to 100).

Content reliability folds in the keyword-rarity and web-uniqueness results so
pages with original vocabulary score higher than pages built from stock phrasing.
"""

import re
from collections import Counter

from models import ModuleResult, SignalBundle, TrustMetrics, UniquenessReport
from scorers.common import ads_total, deceptive_pattern_count, parse_inline_decl
from scorers.normalize import rescale, round_half_up
from scorers.performance import heuristic_cls
from wordlists import SOCIAL_NETWORKS, STOCK_PHOTO_MARKERS

MAX_RAW = 110

_IDENTITY_PAGES = ("about", "contact", "team", "company")
_LEGAL_PAGES = ("privacy", "terms", "cookie", "disclaimer")
_PHONE = re.compile(r"\b\d{3}[-.\s]?\d{3}[-.\s]?\d{4}\b")
_ADDRESS = re.compile(
    r"\b\d+\s+[\w\s]+(?:street|st|avenue|ave|road|rd|boulevard|blvd|drive|dr|lane|ln)\b", re.IGNORECASE
)
_CONTACT_ACTION = re.compile(r"contact|feedback|inquiry", re.IGNORECASE)
_EXPERTISE = re.compile(
    r"certified|licensed|expert|professional|nutritionist|chef|specialist|consultant|phd|md|rn|credentialed",
    re.IGNORECASE,
)
_CREDENTIAL_HREF = re.compile(r"certification|credential|linkedin|about", re.IGNORECASE)
_CITATION = re.compile(r"source|reference|study|research|according to|cited", re.IGNORECASE)
_SCHOLARLY = re.compile(r"\.edu|\.gov|scholar\.google|pubmed|doi\.org|arxiv", re.IGNORECASE)
_STEP_BY_STEP = re.compile(r"step \d+|first|second|third|finally|next", re.IGNORECASE)
_MEASUREMENTS = re.compile(
    r"\b\d+(?:\.\d+)?%|\b\d+(?:\.\d+)?\s*(?:degrees|cups|tablespoons|minutes|hours|grams|kg|lbs)\b",
    re.IGNORECASE,
)
_ORIGINALITY = re.compile(
    r"tested|tried|experiment|my experience|i found|i discovered|original recipe|exclusive|"
    r"behind the scenes|tutorial|guide|hack|tip|secret|mistake|lesson learned",
    re.IGNORECASE,
)
_STOCK_PHOTO = re.compile("|".join(re.escape(m) for m in STOCK_PHOTO_MARKERS), re.IGNORECASE)
_NON_LETTER = re.compile(r"[^a-z]")


def _identity(soup, text: str) -> dict:
    identity_pages = set()
    legal_pages = set()
    for a in soup.find_all("a"):
        href = a.get("href") or ""
        combined = (href + " " + a.get_text(" ")).lower()
        identity_pages.update(p for p in _IDENTITY_PAGES if p in href.lower())
        legal_pages.update(p for p in _LEGAL_PAGES if p in combined)

    about_contact = 8 if len(identity_pages) >= 2 else 5 if identity_pages else 0

    email_links = len(soup.select('a[href^="mailto:"]'))
    phones = _PHONE.findall(text)
    address = _ADDRESS.search(text) is not None
    contact_form = any(
        _CONTACT_ACTION.search(form.get("action") or "") or len(form.find_all(["input", "textarea"])) >= 2
        for form in soup.find_all("form")
    )
    methods = sum((email_links > 0, bool(phones), address, contact_form))
    contact_points = 7 if methods >= 3 else 5 if methods == 2 else 3 if methods == 1 else 0

    legal = len(legal_pages)
    legal_points = 10 if legal >= 4 else 6 if legal >= 2 else 3 if legal == 1 else 0

    return {
        "identity_score": about_contact + contact_points + legal_points,
        "about_contact_points": about_contact,
        "contact_methods_points": contact_points,
        "legal_transparency_points": legal_points,
        "identity_page_count": len(identity_pages),
        "contact_methods_count": methods,
        "legal_page_count": legal,
        "email_links": email_links,
        "phone_numbers_found": len(phones),
        "physical_address_found": address,
        "contact_form_present": contact_form,
    }


def _author(soup, text: str) -> dict:
    boxes = soup.select('[class*="author"], [id*="author"], [class*="bio"], [id*="bio"], [class*="written-by"]')
    author_text_length = sum(len(box.get_text()) for box in boxes)
    if boxes and author_text_length > 100:
        box_points = 8
    elif boxes:
        box_points = 5
    else:
        box_points = 0

    expertise = len(_EXPERTISE.findall(text))
    credential_links = sum(1 for a in soup.find_all("a") if _CREDENTIAL_HREF.search(a.get("href") or ""))
    if expertise >= 3 or credential_links >= 2:
        expertise_points = 7
    elif expertise or credential_links:
        expertise_points = 4
    else:
        expertise_points = 0

    published = bool(
        soup.select('[class*="published"], [class*="date"], time[datetime], [property="article:published_time"]')
    )
    updated = bool(soup.select('[class*="updated"], [class*="modified"], [property="article:modified_time"]'))
    date_points = 5 if published and updated else 3 if published else 0

    return {
        "author_credibility_score": box_points + expertise_points + date_points,
        "author_box_points": box_points,
        "expertise_points": expertise_points,
        "date_info_points": date_points,
        "author_box_present": bool(boxes),
        "author_text_length": author_text_length,
        "expertise_matches": expertise,
        "credential_links": credential_links,
        "published_date_present": published,
        "updated_date_present": updated,
    }


def keyword_density_and_duplicates(soup, text: str) -> tuple[float, float]:
    """(top keyword density %, duplicate paragraph ratio %)."""
    tokens = text.split()
    freq = Counter()
    for token in tokens:
        cleaned = _NON_LETTER.sub("", token.lower())
        if len(cleaned) > 3:
            freq[cleaned] += 1
    top = max(freq.values(), default=0)
    density = top / len(tokens) * 100 if tokens else 0.0

    paragraphs = [p.get_text().strip() for p in soup.find_all("p")]
    duplicate_ratio = (len(paragraphs) - len(set(paragraphs))) / len(paragraphs) * 100 if paragraphs else 0.0
    return density, duplicate_ratio


def photo_originality(bundle: SignalBundle) -> float:
    """Share of images whose src/alt do not point at a stock library."""
    images = bundle.images
    if not images:
        return 0.0
    original = sum(1 for img in images if not _STOCK_PHOTO.search(img.src + " " + (img.alt or "")))
    return original / len(images)


def _reliability(soup, bundle: SignalBundle, text: str, uniqueness: UniquenessReport) -> dict:
    citations = len(_CITATION.findall(text))
    scholarly = sum(1 for a in soup.find_all("a") if _SCHOLARLY.search(a.get("href") or ""))
    references = citations + scholarly
    citation_points = 7 if references >= 3 else 5 if references >= 1 else 0

    measurements = len(_MEASUREMENTS.findall(text))
    lists = len(soup.find_all(["ol", "ul"]))
    detail = (
        (3 if _STEP_BY_STEP.search(text) else 0)
        + (2 if measurements >= 5 else 1 if measurements >= 2 else 0)
        + (2 if lists >= 2 else 1 if lists >= 1 else 0)
    )
    accuracy_points = 6 if detail >= 5 else 4 if detail >= 3 else 2 if detail >= 1 else 0

    rarity = uniqueness.rarity
    rarity_points = round_half_up(rarity.get("score", 0) / 10 * 5)
    originality = len(_ORIGINALITY.findall(text))
    originality_points = 4 if originality >= 5 else 3 if originality >= 3 else 2 if originality >= 1 else 0
    photo_ratio = photo_originality(bundle)
    photo_points = 3 if photo_ratio >= 0.7 else 2 if photo_ratio >= 0.4 else 1 if photo_ratio >= 0.2 else 0
    uniqueness_points = rarity_points + originality_points + photo_points

    density, duplicate_ratio = keyword_density_and_duplicates(soup, text)
    if density < 5 and duplicate_ratio < 10:
        spam_points = 5
    elif density < 7 and duplicate_ratio < 25:
        spam_points = 3
    else:
        spam_points = 0

    web = uniqueness.uniqueness
    return {
        "content_reliability_score": citation_points + accuracy_points + uniqueness_points + spam_points,
        "citation_points": citation_points,
        "accuracy_points": accuracy_points,
        "uniqueness_points": uniqueness_points,
        "keyword_rarity_points": rarity_points,
        "originality_signal_points": originality_points,
        "photo_originality_points": photo_points,
        "keyword_rarity_data": {
            "score": rarity.get("score", 0),
            "level": rarity.get("level", "unknown"),
            "reasoning": rarity.get("reasoning", ""),
            "top_keywords": [k["word"] for k in uniqueness.top_keywords[:5]],
        },
        "uniqueness_metric": {
            "score": web.get("score", 50),
            "level": web.get("level", "unknown"),
            "reasoning": web.get("reasoning", ""),
            "details": dict(web.get("details") or {}),
        },
        "originality_matches": originality,
        "photo_originality_ratio": round_half_up(photo_ratio * 100),
        "has_original_photos": sum(
            1 for img in bundle.images if not _STOCK_PHOTO.search(img.src + " " + (img.alt or ""))
        ),
        "spam_points": spam_points,
        "total_references": references,
        "citation_matches": citations,
        "scholarly_links": scholarly,
        "keyword_density": round(density, 1),
        "duplicate_ratio": round_half_up(duplicate_ratio),
    }


def _safety(soup, bundle: SignalBundle) -> dict:
    https_points = 8 if bundle.is_https else 0
    external = [
        a for a in soup.select('a[href^="http"]') if bundle.hostname not in (a.get("href") or "").lower()
    ]
    secure = sum(1 for a in external if "noopener" in " ".join(a.get("rel") or []).lower())
    ratio = secure / len(external) * 100 if external else 100
    secure_points = 4 if ratio >= 80 else 2 if ratio >= 40 else 0
    deceptive = deceptive_pattern_count(bundle)
    deceptive_points = 3 if deceptive == 0 else 1 if deceptive <= 2 else 0
    return {
        "safety_score": https_points + secure_points + deceptive_points,
        "https_points": https_points,
        "secure_links_points": secure_points,
        "no_deceptive_points": deceptive_points,
        "secure_external_ratio": round_half_up(ratio),
        "external_links_count": len(external),
        "secure_external_links": secure,
    }


def _professionalism(soup, bundle: SignalBundle) -> dict:
    logos = len(soup.select('img[alt*="logo" i], [class*="logo"], [id*="logo"]'))
    fonts = set()
    for el in soup.select("[style]"):
        family = parse_inline_decl(el.get("style") or "", "font-family")
        if family:
            fonts.add(family.lower())
    font_consistency = 2 if len(fonts) <= 5 else 1 if len(fonts) <= 10 else 0
    if logos and font_consistency == 2:
        brand_points = 4
    elif logos or font_consistency >= 1:
        brand_points = 2
    else:
        brand_points = 0

    cls = heuristic_cls(bundle)
    clean_points = 3 if cls < 0.1 else 1 if cls < 0.25 else 0

    total_ads = ads_total(bundle)
    ad_points = 3 if total_ads <= 3 else 1 if total_ads <= 8 else 0

    return {
        "professionalism_score": brand_points + clean_points + ad_points,
        "brand_consistency_points": brand_points,
        "clean_design_points": clean_points,
        "ad_excess_points": ad_points,
        "logo_count": logos,
        "unique_fonts": len(fonts),
    }


def _engagement(soup) -> dict:
    comments = len(
        soup.select('[class*="comment"], [id*="comment"], [class*="review"], [id*="review"], [class*="feedback"]')
    )
    stars = len(soup.select('[class*="star"], [class*="rating"]'))
    if comments and stars:
        comment_points = 5
    elif comments or stars:
        comment_points = 3
    else:
        comment_points = 0

    networks = set()
    for a in soup.select("a[href]"):
        href = a["href"].lower()
        networks.update(n for n in SOCIAL_NETWORKS if n in href)
    social_points = 5 if len(networks) >= 3 else 3 if networks else 0

    return {
        "engagement_score": comment_points + social_points,
        "comments_points": comment_points,
        "social_buttons_points": social_points,
        "comment_sections": comments,
        "star_ratings": stars,
        "social_network_count": len(networks),
    }


def score_trust(bundle: SignalBundle, uniqueness: UniquenessReport) -> ModuleResult:
    soup = bundle.document
    text = bundle.body_text

    sections = {
        "identity_score": _identity(soup, text),
        "author_credibility_score": _author(soup, text),
        "content_reliability_score": _reliability(soup, bundle, text, uniqueness),
        "safety_score": _safety(soup, bundle),
        "professionalism_score": _professionalism(soup, bundle),
        "engagement_score": _engagement(soup),
    }
    raw = sum(section[key] for key, section in sections.items())

    metrics: TrustMetrics = {"raw_score": raw}
    for section in sections.values():
        metrics.update(section)
    return {"score": rescale(raw, MAX_RAW), "metrics": dict(metrics)}
