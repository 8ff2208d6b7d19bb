"""
Rule-based recommendations.

Each Rule is a guard plus a template over a flat inputs dict built once per
analysis by build_inputs(). Rules never read each other's output; the final
list is deduplicated by id (highest impact wins), sorted by impact and capped.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable

import config
from models import ModuleResult, Recommendation, SignalBundle, SiteChecks, UniquenessReport
from scorers.common import (
    ad_script_count,
    analytics_present,
    meta_content,
    overlay_count,
    sticky_ad_count,
)
from scorers.content import days_since
from scorers.trust import keyword_density_and_duplicates, photo_originality
from text_analysis import average_sentence_length, flesch_reading_ease

logger = logging.getLogger(__name__)

RecommendationInputs = dict[str, Any]

EFFORTS = ("Low", "Medium", "High")
_CLICK_HERE = re.compile(r"click here", re.IGNORECASE)
_CONTACT_TEXT = re.compile(r"contact|about", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


def build_inputs(
    bundle: SignalBundle,
    modules: dict[str, ModuleResult],
    uniqueness: UniquenessReport | None = None,
    site_checks: SiteChecks | None = None,
) -> RecommendationInputs:
    """Flatten the signals every rule may look at into one dict."""
    soup = bundle.document
    text = bundle.body_text
    word_count = len(text.split())

    def metric(module: str, key: str, default=None):
        return modules.get(module, {}).get("metrics", {}).get(key, default)

    web_uniqueness = None
    corpus_ratio = None
    if uniqueness is not None and uniqueness.uniqueness.get("level") != "unknown":
        web_uniqueness = uniqueness.uniqueness.get("score")
        corpus_ratio = (uniqueness.uniqueness.get("details") or {}).get("corpus_unique_ratio")

    _, duplicate_ratio = keyword_density_and_duplicates(soup, text)

    fresh = metric("content", "fresh_content")
    if fresh is None:
        age = days_since(bundle.page_signals.published_at)
        fresh = age <= 365 if age is not None else None

    robots = meta_content(bundle, name="robots")
    robots_blocks_all = bool(site_checks and site_checks["robots"].get("blocks_all"))

    broken = (site_checks or {}).get("broken_links") or {}
    broken_rate = broken.get("rate") if broken.get("checked") else None

    images = bundle.images
    return {
        "web_uniqueness": web_uniqueness,
        "corpus_unique_ratio": corpus_ratio,
        "duplicate_ratio": duplicate_ratio,
        "photo_originality": photo_originality(bundle),
        "originality_matches": metric("trust", "originality_matches"),
        "images_count": len(images),
        "word_count": word_count,
        "flesch_score": flesch_reading_ease(text),
        "avg_sentence_length": average_sentence_length(text),
        "h1_count": bundle.headings(1),
        "subheadings_count": bundle.headings(2) + bundle.headings(3),
        "fresh_content": fresh,
        "click_here_anchors": sum(1 for link in bundle.links if _CLICK_HERE.search(link.anchor_text)),
        "internal_links": sum(1 for link in bundle.links if link.is_internal),
        "top_keywords": [k["word"] for k in (uniqueness.top_keywords if uniqueness else ())],
        "meta_description": meta_content(bundle, name="description"),
        "open_graph_present": bool(meta_content(bundle, property="og:title")),
        "robots_indexable": "noindex" not in robots.lower() and not robots_blocks_all,
        "images_missing_alt": sum(1 for img in images if not (img.alt or "").strip()),
        "contact_present": bool(soup.select('a[href*="contact"], a[href*="about"]'))
        or bool(_CONTACT_TEXT.search(text)),
        "privacy_present": bool(soup.select('a[href*="privacy"], a[href*="policy"]')),
        "broken_links_count": broken.get("broken", 0),
        "broken_link_rate": broken_rate,
        "lcp_seconds": metric("performance", "lcp_seconds"),
        "html_size": bundle.html_bytes,
        "blocking_scripts": bundle.scripts.blocking,
        "ad_scripts": ad_script_count(bundle),
        "overlays": overlay_count(bundle),
        "sticky_ads": sticky_ad_count(bundle),
        "analytics_present": analytics_present(bundle),
        "viewport": soup.find("meta", attrs={"name": "viewport"}) is not None,
        "lazy_fraction": sum(1 for img in images if img.is_lazy) / len(images) if images else 0.0,
        "images_missing_dims": sum(1 for img in images if not img.has_dimensions),
        "https": bundle.is_https,
    }


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Rule:
    id: str
    applies: Callable[[RecommendationInputs], bool]
    build: Callable[[RecommendationInputs], tuple[str, int, str, str]]

    def evaluate(self, inputs: RecommendationInputs) -> Recommendation | None:
        if not self.applies(inputs):
            return None
        summary, impact, effort, example = self.build(inputs)
        return make_recommendation(self.id, summary, impact, effort, example)


def make_recommendation(rec_id: str, summary: str, impact, effort: str, example: str = "") -> Recommendation:
    try:
        impact = int(round(float(impact)))
    except (TypeError, ValueError):
        impact = 0
    effort = str(effort or "Low").strip().capitalize()
    return {
        "id": rec_id,
        "summary": summary,
        "impact": max(0, min(10, impact)),
        "effort": effort if effort in EFFORTS else "Low",
        "example_text": example or "",
    }


def _related_content(i: RecommendationInputs) -> tuple[str, int, str, str]:
    ideas = ", ".join(i["top_keywords"][:2]) or "similar topics"
    return (
        "Link to your other related posts to help readers explore more",
        6,
        "Low",
        f"Connect readers to 2-4 of your other articles on {ideas} for deeper value.",
    )


def _needs_subheadings(i: RecommendationInputs) -> bool:
    return i["word_count"] > 800 and i["subheadings_count"] < max(2, i["word_count"] // 600)


RULES: tuple[Rule, ...] = (
    # --- Experience and originality ---
    Rule(
        "eeat-original-insights",
        lambda i: i["web_uniqueness"] is not None and i["web_uniqueness"] < 60,
        lambda i: (
            "Share your personal experience and what makes your approach different",
            9,
            "Medium",
            "Talk about what you actually tried, what worked for you, and what surprised you along the way.",
        ),
    ),
    Rule(
        "eeat-original-insights",
        lambda i: i["originality_matches"] == 0,
        lambda i: (
            "Add first-hand details: what you tested, found or learned",
            6,
            "Medium",
            'Phrases like "I tested", "in my experience" or "a mistake I made" show real experience.',
        ),
    ),
    Rule(
        "eeat-industry-uniqueness",
        lambda i: i["corpus_unique_ratio"] is not None and i["corpus_unique_ratio"] < 0.6,
        lambda i: (
            "Use more specific terms to stand out from other pages in your niche",
            7,
            "Medium",
            "Instead of generic words, get specific with varieties, techniques, or regional names that show your expertise.",
        ),
    ),
    Rule(
        "eeat-avoid-copying",
        lambda i: i["duplicate_ratio"] > 30,
        lambda i: (
            "Some parts repeat themselves; add your unique perspective instead",
            9 if i["duplicate_ratio"] > 50 else 7,
            "Medium",
            "Share what you learned through your own experience, your personal process, and tips that worked for you.",
        ),
    ),
    Rule(
        "eeat-original-photos",
        lambda i: i["photo_originality"] < 0.5 and i["images_count"] > 0,
        lambda i: (
            "Use your own photos instead of stock images to show real experience",
            8,
            "Medium",
            "Take photos while you cook, work or create. It shows you actually did it.",
        ),
    ),
    Rule(
        "eeat-substantial-value",
        lambda i: i["word_count"] < 600,
        lambda i: (
            "Add more helpful details to make this more valuable for readers",
            8,
            "Medium",
            "Explain the why behind your advice, answer common questions, or share mistakes you made so others can avoid them.",
        ),
    ),
    # --- Expertise and authority ---
    Rule(
        "eeat-content-freshness",
        lambda i: i["fresh_content"] is False,
        lambda i: (
            'Update old posts with new info, current tips, or an "Updated [Date]" note',
            6,
            "Medium",
            'Add: "Updated with new tips" at the top and keep the content current.',
        ),
    ),
    Rule(
        "eeat-descriptive-headings",
        _needs_subheadings,
        lambda i: (
            "Use clear headings to organize your content and help readers scan",
            7,
            "Low",
            'Make headings descriptive and helpful, like "Why This Works" or "What to Avoid" instead of generic ones.',
        ),
    ),
    Rule(
        "eeat-clear-title",
        lambda i: i["h1_count"] == 0,
        lambda i: (
            "Add a clear, descriptive title that tells readers exactly what they'll learn",
            7,
            "Low",
            'Example: "How to Make Fluffy Pancakes (with Video)" vs "Pancakes"',
        ),
    ),
    Rule("eeat-related-content", lambda i: i["internal_links"] < 5 and i["word_count"] > 600, _related_content),
    # --- Trustworthiness ---
    Rule(
        "eeat-contact-page",
        lambda i: not i["contact_present"],
        lambda i: (
            "Add a contact page so readers can reach you; it builds trust",
            6,
            "Low",
            "Email, contact form, or social media links work. Be reachable.",
        ),
    ),
    Rule(
        "eeat-privacy-policy",
        lambda i: not i["privacy_present"] and (i["ad_scripts"] > 3 or i["analytics_present"]),
        lambda i: (
            "Add a privacy policy if you use ads or analytics to show transparency",
            5,
            "Low",
            "Use a privacy policy generator. Be clear about what you track.",
        ),
    ),
    Rule(
        "eeat-fix-broken-links",
        lambda i: i["broken_link_rate"] is not None and i["broken_link_rate"] > 10,
        lambda i: (
            f"Fix {i['broken_links_count']} broken links; they hurt credibility "
            f"({round(i['broken_link_rate'])}% broken)",
            7 if i["broken_link_rate"] > 25 else 5,
            "Medium",
            "Check links quarterly. Update or remove dead ones.",
        ),
    ),
    Rule(
        "eeat-descriptive-links",
        lambda i: i["click_here_anchors"] > 0,
        lambda i: (
            f'Replace {i["click_here_anchors"]} "click here" links with descriptive text that tells what they\'ll find',
            4,
            "Low",
            'Instead of "click here", use "see my chocolate cake recipe" or "read the full guide"',
        ),
    ),
    Rule(
        "eeat-readability",
        lambda i: i["flesch_score"] < 50,
        lambda i: (
            "Simplify your writing to make it easier to follow",
            6,
            "Low",
            "Use shorter sentences, break up long paragraphs, and add bullet points for important steps.",
        ),
    ),
    Rule(
        "eeat-short-sentences",
        lambda i: i["avg_sentence_length"] > 20,
        lambda i: (
            "Break up long sentences so they are easier to skim and understand",
            5,
            "Low",
            'One idea per sentence. Split sentences at "and" or "but".',
        ),
    ),
    # --- Performance ---
    Rule(
        "perf-page-speed",
        lambda i: bool(i["lcp_seconds"]) and i["lcp_seconds"] > 2.5,
        lambda i: (
            "Your page could load faster; try compressing your images",
            8 if i["lcp_seconds"] > 4 else 6,
            "Medium",
            "Compress images before uploading using free tools. Smaller files mean faster loading for your readers.",
        ),
    ),
    Rule(
        "perf-image-size",
        lambda i: i["html_size"] > 500000,
        lambda i: (
            f"Page is heavy (~{round(i['html_size'] / 1024)} KB); resize images before uploading",
            7 if i["html_size"] > 1000000 else 5,
            "Medium",
            "Save images at 1200px width max. Use JPG for photos, PNG for graphics.",
        ),
    ),
    Rule(
        "perf-reduce-plugins",
        lambda i: i["blocking_scripts"] > 3,
        lambda i: (
            f"{i['blocking_scripts']} plugins/widgets slow down your page; remove unused ones",
            7 if i["blocking_scripts"] > 6 else 5,
            "Low",
            "Deactivate plugins you don't use. Each widget adds load time.",
        ),
    ),
    Rule(
        "perf-reduce-ads",
        lambda i: i["ad_scripts"] > 6 or i["overlays"] > 1 or i["sticky_ads"] > 0,
        lambda i: (
            f"Too many pop-ups or ads frustrate readers ({i['overlays']} pop-ups, {i['sticky_ads']} sticky ads)",
            7 if i["overlays"] > 2 else 5,
            "Medium",
            "Limit to 1 pop-up max. Sticky ads should be small and non-intrusive.",
        ),
    ),
    # --- SEO ---
    Rule(
        "seo-meta-description",
        lambda i: len(i["meta_description"]) < 50,
        lambda i: (
            "Add a description that makes people want to click in search results",
            5 if i["meta_description"] else 7,
            "Low",
            "Write 120-160 characters that preview what readers will learn and why it matters to them.",
        ),
    ),
    Rule(
        "seo-meta-description-trim",
        lambda i: len(i["meta_description"]) > 160,
        lambda i: (
            "Shorten meta description to 120-160 characters so it doesn't get cut off in search",
            4,
            "Low",
            "Keep the hook at the start. Cut filler words.",
        ),
    ),
    Rule(
        "seo-social-preview",
        lambda i: not i["open_graph_present"],
        lambda i: (
            "Add social preview tags so your posts look good when shared",
            6,
            "Low",
            "Most publishing platforms have this in settings: title, description and image for social sharing.",
        ),
    ),
    Rule(
        "seo-image-descriptions",
        lambda i: i["images_missing_alt"] > 2,
        lambda i: (
            f"Add descriptive text to {i['images_missing_alt']} images (helps SEO and accessibility)",
            6 if i["images_missing_alt"] > 5 else 4,
            "Low",
            'Describe what\'s in the image: "golden brown pancakes on white plate" not just "pancakes"',
        ),
    ),
    Rule(
        "seo-allow-indexing",
        lambda i: not i["robots_indexable"],
        lambda i: (
            "Allow search engines to index this page",
            7,
            "Low",
            'Remove "noindex" from the robots meta tag and any blanket "Disallow: /" in robots.txt.',
        ),
    ),
    # --- UX ---
    Rule(
        "ux-mobile-friendly",
        lambda i: not i["viewport"],
        lambda i: (
            "Make sure your page looks good on phones",
            7,
            "Low",
            "Use a responsive theme. Test on your phone. Text should be readable without zooming.",
        ),
    ),
    Rule(
        "ux-lazy-images",
        lambda i: i["lazy_fraction"] < 0.5 and i["images_count"] > 3,
        lambda i: (
            "Enable lazy loading so images load as readers scroll (speeds up initial load)",
            5,
            "Low",
            'Most platforms have this in settings or plugins. Turn on "Lazy Load Images".',
        ),
    ),
    Rule(
        "ux-image-dimensions",
        lambda i: i["images_missing_dims"] > 3,
        lambda i: (
            f"Set image sizes to prevent page jumping while loading ({i['images_missing_dims']} images affected)",
            5,
            "Low",
            "Upload images at consistent sizes. Many themes do this automatically.",
        ),
    ),
    # --- Security ---
    Rule(
        "security-https",
        lambda i: not i["https"],
        lambda i: (
            "Enable HTTPS (secure connection) for reader safety",
            8,
            "Medium",
            "Contact your hosting provider to enable an SSL certificate (usually free).",
        ),
    ),
)


# ---------------------------------------------------------------------------
# Ranking
# ---------------------------------------------------------------------------


def dedupe_and_rank(items: list[Recommendation], cap: int | None = None) -> list[Recommendation]:
    """Keep the highest-impact item per id, sort by impact descending, truncate to `cap`."""
    cap = config.MAX_RECOMMENDATIONS if cap is None else cap
    best: dict[str, Recommendation] = {}
    for item in items:
        existing = best.get(item["id"])
        if existing is None or item["impact"] > existing["impact"]:
            best[item["id"]] = item
    ranked = sorted(best.values(), key=lambda r: r["impact"], reverse=True)
    return ranked[:cap]


def generate_recommendations(
    inputs: RecommendationInputs,
    cap: int | None = None,
    rules: tuple[Rule, ...] = RULES,
) -> list[Recommendation]:
    items = []
    for rule in rules:
        rec = rule.evaluate(inputs)
        if rec is not None:
            items.append(rec)
    logger.debug("%d of %d recommendation rules fired", len(items), len(rules))
    return dedupe_and_rank(items, cap)
