"""Data models and types used across the backend.

Database table definitions are in database.py.
The extracted page (SignalBundle and its parts) is a set of frozen dataclasses
so scorers can share one instance across threads. Everything that ends up in
the JSON payload is a TypedDict.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Literal, Mapping, TypedDict

from bs4 import BeautifulSoup

Effort = Literal["Low", "Medium", "High"]


# ---------------------------------------------------------------------------
# Signal bundle
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ImageInfo:
    src: str
    alt: str | None
    has_dimensions: bool
    is_lazy: bool
    has_srcset: bool = False
    css_class: str = ""
    style: str = ""

    @property
    def has_alt(self) -> bool:
        return self.alt is not None


@dataclass(frozen=True)
class LinkInfo:
    href: str
    is_internal: bool
    anchor_text: str
    raw_href: str = ""
    rel: str = ""
    target: str = ""


@dataclass(frozen=True)
class ResourceCounts:
    blocking: int = 0
    non_blocking: int = 0

    @property
    def total(self) -> int:
        return self.blocking + self.non_blocking


@dataclass(frozen=True)
class ResponseMeta:
    """What the fetch observed about the HTTP exchange."""

    status: int = 200
    elapsed_ms: int = 0
    byte_size: int = 0
    final_url: str = ""
    headers: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    cdn_detected: bool = False

    def header(self, name: str) -> str | None:
        return self.headers.get(name.lower())


@dataclass(frozen=True)
class PageSignals:
    """Article-vs-landing-page evidence used by the content gate."""

    blog_signals: int = 0
    non_blog_signals: int = 0
    word_count: int = 0
    content_word_count: int = 0
    published_at: str | None = None
    updated_at: str | None = None
    rss_present: bool = False
    structured_data_types: tuple[str, ...] = ()


@dataclass(frozen=True)
class SignalBundle:
    """Immutable extraction of one page; shared read-only by every scorer."""

    url: str
    html: str
    document: BeautifulSoup = field(compare=False, repr=False)
    heading_counts: Mapping[int, int]
    images: tuple[ImageInfo, ...]
    links: tuple[LinkInfo, ...]
    scripts: ResourceCounts
    stylesheets: ResourceCounts
    body_text: str
    content_text: str
    response_meta: ResponseMeta
    page_signals: PageSignals
    fast: bool = False

    @property
    def hostname(self) -> str:
        from urllib.parse import urlparse

        return (urlparse(self.url).hostname or "").lower()

    @property
    def is_https(self) -> bool:
        return self.url.lower().startswith("https://")

    @property
    def html_bytes(self) -> int:
        return len(self.html.encode("utf-8"))

    @property
    def word_count(self) -> int:
        return self.page_signals.word_count

    @property
    def content_word_count(self) -> int:
        return self.page_signals.content_word_count

    def headings(self, level: int) -> int:
        return self.heading_counts.get(level, 0)


@dataclass(frozen=True)
class RealMetrics:
    """Measured timings from a metrics provider. Times are seconds."""

    source: str
    lcp_seconds: float | None
    cls: float | None
    fcp_seconds: float | None = None
    tbt_seconds: float | None = None
    ttfb_seconds: float | None = None


# ---------------------------------------------------------------------------
# Uniqueness
# ---------------------------------------------------------------------------


class Keyword(TypedDict):
    word: str
    count: int


class UniquenessResult(TypedDict, total=False):
    score: int
    level: str
    reasoning: str
    details: dict[str, Any]


class KeywordRarityResult(TypedDict, total=False):
    score: int
    level: str
    reasoning: str
    keywords: list[str]
    search_count: int
    cached: bool


@dataclass(frozen=True)
class UniquenessReport:
    """Web/corpus uniqueness and keyword rarity for one page."""

    uniqueness: UniquenessResult
    rarity: KeywordRarityResult
    top_keywords: tuple[Keyword, ...] = ()

    def to_dict(self) -> dict:
        return {
            "uniqueness": dict(self.uniqueness),
            "keyword_rarity": dict(self.rarity),
        }


NEUTRAL_UNIQUENESS = UniquenessReport(
    uniqueness={"score": 50, "level": "unknown", "reasoning": "Analysis pending", "details": {}},
    rarity={"score": 0, "level": "unknown", "reasoning": "No keywords extracted"},
)


# ---------------------------------------------------------------------------
# Results and payload
# ---------------------------------------------------------------------------


class ModuleResult(TypedDict):
    score: int
    metrics: dict[str, Any]


# --- Per-module metrics ---


class PerformanceMetrics(TypedDict, total=False):
    lcp_seconds: float
    tbt_ms: float | None
    cls: float
    fcp_seconds: float | None
    using_real_data: bool
    data_source: str
    real_ttfb: float | None
    core_web_vitals_score: int
    total_page_weight_mb: float
    requests_count: int
    large_asset_count: int
    load_cost_score: int
    preconnect_preload_count: int
    ttfb_ms: int
    network_efficiency_score: int
    blocking_stylesheets_count: int
    blocking_scripts_count: int
    critical_css_present: bool
    render_blocking_score: int
    images_missing_srcset_ratio: float
    video_autoplay_with_sound_count: int
    media_optimization_score: int
    compression: str | None
    cache_control: str | None
    cache_ttl_days: float
    cdn_detected: bool
    caching_cdn_score: int
    font_preload_present: bool
    fonts_score: int
    service_worker_present: bool
    manifest_present: bool
    progressive_enhancements_score: int


class AccessibilityMetrics(TypedDict, total=False):
    raw_score: int
    h1_present: bool
    html_lang_present: bool
    missing_alt_count: int
    semantic_structure_points: int
    text_contrast_points: int
    image_accessibility_points: int
    media_interactive_points: int
    keyboard_focus_points: int
    aria_points: int
    mobile_accessibility_points: int
    contrast_samples: int
    invalid_role_count: int


class SeoMetrics(TypedDict, total=False):
    raw_total_components: int
    max_raw_total: int
    identity_raw: int
    content_raw: int
    linking_raw: int
    technical_raw: int
    identity_scaled_20: int
    content_scaled_20: int
    linking_scaled_10: int
    technical_scaled_10: int
    title_cleaned: str
    title_length: int
    title_optimal: bool
    title_points: int
    meta_description_length: int
    meta_description_optimal: bool
    description_points: int
    canonical_present: bool
    canonical_self: bool
    open_graph_present: bool
    twitter_card_present: bool
    schema_present: bool
    meta_keywords_count: int
    robots_indexable: bool
    internal_links_count: int
    sample_word_count: int
    sample_chars: int
    flesch_score: float
    ttfb_ms: int


class ContentMetrics(TypedDict, total=False):
    normalized_score: int
    raw_score: int
    readability_points_total: int
    readability_flesch_points: int
    readability_sentence_length_points: int
    word_count_points: int
    reading_time_points: int
    content_depth_points: int
    engagement_points: int
    interactive_engagement_points: int
    storytelling_points: int
    visual_density_points: int
    questions_count: int
    call_to_actions_count: int
    storytelling_matches: int
    visuals_ratio: float
    flesch_score: float
    avg_sentence_length: float
    word_count: int
    reading_time_min: int
    content_depth_ratio: float
    days_since_published: int | None
    fresh_content: bool | None
    complex_word_ratio: float
    passive_voice_matches: int
    uniqueness_score: int
    uniqueness_level: str
    legacy_score: int
    legacy_components: dict[str, int]


class UxMetrics(TypedDict, total=False):
    raw_score: int
    navigation_score: int
    navigation_presence_points: int
    navigation_item_count_points: int
    navigation_home_link_points: int
    search_points: int
    category_points: int
    has_search_feature: bool
    has_categories_or_tags: bool
    nav_link_count: int
    typography_score: int
    font_size_points: int
    line_height_points: int
    text_contrast_points: int
    base_font_size: float
    line_height: float
    mobile_usability_score: int
    viewport_points: int
    responsive_img_points: int
    no_horizontal_scroll_points: int
    responsive_image_ratio: int
    mobile_responsive: bool
    layout_stability_score: int
    image_dimensions_points: int
    shift_prone_points: int
    images_with_dimensions_ratio: int
    images_missing_dimensions: int
    images_lazy_fraction: float
    interaction_score: int
    tap_target_points: int
    valid_href_points: int
    buttons_type_points: int
    large_tap_targets_ratio: int
    links_without_href: int
    intrusiveness_score: int
    ad_count_points: int
    ads_fold_points: int
    ad_elements_count: int
    ads_above_fold: int


class MonetizationMetrics(TypedDict, total=False):
    ads_score: int
    ad_density_points: int
    ad_placement_points: int
    ad_loading_points: int
    ads_total: int
    ads_above_fold_count: int
    lazy_ads_count: int
    blocking_ad_scripts: int
    affiliate_score: int
    affiliate_presence_points: int
    affiliate_disclosure_points: int
    affiliate_relevancy_points: int
    affiliate_links_count: int
    affiliate_relevancy_ratio: int
    has_disclosure: bool
    product_score: int
    buy_button_points: int
    product_presentation_points: int
    customer_trust_points: int
    buy_buttons_count: int
    product_cards_count: int
    subscription_score: int
    email_optin_points: int
    incentive_clarity_points: int
    email_inputs_count: int
    cta_score: int
    cta_quantity_points: int
    cta_visibility_points: int
    cta_count: int
    visible_ctas_ratio: int
    monetization_hygiene_score: int
    popup_points: int
    deceptive_points: int
    popup_count: int
    deceptive_patterns_count: int
    overlay_count: int
    ad_iframe_count: int
    ad_script_count: int
    sticky_ads_count: int
    analytics_present: bool


class TrustMetrics(TypedDict, total=False):
    raw_score: int
    identity_score: int
    about_contact_points: int
    contact_methods_points: int
    legal_transparency_points: int
    identity_page_count: int
    contact_methods_count: int
    legal_page_count: int
    email_links: int
    phone_numbers_found: int
    physical_address_found: bool
    contact_form_present: bool
    author_credibility_score: int
    author_box_points: int
    expertise_points: int
    date_info_points: int
    author_box_present: bool
    author_text_length: int
    expertise_matches: int
    credential_links: int
    published_date_present: bool
    updated_date_present: bool
    content_reliability_score: int
    citation_points: int
    accuracy_points: int
    uniqueness_points: int
    keyword_rarity_points: int
    originality_signal_points: int
    photo_originality_points: int
    keyword_rarity_data: dict[str, Any]
    uniqueness_metric: dict[str, Any]
    originality_matches: int
    photo_originality_ratio: int
    has_original_photos: int
    spam_points: int
    total_references: int
    citation_matches: int
    scholarly_links: int
    keyword_density: float
    duplicate_ratio: int
    safety_score: int
    https_points: int
    secure_links_points: int
    no_deceptive_points: int
    secure_external_ratio: int
    external_links_count: int
    secure_external_links: int
    professionalism_score: int
    brand_consistency_points: int
    clean_design_points: int
    ad_excess_points: int
    logo_count: int
    unique_fonts: int
    engagement_score: int
    comments_points: int
    social_buttons_points: int
    comment_sections: int
    star_ratings: int
    social_network_count: int


class SecurityMetrics(TypedDict, total=False):
    https_points: int
    csp_points: int
    hsts_points: int
    xfo_points: int
    unsafe_target_points: int
    raw_score: int
    https: bool
    csp_present: bool
    hsts_present: bool
    xfo_present: bool
    unsafe_target_blank_count: int


class Recommendation(TypedDict):
    id: str
    summary: str
    impact: int
    effort: Effort
    example_text: str


class BrokenLinkSample(TypedDict):
    checked: int
    broken: int
    rate: float


class RobotsProbe(TypedDict):
    present: bool | None
    blocks_all: bool


class SiteChecks(TypedDict):
    sitemap: bool | None
    robots: RobotsProbe
    rss: bool
    broken_links: BrokenLinkSample


class AnalysisPayload(TypedDict, total=False):
    success: bool
    url: str
    final_score: int
    modules: dict[str, ModuleResult]
    recommendations: list[Recommendation]
    explainability: list[str]
    phase: Literal["fast", "full"]
    cached: bool
    generated_ms: int
    performance_source: str
    uniqueness: dict[str, Any]
    top_keywords: list[Keyword]
    site_checks: SiteChecks
    debug: dict[str, Any]


@dataclass(frozen=True)
class ContentRejection:
    """Terminal outcome for pages too thin (or too landing-page-like) to score."""

    error: str
    message: str
    word_count: int
    minimum_required: int
    suggestions: tuple[str, ...]
    status_code: int = 400

    def to_dict(self) -> dict:
        return {
            "success": False,
            "error": self.error,
            "message": self.message,
            "word_count": self.word_count,
            "minimum_required": self.minimum_required,
            "suggestions": list(self.suggestions),
        }
