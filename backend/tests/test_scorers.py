"""Tests for the module scorers and their normalization primitives."""
import pytest

from extractor import extract
from models import NEUTRAL_UNIQUENESS, RealMetrics, ResponseMeta, UniquenessReport
from scorers import FAST_MODULE_NAMES, MODULE_NAMES, score_modules
from scorers.accessibility import MAX_RAW as MAX_ACCESSIBILITY, score_accessibility
from scorers.content import (
    days_since,
    flesch_points,
    score_content,
    visual_density_points,
    word_count_points,
)
from scorers.normalize import (
    clamp_score,
    norm_higher_is_better,
    norm_lower_is_better,
    ratio_points,
    rescale,
    round_half_up,
    weighted,
)
from scorers.monetization import score_monetization
from scorers.performance import core_web_vitals_score, heuristic_cls, score_performance
from scorers.security import score_security
from scorers.seo import clean_title, linking_points, score_seo
from scorers.trust import MAX_RAW as MAX_TRUST, score_trust
from scorers.ux import MAX_RAW as MAX_UX, score_ux

from conftest import ARTICLE_URL, make_article_html


@pytest.fixture
def article_bundle(article_html):
    return extract(article_html, ARTICLE_URL)


class TestNormalize:
    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(0.5) == 1
        assert round_half_up(2.49) == 2

    def test_clamp_score(self):
        assert clamp_score(104.2) == 100
        assert clamp_score(-3) == 0
        assert clamp_score(49.5) == 50

    def test_norm_lower_is_better(self):
        assert norm_lower_is_better(2.0, 2.5, 4.0) == 100
        assert norm_lower_is_better(3.25, 2.5, 4.0) == 50
        assert norm_lower_is_better(5.0, 2.5, 4.0) == 0

    def test_norm_higher_is_better(self):
        assert norm_higher_is_better(0, 0, 10) == 0
        assert norm_higher_is_better(5, 0, 10) == 50
        assert norm_higher_is_better(12, 0, 10) == 100

    def test_rescale_and_ratio_points(self):
        assert rescale(57, 57) == 100
        assert rescale(10, 0) == 0
        assert ratio_points(1, 2, 10, default=7) == 5
        assert ratio_points(0, 0, 10, default=7) == 7

    def test_weighted_renormalizes_missing_components(self):
        assert weighted({"a": 100, "b": None}, {"a": 0.5, "b": 0.5}) == 100
        assert weighted({}, {"a": 1.0}) == 0


class TestPerformance:
    def test_core_web_vitals_bounds(self):
        assert core_web_vitals_score(2.0, None, 0.05) == 100
        assert core_web_vitals_score(4.0, 250, 0.25) == 0

    def test_heuristic_cls_without_images(self, thin_html):
        assert heuristic_cls(extract(thin_html, ARTICLE_URL)) == 0

    def test_heuristic_source(self, article_bundle):
        metrics = score_performance(article_bundle)["metrics"]
        assert metrics["using_real_data"] is False
        assert metrics["data_source"] == "heuristic"

    def test_real_metrics_override_heuristics(self, article_bundle):
        real = RealMetrics(source="pagespeed", lcp_seconds=1.2, cls=0.01)
        metrics = score_performance(article_bundle, real)["metrics"]
        assert metrics["lcp_seconds"] == 1.2
        assert metrics["using_real_data"] is True
        assert metrics["data_source"] == "pagespeed"


class TestSeo:
    def test_article_identity(self, article_bundle):
        metrics = score_seo(article_bundle)["metrics"]
        assert metrics["title_optimal"] is True
        assert metrics["meta_description_optimal"] is True
        assert metrics["canonical_present"] is True
        assert metrics["canonical_self"] is True
        assert metrics["schema_present"] is True
        assert metrics["robots_indexable"] is True
        assert metrics["internal_links_count"] == 5

    def test_noindex(self):
        html = make_article_html(extra_head='<meta name="robots" content="noindex, nofollow">')
        metrics = score_seo(extract(html, ARTICLE_URL))["metrics"]
        assert metrics["robots_indexable"] is False

    def test_clean_title_collapses_repeats(self):
        assert clean_title("Foo | Foo | Bar") == "Foo | Bar"
        assert clean_title("  Plain title  ") == "Plain title"

    def test_linking_points(self):
        assert linking_points(0) == 2
        assert linking_points(5) == 6
        assert linking_points(45) == 10


class TestContent:
    def test_point_bands(self):
        assert word_count_points(1800) == 20
        assert word_count_points(3500) == 10
        assert word_count_points(150) == 2
        assert flesch_points(75) == 20
        assert flesch_points(-50) == 2
        # Middle band spans 0.15-1.2 on both sides of the ideal range.
        assert visual_density_points(0.5) == 5
        assert visual_density_points(1.0) == 3
        assert visual_density_points(0.2) == 3
        assert visual_density_points(2.0) == 1

    def test_days_since(self):
        assert days_since("garbage") is None
        assert days_since(None) is None
        assert days_since("2020-01-01T00:00:00Z") > 365

    def test_long_article(self, article_bundle):
        result = score_content(article_bundle, NEUTRAL_UNIQUENESS)
        metrics = result["metrics"]
        assert metrics["word_count_points"] == 20
        assert metrics["fresh_content"] is True
        assert metrics["uniqueness_score"] == 50
        assert set(metrics["legacy_components"]) == {
            "depth",
            "readability",
            "structure",
            "media",
            "engagement",
            "originality",
            "relevance",
        }
        assert metrics["legacy_components"]["depth"] == 20
        assert 0 <= result["score"] <= 100

    def test_stale_article(self):
        bundle = extract(make_article_html(published_days_ago=800), ARTICLE_URL)
        assert score_content(bundle, NEUTRAL_UNIQUENESS)["metrics"]["fresh_content"] is False


class TestSecurity:
    def test_https_without_headers(self, article_bundle):
        result = score_security(article_bundle)
        assert result["metrics"]["https_points"] == 10
        assert result["metrics"]["csp_points"] == 0
        assert result["metrics"]["unsafe_target_blank_count"] == 0
        assert result["score"] == 36

    def test_all_headers(self, article_html):
        meta = ResponseMeta(
            headers={
                "content-security-policy": "default-src 'self'",
                "strict-transport-security": "max-age=63072000",
                "x-frame-options": "DENY",
            }
        )
        assert score_security(extract(article_html, ARTICLE_URL, response_meta=meta))["score"] == 100

    def test_plain_http_and_unsafe_links(self):
        html = make_article_html(extra_body='<a href="https://other.example.net/" target="_blank">x</a>')
        result = score_security(extract(html, "http://example.com/blog/garden-soil"))
        assert result["metrics"]["https"] is False
        assert result["metrics"]["unsafe_target_blank_count"] == 1
        assert result["metrics"]["unsafe_target_points"] == 5


class TestScoreModules:
    def test_all_modules_in_range(self, article_bundle):
        results = score_modules(article_bundle)
        assert tuple(results) == MODULE_NAMES
        for name, result in results.items():
            assert isinstance(result["score"], int), name
            assert 0 <= result["score"] <= 100, name
            assert isinstance(result["metrics"], dict), name

    def test_fast_subset(self, article_bundle):
        assert tuple(score_modules(article_bundle, modules=FAST_MODULE_NAMES)) == FAST_MODULE_NAMES

    def test_unknown_module(self, article_bundle):
        with pytest.raises(ValueError):
            score_modules(article_bundle, modules=("performance", "vibes"))

    def test_empty_document_scores_without_error(self):
        results = score_modules(extract("", ARTICLE_URL))
        assert all(0 <= r["score"] <= 100 for r in results.values())


ACCESSIBLE_PAGE = """<html lang="en"><head>
<meta name="viewport" content="width=device-width, initial-scale=1">
<style>a:focus { outline: 2px solid #000; }</style>
</head><body>
<header><a href="#main">Skip to content</a></header>
<nav><a href="/guides">Soil guides</a></nav>
<main id="main"><article>
<h1>Testing soil at home</h1>
<h2>Choosing a kit</h2>
<p style="color: #000000; background-color: #ffffff; font-size: 18px; line-height: 1.6">Dark text on white.</p>
<ul><li>Lime</li></ul>
<table><caption>Results</caption><tr><td>6.5</td></tr></table>
<img src="/soil.jpg" alt="Soil sample in a jar" width="800" height="600">
<svg role="img"><title>pH chart</title></svg>
<form><label for="email">Email</label><input id="email" type="email"><button type="submit">Subscribe</button></form>
<video controls muted><track kind="captions" src="/captions.vtt"></video>
<div aria-live="polite">Saved</div>
</article></main>
<footer><a href="/privacy-policy">Privacy policy</a></footer>
</body></html>"""

UX_PAGE = """<html><head><meta name="viewport" content="width=device-width"></head>
<body{body_attrs}>
<nav><a href="/">Home</a> <a href="/category/soil">Soil</a> <a href="/tag/compost">Compost</a> <a href="/archive/2024">Archive</a></nav>
<form><input type="search" name="q"><button type="submit">Go</button></form>
<main><h1>Soil notes</h1><p>Notes.</p>
<img src="/bed.jpg" alt="Raised bed" style="max-width: 100%" width="800" height="600">
</main></body></html>"""

SHOP_PAGE = """<html><head><title>Kit review</title></head><body><main>
<h1>Soil test kit review</h1>
{disclosure}
<p>Every kit ships with a refund guarantee.</p>
<div class="ad-slot" loading="lazy">Sponsored</div>
<div class="product-card"><img src="/kit.jpg" alt="Kit"><p>$19.99</p></div>
<a href="https://shop.example.net/kit?ref=garden" class="bg-green">Buy the Luster soil test kit</a>
<a href="https://shop.example.net/meter?ref=garden">Digital soil moisture meter</a>
<form><p>Join the weekly newsletter.</p><input type="email" name="email"><button type="submit" class="bg-green">Subscribe</button></form>
</main></body></html>"""

DISCLOSURE = "<p>As an affiliate we may earn a commission.</p>"


class TestAccessibility:
    def test_sub_check_maxima_make_up_the_budget(self):
        assert MAX_ACCESSIBILITY == 110

    def test_factor_points_on_known_page(self):
        result = score_accessibility(extract(ACCESSIBLE_PAGE, ARTICLE_URL))
        metrics = result["metrics"]
        assert metrics["semantic_structure_points"] == 21
        assert metrics["text_contrast_points"] == 20
        assert metrics["image_accessibility_points"] == 14
        assert metrics["media_interactive_points"] == 13
        assert metrics["keyboard_focus_points"] == 15
        assert metrics["aria_points"] == 10
        assert metrics["mobile_accessibility_points"] == 10
        assert metrics["raw_score"] == 103
        assert result["score"] == 94

    def test_contrast_samples(self):
        html = (
            '<html><body><p style="color: #777777; background-color: #888888">Low</p>'
            '<p style="color:#000;background-color:#fff">High</p></body></html>'
        )
        metrics = score_accessibility(extract(html, ARTICLE_URL))["metrics"]
        assert metrics["contrast_samples"] == 2
        # 5 for one of two passing samples, plus the unsampled font, line-height and family defaults
        assert metrics["text_contrast_points"] == 12

    def test_missing_alt_text(self):
        images = "".join(f'<img src="/{n}.jpg" alt="Bed {n}">' for n in range(3)) + '<img src="/3.jpg">'
        metrics = score_accessibility(extract(f"<html><body>{images}</body></html>", ARTICLE_URL))["metrics"]
        assert metrics["missing_alt_count"] == 1
        assert metrics["image_accessibility_points"] == 11

    def test_aria_roles(self):
        html = '<html><body><div role="banana">a</div><div role="bogus">b</div><div role="button"></div></body></html>'
        metrics = score_accessibility(extract(html, ARTICLE_URL))["metrics"]
        assert metrics["invalid_role_count"] == 2
        assert metrics["aria_points"] == 6


class TestUx:
    def test_budget(self):
        assert MAX_UX == 105

    def test_full_marks(self):
        result = score_ux(extract(UX_PAGE.format(body_attrs=""), ARTICLE_URL))
        metrics = result["metrics"]
        assert metrics["navigation_score"] == 25
        assert metrics["typography_score"] == 20
        assert metrics["mobile_usability_score"] == 20
        assert metrics["layout_stability_score"] == 15
        assert metrics["interaction_score"] == 15
        assert metrics["intrusiveness_score"] == 10
        assert metrics["raw_score"] == 105
        assert result["score"] == 100

    def test_small_type_is_rescaled(self):
        page = UX_PAGE.format(body_attrs=' style="font-size: 12px; line-height: 1.2"')
        result = score_ux(extract(page, ARTICLE_URL))
        assert result["metrics"]["typography_score"] == 11
        assert result["metrics"]["raw_score"] == 96
        assert result["score"] == 91


class TestMonetization:
    def test_full_marks(self):
        result = score_monetization(extract(SHOP_PAGE.format(disclosure=DISCLOSURE), ARTICLE_URL))
        metrics = result["metrics"]
        assert metrics["ads_score"] == 30
        assert metrics["affiliate_score"] == 20
        assert metrics["product_score"] == 20
        assert metrics["subscription_score"] == 10
        assert metrics["cta_score"] == 10
        assert metrics["monetization_hygiene_score"] == 10
        assert result["score"] == 100

    def test_missing_disclosure(self):
        result = score_monetization(extract(SHOP_PAGE.format(disclosure=""), ARTICLE_URL))
        assert result["metrics"]["affiliate_disclosure_points"] == 0
        assert result["score"] == 95


class TestTrust:
    SECTIONS = (
        "identity_score",
        "author_credibility_score",
        "content_reliability_score",
        "safety_score",
        "professionalism_score",
        "engagement_score",
    )

    def test_bare_page(self):
        result = score_trust(extract("<html><body></body></html>", "http://example.com/"), NEUTRAL_UNIQUENESS)
        metrics = result["metrics"]
        assert [metrics[s] for s in self.SECTIONS] == [0, 0, 5, 7, 8, 0]
        assert metrics["raw_score"] == 20
        assert result["score"] == 18

    def test_keyword_rarity_feeds_reliability(self):
        bundle = extract("<html><body></body></html>", "https://example.com/")
        rare = _report(rarity_score=10)
        assert score_trust(bundle, NEUTRAL_UNIQUENESS)["metrics"]["raw_score"] == 28
        result = score_trust(bundle, rare)
        assert result["metrics"]["keyword_rarity_points"] == 5
        assert result["metrics"]["raw_score"] == 33
        assert result["score"] == 30

    def test_article_sections_sum_to_raw(self, article_bundle):
        result = score_trust(article_bundle, NEUTRAL_UNIQUENESS)
        metrics = result["metrics"]
        assert sum(metrics[s] for s in self.SECTIONS) == metrics["raw_score"] <= MAX_TRUST
        assert result["score"] == rescale(metrics["raw_score"], MAX_TRUST)

    def test_rarer_keywords_never_lower_the_score(self, article_bundle):
        scores = [score_trust(article_bundle, _report(rarity_score=s))["score"] for s in range(11)]
        assert scores == sorted(scores)


def _report(rarity_score):
    return UniquenessReport(
        uniqueness=dict(NEUTRAL_UNIQUENESS.uniqueness),
        rarity={"score": rarity_score, "level": "unknown", "reasoning": ""},
    )
