"""End-to-end analysis pipeline tests with fake collaborators."""
import pytest

import config
from analyzer import analyze, analyze_fast, build_explainability
from errors import InvalidUrlError
from metrics_providers import MetricsProvider
from models import ContentRejection, RealMetrics
from scorers import FAST_MODULE_NAMES, MODULE_NAMES

from conftest import ARTICLE_URL, THIN_URL, make_article_html, make_thin_html


class FixedProvider(MetricsProvider):
    name = "pagespeed"

    def measure(self, url):
        return RealMetrics(source="pagespeed", lcp_seconds=1.9, cls=0.02)


@pytest.fixture
def pages():
    return {ARTICLE_URL: make_article_html(), THIN_URL: make_thin_html(50)}


class TestFullAnalysis:
    def test_payload_shape(self, make_services, pages):
        services = make_services(pages)
        payload = analyze(ARTICLE_URL, services=services)

        assert payload["success"] is True
        assert payload["phase"] == "full"
        assert payload["cached"] is False
        assert list(payload["modules"]) == list(MODULE_NAMES)
        assert 0 <= payload["final_score"] <= 100
        assert payload["performance_source"] == "heuristic"
        assert len(payload["recommendations"]) <= config.MAX_RECOMMENDATIONS
        assert payload["explainability"][0].startswith("Final score is weighted by modules:")
        assert "HTML heuristics" in payload["explainability"][1]
        assert 0 < len(payload["top_keywords"]) <= 10
        assert any(k["word"] == "soil" for k in payload["top_keywords"])
        assert payload["uniqueness"]["uniqueness"]["level"]
        assert "site_checks" not in payload

    def test_repeat_is_served_from_cache(self, make_services, pages):
        services = make_services(pages)
        first = analyze(ARTICLE_URL, services=services)
        second = analyze(ARTICLE_URL, services=services)

        assert services.fetch.calls == [ARTICLE_URL]
        assert second["cached"] is True
        assert second["final_score"] == first["final_score"]

    def test_thin_page_is_rejected_and_not_cached(self, make_services, pages):
        services = make_services(pages)
        result = analyze(THIN_URL, services=services)

        assert isinstance(result, ContentRejection)
        assert result.word_count == 50
        assert result.minimum_required == 100
        assert len(services.cache) == 0
        analyze(THIN_URL, services=services)
        assert services.fetch.calls == [THIN_URL, THIN_URL]

    def test_invalid_url_raises_before_fetch(self, make_services, pages):
        services = make_services(pages)
        with pytest.raises(InvalidUrlError):
            analyze("http://192.168.0.1/admin", services=services)
        assert services.fetch.calls == []

    def test_measured_metrics_are_reported(self, make_services, pages):
        services = make_services(pages, providers=[FixedProvider()])
        payload = analyze(ARTICLE_URL, services=services)

        assert payload["performance_source"] == "pagespeed"
        assert payload["modules"]["performance"]["metrics"]["using_real_data"] is True
        assert "PageSpeed Insights" in payload["explainability"][1]

    def test_site_checks_feed_explainability(self, make_services, pages):
        site_checks = {
            "sitemap": True,
            "robots": {"present": True, "blocks_all": False},
            "rss": False,
            "broken_links": {"checked": 4, "broken": 1, "rate": 25.0},
        }
        payload = analyze(ARTICLE_URL, services=make_services(pages, site_checks=site_checks))

        assert payload["site_checks"] == site_checks
        assert "Broken external link rate (sample 4): 25%" in payload["explainability"]

    def test_llm_items_are_merged(self, make_services, pages):
        extra = [
            {
                "id": "llm-soil-table",
                "summary": "Add a soil test comparison table",
                "impact": 10,
                "effort": "Low",
                "example_text": "",
            }
        ]
        services = make_services(pages, llm_items=extra)
        plain = analyze(ARTICLE_URL, services=services)
        enhanced = analyze(ARTICLE_URL, llm=True, services=services)

        assert all(r["id"] != "llm-soil-table" for r in plain["recommendations"])
        assert enhanced["recommendations"][0]["id"] == "llm-soil-table"
        assert enhanced["cached"] is False
        assert len(services.cache) == 2

    def test_llm_failure_keeps_rule_recommendations(self, make_services, pages):
        services = make_services(pages, llm_items=None)
        payload = analyze(ARTICLE_URL, llm=True, services=services)
        assert payload["success"] is True

    def test_debug_only_in_development(self, make_services, pages, monkeypatch):
        payload = analyze(ARTICLE_URL, services=make_services(pages))
        assert "debug" not in payload

        monkeypatch.setattr(config, "APP_ENV", "development")
        payload = analyze(ARTICLE_URL, services=make_services(pages))
        assert payload["debug"]["status"] == 200
        assert payload["debug"]["final_url"] == ARTICLE_URL


class TestFastAnalysis:
    def test_fast_payload(self, make_services, pages, fake_lookup):
        services = make_services(pages)
        payload = analyze_fast(ARTICLE_URL, services=services)

        assert payload["phase"] == "fast"
        assert list(payload["modules"]) == list(FAST_MODULE_NAMES)
        assert payload["performance_source"] == "heuristic"
        assert fake_lookup.calls == []
        assert len(services.fast_cache) == 1
        assert len(services.cache) == 0
        assert any(line.startswith("Fast analysis") for line in payload["explainability"])

    def test_fast_false_runs_full_analysis(self, make_services, pages):
        payload = analyze_fast(ARTICLE_URL, fast=False, services=make_services(pages))
        assert payload["phase"] == "full"


class TestExplainability:
    def test_slow_analysis_note(self):
        lines = build_explainability({"seo": 1.0}, "browser", False, None, 31250)
        assert lines[-1] == "Analysis exceeded 30s (31250ms); some deep checks skipped."
        assert "headless browser" in lines[1]

    def test_unchecked_links_are_not_mentioned(self):
        checks = {"broken_links": {"checked": 0, "broken": 0, "rate": 0.0}}
        lines = build_explainability({"seo": 1.0}, "heuristic", False, checks, 100)
        assert not any("Broken external link" in line for line in lines)
