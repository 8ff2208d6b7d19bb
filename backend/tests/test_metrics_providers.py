"""Tests for measured Core Web Vitals providers."""
from unittest.mock import MagicMock, patch

import requests

from metrics_providers import MetricsProvider, PageSpeedProvider, resolve_real_metrics
from models import RealMetrics

PAGESPEED_PAYLOAD = {
    "lighthouseResult": {
        "audits": {
            "largest-contentful-paint": {"numericValue": 2300.0},
            "cumulative-layout-shift": {"numericValue": 0.04},
            "first-contentful-paint": {"numericValue": 1100.0},
            "total-blocking-time": {"numericValue": 150.0},
            "server-response-time": {"numericValue": 0},
        }
    }
}


class StaticProvider(MetricsProvider):
    def __init__(self, name, result=None, error=None):
        self.name = name
        self.result = result
        self.error = error
        self.calls = 0

    def measure(self, url):
        self.calls += 1
        if self.error:
            raise self.error
        return self.result


class TestPageSpeed:
    def test_parse(self):
        metrics = PageSpeedProvider(api_key="k").parse(PAGESPEED_PAYLOAD)
        assert metrics == RealMetrics(
            source="pagespeed",
            lcp_seconds=2.3,
            cls=0.04,
            fcp_seconds=1.1,
            tbt_seconds=0.15,
            ttfb_seconds=None,
        )

    def test_parse_without_audits(self):
        assert PageSpeedProvider(api_key="k").parse({"error": "quota"}) is None

    def test_skipped_without_key(self):
        with patch("metrics_providers.requests.get") as mock_get:
            assert PageSpeedProvider(api_key="").measure("https://example.com") is None
        mock_get.assert_not_called()

    def test_request_parameters(self):
        response = MagicMock(status_code=200)
        response.json.return_value = PAGESPEED_PAYLOAD
        with patch("metrics_providers.requests.get", return_value=response) as mock_get:
            metrics = PageSpeedProvider(api_key="k", timeout=7).measure("https://example.com")
        assert metrics.lcp_seconds == 2.3
        params = mock_get.call_args.kwargs["params"]
        assert params == {"url": "https://example.com", "key": "k", "strategy": "mobile", "category": "performance"}
        assert mock_get.call_args.kwargs["timeout"] == 7

    def test_failures_return_none(self):
        with patch("metrics_providers.requests.get", side_effect=requests.Timeout()):
            assert PageSpeedProvider(api_key="k").measure("https://example.com") is None
        with patch("metrics_providers.requests.get", return_value=MagicMock(status_code=429)):
            assert PageSpeedProvider(api_key="k").measure("https://example.com") is None


class TestResolve:
    def test_first_useful_result_wins(self):
        empty = StaticProvider("pagespeed", RealMetrics(source="pagespeed", lcp_seconds=None, cls=None))
        browser = StaticProvider("browser", RealMetrics(source="browser", lcp_seconds=1.8, cls=0.0))
        unused = StaticProvider("other", RealMetrics(source="other", lcp_seconds=1.0, cls=0.0))
        assert resolve_real_metrics([empty, browser, unused], "https://example.com").source == "browser"
        assert unused.calls == 0

    def test_raising_provider_is_skipped(self):
        broken = StaticProvider("pagespeed", error=RuntimeError("boom"))
        fallback = StaticProvider("browser", RealMetrics(source="browser", lcp_seconds=2.0, cls=0.1))
        assert resolve_real_metrics([broken, fallback], "https://example.com").source == "browser"

    def test_no_providers(self):
        assert resolve_real_metrics([], "https://example.com") is None
        assert resolve_real_metrics([StaticProvider("none")], "https://example.com") is None
