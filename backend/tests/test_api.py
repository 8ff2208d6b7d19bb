"""HTTP-level tests for the FastAPI app (analysis collaborators faked)."""
import pytest
from fastapi.testclient import TestClient

import config
from errors import PageFetchError
from main import app

from conftest import ARTICLE_URL, THIN_URL, make_article_html, make_thin_html

PAGES = {ARTICLE_URL: make_article_html(), THIN_URL: make_thin_html(50)}


@pytest.fixture
def client(make_services):
    with TestClient(app, raise_server_exceptions=False) as test_client:
        app.state.services = make_services(PAGES)
        yield test_client


class TestAnalyzeEndpoints:
    def test_get_analyze(self, client):
        response = client.get("/analyze", params={"url": ARTICLE_URL})
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["phase"] == "full"
        assert len(body["modules"]) == 8

    def test_post_analyze_with_string_flags(self, client):
        response = client.post("/analyze", json={"url": ARTICLE_URL, "fast": "yes"})
        assert response.status_code == 200
        assert response.json()["phase"] == "fast"

    def test_fast_endpoint_defaults_to_fast(self, client):
        get_body = client.get("/analyze/fast", params={"url": ARTICLE_URL}).json()
        post_body = client.post("/analyze/fast", json={"url": ARTICLE_URL}).json()
        assert get_body["phase"] == post_body["phase"] == "fast"
        assert post_body["cached"] is True

    def test_repeat_request_is_cached(self, client):
        client.get("/analyze", params={"url": ARTICLE_URL})
        assert client.get("/analyze", params={"url": ARTICLE_URL}).json()["cached"] is True

    def test_thin_page_is_rejected(self, client):
        response = client.get("/analyze", params={"url": THIN_URL})
        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "Insufficient content for analysis"
        assert body["word_count"] == 50
        assert body["minimum_required"] == 100
        assert body["suggestions"]

    @pytest.mark.parametrize("url", ["", "localhost", "http://10.0.0.5/", "ftp://example.com"])
    def test_invalid_urls(self, client, url):
        response = client.post("/analyze", json={"url": url})
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid URL"

    def test_fetch_failure(self, client):
        def _fail(url):
            raise PageFetchError(
                "Could not fetch page",
                status_code=504,
                details={"url": url, "attempted": [url], "errors": ["timeout"], "suggestion": "Retry later"},
            )

        app.state.services.fetch = _fail
        response = client.get("/analyze", params={"url": ARTICLE_URL})
        assert response.status_code == 504
        body = response.json()
        assert body["error"] == "Failed to fetch page"
        assert body["details"]["attempted"] == [ARTICLE_URL]

    def test_unexpected_error(self, client, monkeypatch):
        def _boom(url):
            raise RuntimeError("parser exploded")

        app.state.services.fetch = _boom
        response = client.get("/analyze", params={"url": ARTICLE_URL})
        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Internal server error"}

        monkeypatch.setattr(config, "APP_ENV", "development")
        body = client.get("/analyze", params={"url": ARTICLE_URL}).json()
        assert body["message"] == "parser exploded"
        assert body["details"] == {"type": "RuntimeError"}


class TestDiagnosticEndpoints:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}

    def test_store_health(self, client):
        client.get("/analyze", params={"url": ARTICLE_URL})
        body = client.get("/diagnostic/health").json()
        assert body["status"] == "ok"
        assert body["word_count"] > 0
        assert body["analysis_cache"]["sets"] == 1
        assert body["fast_analysis_cache"]["sets"] == 0

    def test_keywords_and_words(self, client):
        client.get("/analyze", params={"url": ARTICLE_URL})
        keywords = client.get("/diagnostic/keywords").json()
        words = client.get("/diagnostic/words").json()
        assert set(keywords) == {"total", "most_common", "least_common", "recent"}
        assert words["total"] > 0
        assert words["most_common"][0]["url_count"] == 1

    def test_clear(self, client):
        client.get("/analyze", params={"url": ARTICLE_URL})
        total_words = client.get("/diagnostic/words").json()["total"]
        body = client.delete("/diagnostic/keywords/clear").json()
        assert body["success"] is True
        assert body["words_deleted"] == total_words
        assert client.get("/diagnostic/words").json()["total"] == 0
