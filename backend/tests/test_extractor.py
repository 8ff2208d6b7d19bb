"""Tests for DOM extraction and the content gate."""
from extractor import check_content_gate, extract, is_blocking_script, json_ld_items, truncate_html
from models import ContentRejection, ResponseMeta

from conftest import ARTICLE_URL, THIN_URL, make_article_html


def _homepage_html(words=150, nav_links=11):
    nav = " ".join(f'<a href="/section-{n}">Section {n}</a>' for n in range(nav_links))
    text = " ".join(["content"] * words)
    return f"<html><body><nav>{nav}</nav><p>{text}</p></body></html>"


class TestExtract:
    def test_article_structure(self, article_html):
        bundle = extract(article_html, ARTICLE_URL)
        assert bundle.headings(1) == 1
        assert bundle.headings(2) == 15
        assert len(bundle.images) == 3
        assert all(img.has_dimensions and img.is_lazy for img in bundle.images)

    def test_links_are_resolved_and_classified(self, article_html):
        bundle = extract(article_html, ARTICLE_URL)
        internal = [link for link in bundle.links if link.is_internal]
        external = [link for link in bundle.links if not link.is_internal]
        assert len(internal) == 5
        assert internal[0].href == "https://example.com/"
        assert [link.href for link in external] == ["https://gardening.example.org/guide"]
        assert external[0].rel == "noopener"

    def test_page_signals(self, article_html):
        bundle = extract(article_html, ARTICLE_URL)
        signals = bundle.page_signals
        assert signals.blog_signals >= 4
        assert signals.published_at is not None
        assert "BlogPosting" in signals.structured_data_types
        assert 1500 <= signals.word_count <= 3000
        # Navigation and footer are excluded from the content text.
        assert signals.content_word_count < signals.word_count

    def test_response_meta_is_kept(self, article_html):
        meta = ResponseMeta(status=200, elapsed_ms=250, headers={"x-frame-options": "DENY"})
        bundle = extract(article_html, ARTICLE_URL, response_meta=meta)
        assert bundle.response_meta.header("X-Frame-Options") == "DENY"
        assert bundle.is_https
        assert bundle.hostname == "example.com"

    def test_hidden_text_is_ignored(self):
        html = '<html><body><p>visible words</p><div style="display:none">secret</div><script>var x;</script></body></html>'
        bundle = extract(html, ARTICLE_URL)
        assert bundle.body_text == "visible words"

    def test_malformed_html_does_not_raise(self):
        bundle = extract("<html><body><p>unclosed <b>tags", ARTICLE_URL)
        assert "unclosed" in bundle.body_text

    def test_fast_mode_caps_body_text(self, monkeypatch):
        import config

        monkeypatch.setattr(config, "MAX_BODY_CHARS_FAST", 20)
        bundle = extract(make_article_html(), ARTICLE_URL, fast=True)
        assert len(bundle.body_text) <= 20
        assert bundle.fast

    def test_extraction_is_repeatable(self, article_html):
        def _signals(bundle):
            return (
                dict(bundle.heading_counts),
                bundle.images,
                bundle.links,
                bundle.scripts,
                bundle.stylesheets,
                bundle.body_text,
                bundle.content_text,
                bundle.page_signals,
            )

        first = extract(article_html, ARTICLE_URL)
        assert _signals(extract(article_html, ARTICLE_URL)) == _signals(first)
        # Re-serialized markup yields the same signals, and the first parse is left untouched.
        assert _signals(extract(str(first.document), ARTICLE_URL)) == _signals(first)
        assert first.html == article_html


class TestHelpers:
    def test_truncate_html_respects_utf8_boundaries(self):
        assert truncate_html("ééé", 3) == "é"
        assert truncate_html("short", 100) == "short"

    def test_json_ld_items_skips_invalid_blocks(self):
        from bs4 import BeautifulSoup

        soup = BeautifulSoup(
            '<script type="application/ld+json">{not json</script>'
            '<script type="application/ld+json">{"@graph": [{"@type": "Article"}]}</script>',
            "html.parser",
        )
        items = json_ld_items(soup)
        assert {"@type": "Article"} in items

    def test_is_blocking_script(self):
        from bs4 import BeautifulSoup

        soup = BeautifulSoup(
            '<script src="a.js"></script><script src="b.js" defer></script><script>inline()</script>',
            "html.parser",
        )
        assert [is_blocking_script(t) for t in soup.find_all("script")] == [True, False, False]


class TestContentGate:
    def test_article_passes(self, article_html):
        assert check_content_gate(extract(article_html, ARTICLE_URL)) is None

    def test_thin_page_is_rejected(self, thin_html):
        rejection = check_content_gate(extract(thin_html, THIN_URL))
        assert isinstance(rejection, ContentRejection)
        assert rejection.word_count == 50
        assert rejection.minimum_required == 100
        body = rejection.to_dict()
        assert body["success"] is False
        assert body["suggestions"]

    def test_homepage_below_strict_minimum_is_rejected(self):
        rejection = check_content_gate(extract(_homepage_html(), "https://example.com/"))
        assert rejection is not None
        assert rejection.error == "Non-article page detected"
        assert rejection.minimum_required == 300

    def test_long_homepage_is_accepted(self):
        assert check_content_gate(extract(_homepage_html(words=400), "https://example.com/")) is None
