"""
Shared fixtures: synthetic pages, a temp sqlite DB, and fake network collaborators.
"""
import random
from datetime import datetime, timedelta, timezone

import pytest

import config
import database
import uniqueness
from analysis_cache import AnalysisCache
from analyzer import AnalysisServices
from models import ResponseMeta
from scraper import FetchedPage

ARTICLE_URL = "https://example.com/blog/garden-soil"
THIN_URL = "https://example.com/blog/short-note"

ARTICLE_TITLE = "How to Test Garden Soil Before Spring Planting"
ARTICLE_DESCRIPTION = (
    "A practical guide to testing garden soil at home, reading the results, "
    "and fixing pH and nutrient problems before spring planting."
)

SECTION_SENTENCES = [
    "Healthy garden soil holds water well and feeds the roots every season.",
    "I tested three home kits last spring and compared the results carefully.",
    "Compost improves structure, so clay beds drain faster after heavy rain.",
    "Most vegetables prefer a slightly acidic range between six and seven.",
    "Lime raises the reading slowly, so apply it several weeks before planting.",
    "Sulfur lowers alkaline soil, but the change takes a full growing season.",
    "Nitrogen feeds leafy growth while phosphorus supports strong flowering plants.",
    "A simple jar test shows how much sand, silt and clay you have.",
    "Record every reading in a notebook so you can track slow changes.",
    "Mulch keeps moisture steady and protects tiny seedlings from sudden heat.",
]

FREQUENCIES = {
    "garden": 40.0,
    "soil": 25.0,
    "compost": 3.0,
    "phosphorus": 0.8,
    "nitrogen": 1.5,
    "seedlings": 0.4,
    "mulch": 0.3,
}


def make_article_html(sections=15, published_days_ago=30, images=3, extra_head="", extra_body=""):
    """A well-formed blog article of roughly 120 words per section."""
    published = (datetime.now(timezone.utc) - timedelta(days=published_days_ago)).strftime("%Y-%m-%dT%H:%M:%SZ")
    body_sections = []
    for n in range(1, sections + 1):
        shift = n % len(SECTION_SENTENCES)
        rotated = SECTION_SENTENCES[shift:] + SECTION_SENTENCES[:shift]
        paragraph = f"Step {n} covers one job. " + " ".join(rotated)
        body_sections.append(f"<h2>Soil step {n}</h2>\n<p>{paragraph}</p>")
    image_tags = "\n".join(
        f'<img src="/img/soil-{n}.jpg" alt="Soil sample {n}" width="800" height="600" loading="lazy">'
        for n in range(1, images + 1)
    )
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{ARTICLE_TITLE}</title>
<meta name="description" content="{ARTICLE_DESCRIPTION}">
<link rel="canonical" href="{ARTICLE_URL}">
<meta property="og:title" content="{ARTICLE_TITLE}">
<meta property="og:type" content="article">
<meta name="twitter:card" content="summary">
<script type="application/ld+json">{{"@context": "https://schema.org", "@type": "BlogPosting", "datePublished": "{published}"}}</script>
{extra_head}
</head>
<body>
<nav><a href="/">Home</a> <a href="/blog">Blog</a> <a href="/about">About</a> <a href="/contact">Contact</a></nav>
<main>
<article>
<h1>{ARTICLE_TITLE}</h1>
<p class="byline">By Dana Reyes, <time datetime="{published}">last month</time></p>
{chr(10).join(body_sections)}
{image_tags}
</article>
</main>
{extra_body}
<footer><a href="/privacy-policy">Privacy policy</a> <a href="https://gardening.example.org/guide" target="_blank" rel="noopener">Soil guide</a></footer>
</body>
</html>"""


def make_thin_html(word_count=50):
    words = " ".join(["word"] * word_count)
    return f"""<!DOCTYPE html>
<html><head><title>Short note</title></head>
<body><p>{words}</p></body></html>"""


@pytest.fixture
def article_html():
    return make_article_html()


@pytest.fixture
def thin_html():
    return make_thin_html()


@pytest.fixture
def temp_db(tmp_path, monkeypatch):
    """Point the frequency stores at a fresh sqlite file."""
    db_path = tmp_path / "pagequality-test.db"
    monkeypatch.setattr(config, "DB_PATH", db_path)
    database.init_db()
    return db_path


@pytest.fixture
def inline_background(monkeypatch):
    """Run detached corpus writes synchronously so tests can observe them."""

    def _run_now(target, *args):
        target(*args)

    monkeypatch.setattr(uniqueness, "_spawn_background", _run_now)


@pytest.fixture
def fake_lookup():
    """Deterministic Datamuse stand-in; unknown words return 0."""
    calls = []

    def _lookup(word):
        calls.append(word)
        return FREQUENCIES.get(word, 0.0)

    _lookup.calls = calls
    return _lookup


@pytest.fixture
def fake_fetch():
    """Factory: fake_fetch({url: html}) -> fetch callable that records calls."""

    def _factory(pages, headers=None, elapsed_ms=120):
        calls = []

        def _fetch(url):
            calls.append(url)
            html = pages[url]
            meta = ResponseMeta(
                status=200,
                elapsed_ms=elapsed_ms,
                byte_size=len(html.encode("utf-8")),
                final_url=url,
                headers=dict(headers or {}),
            )
            return FetchedPage(url=url, html=html, response_meta=meta)

        _fetch.calls = calls
        return _fetch

    return _factory


@pytest.fixture
def make_services(fake_fetch, fake_lookup, temp_db, inline_background):
    """Factory for AnalysisServices wired to fakes only (no network)."""

    def _factory(pages, site_checks=None, llm_items=None, providers=None):
        return AnalysisServices(
            cache=AnalysisCache(600),
            fast_cache=AnalysisCache(600),
            fetch=fake_fetch(pages),
            lookup_frequency=fake_lookup,
            providers=list(providers or []),
            run_site_checks=(lambda bundle: site_checks) if site_checks is not None else None,
            enhance_recommendations=lambda payload: llm_items,
            rng=random.Random(7),
        )

    return _factory
