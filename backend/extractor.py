"""DOM signal extractor: parse fetched HTML once into an immutable SignalBundle.

Also hosts the two-tier content gate that rejects thin or landing-page-like
documents before any scoring or uniqueness lookups run.
"""

import copy
import json
import logging
import re
from types import MappingProxyType
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup

import config
from models import (
    ContentRejection,
    ImageInfo,
    LinkInfo,
    PageSignals,
    ResourceCounts,
    ResponseMeta,
    SignalBundle,
)

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")
_BLOG_PATH = re.compile(r"blog|post|article|news|stories", re.IGNORECASE)
_ARTICLE_TYPE = re.compile(r"Article|BlogPosting", re.IGNORECASE)

HIDDEN_SELECTORS = 'script, style, noscript, iframe, [style*="display: none"], [style*="display:none"], [hidden]'
BOILERPLATE_SELECTORS = (
    'nav, header, footer, aside, [role="navigation"], [role="menu"], '
    "form, input, button, select, textarea, label, script, style, noscript"
)

INSUFFICIENT_CONTENT_SUGGESTIONS = (
    "Try analyzing a blog post or article page instead of the homepage",
    "Look for pages with substantial text content (guides, tutorials, documentation)",
    "Avoid analyzing search engines, app launchers, or minimal landing pages",
)
NON_ARTICLE_SUGGESTIONS = (
    "Open a specific blog post or article on the blog",
    "Avoid homepages or search portals (e.g., google.com)",
    "Use URLs that include /blog/ or /post/ where possible",
)


def truncate_html(html: str, max_bytes: int) -> str:
    encoded = (html or "").encode("utf-8")
    if len(encoded) <= max_bytes:
        return html or ""
    return encoded[:max_bytes].decode("utf-8", errors="ignore")


def normalize_whitespace(text: str) -> str:
    return _WHITESPACE.sub(" ", text or "").strip()


def _visible_text(root, remove_selector: str, max_chars: int) -> str:
    clone = copy.copy(root)
    for tag in clone.select(remove_selector):
        tag.decompose()
    text = clone.get_text(" ")
    if len(text) > max_chars:
        text = text[:max_chars]
    return normalize_whitespace(text)


def json_ld_items(soup: BeautifulSoup) -> list[dict]:
    """Flatten every parseable ld+json block (lists and @graph included)."""
    items: list[dict] = []
    for script_tag in soup.find_all("script", attrs={"type": "application/ld+json"}):
        try:
            data = json.loads(script_tag.string or script_tag.get_text() or "")
        except ValueError:
            continue
        stack = data if isinstance(data, list) else [data]
        for item in stack:
            if not isinstance(item, dict):
                continue
            items.append(item)
            graph = item.get("@graph")
            if isinstance(graph, list):
                items.extend(g for g in graph if isinstance(g, dict))
    return items


def _ld_types(item: dict) -> list[str]:
    value = item.get("@type", "")
    if isinstance(value, list):
        return [str(v) for v in value if v]
    return [str(value)] if value else []


def _meta_content(soup: BeautifulSoup, **attrs) -> str:
    tag = soup.find("meta", attrs=attrs)
    if tag and tag.get("content"):
        return tag["content"].strip()
    return ""


def _published_dates(soup: BeautifulSoup, ld_items: list[dict]) -> tuple[str | None, str | None]:
    published = None
    updated = None
    for item in ld_items:
        if any(_ARTICLE_TYPE.search(t) for t in _ld_types(item)):
            modified = item.get("dateModified")
            created = item.get("datePublished")
            if modified or created:
                published = str(modified or created)
                updated = str(modified) if modified else None
                break

    if not published:
        published = (
            _meta_content(soup, property="article:published_time")
            or _meta_content(soup, name="date")
            or _meta_content(soup, property="og:updated_time")
            or None
        )
    if not updated:
        updated = _meta_content(soup, property="article:modified_time") or None
    return published, updated


def _count_blog_signals(soup: BeautifulSoup, path: str, ld_items: list[dict]) -> int:
    has_article_tag = soup.find("article") is not None
    has_time = bool(
        soup.select('time[datetime], meta[property="article:published_time"], [itemprop="datePublished"]')
    )
    has_byline = bool(soup.select('.byline, .author, [itemprop="author"]'))
    has_og_article = _meta_content(soup, property="og:type").lower() == "article"
    has_ld_article = any(_ARTICLE_TYPE.search(",".join(_ld_types(item))) for item in ld_items)
    blog_path = bool(_BLOG_PATH.search(path))
    return sum([has_article_tag, has_time, has_byline, has_og_article, has_ld_article, blog_path])


def _count_non_blog_signals(soup: BeautifulSoup, path: str) -> int:
    is_homepage = path in ("", "/")
    has_search_input = bool(soup.select('input[type="search"], input[name="q"], input[aria-label*="search" i]'))
    has_search_form = False
    for form in soup.find_all("form"):
        action = (form.get("action") or "").lower()
        if re.search(r"search|query|find", action) or "search" in form.get_text(" ").lower():
            has_search_form = True
            break
    many_nav_links = len(soup.select("nav a")) > 10
    many_sections = len(soup.find_all("section")) > 3
    return sum([is_homepage, has_search_input or has_search_form, many_nav_links, many_sections])


def _images(soup: BeautifulSoup) -> tuple[ImageInfo, ...]:
    out = []
    for img in soup.find_all("img"):
        out.append(
            ImageInfo(
                src=(img.get("src") or "").strip(),
                alt=img.get("alt"),
                has_dimensions=bool(img.get("width")) and bool(img.get("height")),
                is_lazy=(img.get("loading") or "").lower() == "lazy",
                has_srcset=bool(img.get("srcset")),
                css_class=" ".join(img.get("class") or []),
                style=img.get("style") or "",
            )
        )
    return tuple(out)


def _links(soup: BeautifulSoup, base_url: str, hostname: str) -> tuple[LinkInfo, ...]:
    out = []
    for a in soup.find_all("a", href=True):
        raw = (a["href"] or "").strip()
        rel = a.get("rel") or []
        try:
            resolved = urljoin(base_url, raw)
            link_host = (urlparse(resolved).hostname or "").lower()
        except ValueError:
            resolved, link_host = raw, ""
        out.append(
            LinkInfo(
                href=resolved,
                is_internal=link_host == hostname,
                anchor_text=normalize_whitespace(a.get_text(" ")),
                raw_href=raw,
                rel=" ".join(rel) if isinstance(rel, list) else rel,
                target=a.get("target") or "",
            )
        )
    return tuple(out)


def is_blocking_script(tag) -> bool:
    if not tag.get("src"):
        return False
    if tag.has_attr("defer") or tag.has_attr("async"):
        return False
    return (tag.get("type") or "").lower() != "module"


def is_blocking_stylesheet(tag) -> bool:
    if tag.has_attr("disabled"):
        return False
    media = (tag.get("media") or "").lower().strip()
    if not media:
        return True
    return media in ("all", "screen")


def _scripts(soup: BeautifulSoup) -> ResourceCounts:
    tags = soup.select("script[src]")
    blocking = sum(1 for t in tags if is_blocking_script(t))
    return ResourceCounts(blocking=blocking, non_blocking=len(tags) - blocking)


def _stylesheets(soup: BeautifulSoup) -> ResourceCounts:
    total = len(soup.select('link[rel="stylesheet"]'))
    blocking = sum(1 for t in soup.select('head link[rel="stylesheet"]') if is_blocking_stylesheet(t))
    return ResourceCounts(blocking=blocking, non_blocking=total - blocking)


def extract(
    html: str,
    base_url: str,
    fast: bool = False,
    response_meta: ResponseMeta | None = None,
) -> SignalBundle:
    """
    Parse `html` fetched from `base_url` into a SignalBundle.
    Never raises on malformed markup; worst case is an empty bundle.
    """
    html = truncate_html(html, config.MAX_HTML_BYTES)
    max_chars = config.MAX_BODY_CHARS_FAST if fast else config.MAX_BODY_CHARS_FULL

    try:
        soup = BeautifulSoup(html, "html.parser")
    except Exception:
        logger.warning("HTML parse failed for %s; continuing with an empty document", base_url)
        soup = BeautifulSoup("", "html.parser")

    parsed = urlparse(base_url)
    hostname = (parsed.hostname or "").lower()
    path = parsed.path or "/"
    root = soup.body or soup

    # --- Text ---
    body_text = _visible_text(root, HIDDEN_SELECTORS, max_chars)
    content_text = _visible_text(root, BOILERPLATE_SELECTORS, max_chars)

    # --- Page classification ---
    ld_items = json_ld_items(soup)
    published_at, updated_at = _published_dates(soup, ld_items)
    rss_present = bool(
        soup.select('link[rel="alternate"][type*="rss"], link[rel="alternate"][type*="atom"]')
    )
    ld_types = tuple(dict.fromkeys(t for item in ld_items for t in _ld_types(item)))

    page_signals = PageSignals(
        blog_signals=_count_blog_signals(soup, path, ld_items),
        non_blog_signals=_count_non_blog_signals(soup, path),
        word_count=len(body_text.split()),
        content_word_count=len(content_text.split()),
        published_at=published_at,
        updated_at=updated_at,
        rss_present=rss_present,
        structured_data_types=ld_types[:10],
    )

    return SignalBundle(
        url=base_url,
        html=html,
        document=soup,
        heading_counts=MappingProxyType({level: len(soup.find_all(f"h{level}")) for level in range(1, 7)}),
        images=_images(soup),
        links=_links(soup, base_url, hostname),
        scripts=_scripts(soup),
        stylesheets=_stylesheets(soup),
        body_text=body_text,
        content_text=content_text,
        response_meta=response_meta or ResponseMeta(byte_size=len(html.encode("utf-8")), final_url=base_url),
        page_signals=page_signals,
        fast=fast,
    )


def check_content_gate(
    bundle: SignalBundle,
    min_words: int | None = None,
    strict_min_words: int | None = None,
) -> ContentRejection | None:
    """Return a rejection when the page is too thin to score, else None."""
    min_words = config.MIN_CONTENT_WORDS if min_words is None else min_words
    strict_min_words = config.STRICT_NON_ARTICLE_MIN_WORDS if strict_min_words is None else strict_min_words
    signals = bundle.page_signals
    words = signals.content_word_count

    if words < min_words:
        logger.info("Rejecting %s: %d content words (minimum %d)", bundle.url, words, min_words)
        return ContentRejection(
            error="Insufficient content for analysis",
            message=(
                f"This page has only {words} content words. We need at least {min_words} words "
                "to provide a meaningful analysis. This might be a homepage, search engine, or "
                "landing page without substantial blog content."
            ),
            word_count=words,
            minimum_required=min_words,
            suggestions=INSUFFICIENT_CONTENT_SUGGESTIONS,
        )

    if signals.non_blog_signals >= 2 and signals.blog_signals < 2 and words < strict_min_words:
        logger.info(
            "Rejecting %s as non-article (non_blog=%d, blog=%d, words=%d)",
            bundle.url,
            signals.non_blog_signals,
            signals.blog_signals,
            words,
        )
        return ContentRejection(
            error="Non-article page detected",
            message=(
                "This appears to be a homepage or search/landing page rather than a blog/article. "
                "For meaningful analysis, please provide an article URL with substantial text "
                f"content (at least {strict_min_words} content words)."
            ),
            word_count=words,
            minimum_required=strict_min_words,
            suggestions=NON_ARTICLE_SUGGESTIONS,
        )

    return None
