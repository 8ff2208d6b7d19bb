"""
Measured Core Web Vitals providers.

Each provider returns RealMetrics (seconds, CLS unitless) or None. Providers
never raise; the Performance scorer falls back to heuristics on None.
"""

import logging
from typing import Any

import requests

import config
from models import RealMetrics

logger = logging.getLogger(__name__)

PAGESPEED_ENDPOINT = "https://www.googleapis.com/pagespeedonline/v5/runPagespeed"

# Collected in-page after load: navigation timing, paint, LCP and layout-shift entries.
_BROWSER_METRICS_SCRIPT = """
() => new Promise((resolve) => {
  const out = { lcp: null, cls: 0, fcp: null, ttfb: null };
  const nav = performance.getEntriesByType('navigation')[0];
  if (nav) out.ttfb = nav.responseStart - nav.requestStart;
  const fcp = performance.getEntriesByName('first-contentful-paint')[0];
  if (fcp) out.fcp = fcp.startTime;
  const lcpObserver = new PerformanceObserver((list) => {
    const entries = list.getEntries();
    const last = entries[entries.length - 1];
    out.lcp = last.renderTime || last.loadTime || last.startTime;
  });
  lcpObserver.observe({ type: 'largest-contentful-paint', buffered: true });
  const clsObserver = new PerformanceObserver((list) => {
    for (const entry of list.getEntries()) {
      if (!entry.hadRecentInput) out.cls += entry.value;
    }
  });
  clsObserver.observe({ type: 'layout-shift', buffered: true });
  setTimeout(() => {
    lcpObserver.disconnect();
    clsObserver.disconnect();
    resolve(out);
  }, 2000);
})
"""


def _ms_to_seconds(value: Any) -> float | None:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number / 1000 if number > 0 else None


class MetricsProvider:
    """Base class. Subclasses implement measure(url)."""

    name = "base"

    def measure(self, url: str) -> RealMetrics | None:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class PageSpeedProvider(MetricsProvider):
    """Google PageSpeed Insights v5, mobile strategy, performance category."""

    name = "pagespeed"

    def __init__(self, api_key: str | None = None, timeout: float | None = None, strategy: str = "mobile"):
        self.api_key = config.GOOGLE_PAGESPEED_API_KEY if api_key is None else api_key
        self.timeout = config.PAGESPEED_TIMEOUT_SECONDS if timeout is None else timeout
        self.strategy = strategy

    def measure(self, url: str) -> RealMetrics | None:
        if not self.api_key:
            logger.debug("PageSpeed provider skipped: no API key configured")
            return None
        params = {"url": url, "key": self.api_key, "strategy": self.strategy, "category": "performance"}
        try:
            resp = requests.get(PAGESPEED_ENDPOINT, params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.warning("PageSpeed request failed for %s: %s", url, exc)
            return None
        if resp.status_code != 200:
            logger.warning("PageSpeed HTTP %s for %s", resp.status_code, url)
            return None
        try:
            payload = resp.json()
        except ValueError:
            logger.warning("PageSpeed returned invalid JSON for %s", url)
            return None
        return self.parse(payload)

    def parse(self, payload: dict) -> RealMetrics | None:
        audits = ((payload or {}).get("lighthouseResult") or {}).get("audits")
        if not audits:
            logger.warning("PageSpeed response had no audit data")
            return None

        def numeric(audit_id: str) -> Any:
            return (audits.get(audit_id) or {}).get("numericValue")

        cls = numeric("cumulative-layout-shift")
        return RealMetrics(
            source=self.name,
            lcp_seconds=_ms_to_seconds(numeric("largest-contentful-paint")),
            cls=float(cls) if isinstance(cls, (int, float)) else None,
            fcp_seconds=_ms_to_seconds(numeric("first-contentful-paint")),
            tbt_seconds=_ms_to_seconds(numeric("total-blocking-time")),
            ttfb_seconds=_ms_to_seconds(numeric("server-response-time")),
        )


class BrowserProvider(MetricsProvider):
    """Headless Chromium via playwright (optional `browser` extra)."""

    name = "browser"

    def __init__(self, timeout: float | None = None):
        self.timeout = config.BROWSER_TIMEOUT_SECONDS if timeout is None else timeout

    def measure(self, url: str) -> RealMetrics | None:
        try:
            from playwright.sync_api import sync_playwright
        except ImportError:
            logger.info("Browser provider unavailable: install with pip install '.[browser]'")
            return None

        timeout_ms = int(self.timeout * 1000)
        try:
            with sync_playwright() as p:
                browser = p.chromium.launch(headless=True, args=["--no-sandbox", "--disable-dev-shm-usage"])
                try:
                    page = browser.new_page(viewport={"width": 1920, "height": 1080})
                    page.goto(url, wait_until="networkidle", timeout=timeout_ms)
                    raw = page.evaluate(_BROWSER_METRICS_SCRIPT)
                finally:
                    browser.close()
        except Exception as exc:
            logger.warning("Browser metrics failed for %s: %s", url, exc)
            return None

        return RealMetrics(
            source=self.name,
            lcp_seconds=_ms_to_seconds(raw.get("lcp")),
            cls=float(raw.get("cls") or 0.0),
            fcp_seconds=_ms_to_seconds(raw.get("fcp")),
            tbt_seconds=None,
            ttfb_seconds=_ms_to_seconds(raw.get("ttfb")),
        )


def default_providers() -> list[MetricsProvider]:
    providers: list[MetricsProvider] = []
    if config.GOOGLE_PAGESPEED_API_KEY:
        providers.append(PageSpeedProvider())
    if config.BROWSER_METRICS_ENABLED:
        providers.append(BrowserProvider())
    return providers


def resolve_real_metrics(providers: list[MetricsProvider], url: str) -> RealMetrics | None:
    """First provider result with at least one timing, else None."""
    for provider in providers or []:
        try:
            metrics = provider.measure(url)
        except Exception as exc:
            logger.warning("Metrics provider %s raised: %s", provider.name, exc)
            continue
        if metrics is not None and (metrics.lcp_seconds is not None or metrics.cls is not None):
            logger.info("Using %s metrics for %s", provider.name, url)
            return metrics
    return None
