"""
Analysis orchestration.

analyze() validates the URL, serves repeats from the TTL cache, fetches and
extracts the page, applies the content gate, then fans out the slow lookups
(uniqueness, measured metrics, site probes) on a thread pool while the
self-contained scorers run. The result is either an AnalysisPayload dict or a
ContentRejection.
"""

import logging
import random
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable

import config
import llm_service
import scraper
from aggregator import FAST_WEIGHTS, WEIGHTS, aggregate, weights_sentence
from analysis_cache import AnalysisCache
from extractor import check_content_gate, extract
from metrics_providers import MetricsProvider, default_providers, resolve_real_metrics
from models import (
    NEUTRAL_UNIQUENESS,
    AnalysisPayload,
    ContentRejection,
    ModuleResult,
    Recommendation,
    SignalBundle,
    SiteChecks,
)
from recommendations import build_inputs, dedupe_and_rank, generate_recommendations
from scorers import FAST_MODULE_NAMES, MODULE_NAMES, score_modules
from uniqueness import FrequencyLookup, build_uniqueness_report, lookup_web_frequency

logger = logging.getLogger(__name__)

SLOW_ANALYSIS_MS = 30000
_INDEPENDENT_MODULES = ("accessibility", "seo", "ux", "monetization", "security")
_SOURCE_LABELS = {
    "pagespeed": "measured Core Web Vitals from PageSpeed Insights",
    "browser": "measured Core Web Vitals from a headless browser",
    "heuristic": "HTML heuristics (no measured Core Web Vitals available)",
}


@dataclass
class AnalysisServices:
    """Collaborators injected into the analyzer; tests swap in fakes."""

    cache: AnalysisCache = field(default_factory=AnalysisCache)
    fast_cache: AnalysisCache = field(default_factory=AnalysisCache)
    fetch: Callable[[str], scraper.FetchedPage] = scraper.fetch_page
    lookup_frequency: FrequencyLookup = lookup_web_frequency
    providers: list[MetricsProvider] = field(default_factory=list)
    run_site_checks: Callable[[SignalBundle], SiteChecks] | None = scraper.run_site_checks
    enhance_recommendations: Callable[[AnalysisPayload], list[Recommendation] | None] = (
        llm_service.enhance_recommendations
    )
    rng: random.Random | None = None


def default_services() -> AnalysisServices:
    return AnalysisServices(
        cache=AnalysisCache(config.ANALYSIS_CACHE_TTL_SECONDS),
        fast_cache=AnalysisCache(config.ANALYSIS_CACHE_TTL_SECONDS),
        providers=default_providers(),
    )


_default_services: AnalysisServices | None = None
_default_lock = threading.Lock()


def get_default_services() -> AnalysisServices:
    global _default_services
    with _default_lock:
        if _default_services is None:
            _default_services = default_services()
        return _default_services


def set_default_services(services: AnalysisServices | None) -> None:
    global _default_services
    with _default_lock:
        _default_services = services


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


def _load_bundle(url: str, fast: bool, services: AnalysisServices) -> SignalBundle:
    page = services.fetch(url)
    return extract(page.html, page.url, fast=fast, response_meta=page.response_meta)


def _merge_llm(payload: AnalysisPayload, services: AnalysisServices) -> list[Recommendation]:
    recs = payload["recommendations"]
    extra = services.enhance_recommendations(payload)
    if not extra:
        return recs
    logger.info("Merging %d LLM recommendations for %s", len(extra), payload.get("url"))
    return dedupe_and_rank(list(recs) + list(extra))


def build_explainability(
    weights: dict[str, float],
    performance_source: str,
    fast: bool,
    site_checks: SiteChecks | None,
    elapsed_ms: int,
) -> list[str]:
    lines = [weights_sentence(weights)]
    lines.append(f"Performance is based on {_SOURCE_LABELS.get(performance_source, performance_source)}.")
    if fast:
        lines.append(
            "Fast analysis scores Performance, Accessibility, SEO and Content only; "
            "web uniqueness lookups and site probes are skipped."
        )
    broken = (site_checks or {}).get("broken_links") or {}
    if broken.get("checked"):
        lines.append(f"Broken external link rate (sample {broken['checked']}): {broken['rate']:g}%")
    if elapsed_ms > SLOW_ANALYSIS_MS:
        lines.append(f"Analysis exceeded 30s ({elapsed_ms}ms); some deep checks skipped.")
    return lines


def _ordered(modules: dict[str, ModuleResult], names: tuple[str, ...]) -> dict[str, ModuleResult]:
    return {name: modules[name] for name in names if name in modules}


# ---------------------------------------------------------------------------
# Pipelines
# ---------------------------------------------------------------------------


def _run_full(url: str, llm: bool, services: AnalysisServices, started: float) -> AnalysisPayload | ContentRejection:
    fetch_started = time.perf_counter()
    bundle = _load_bundle(url, False, services)
    fetch_ms = _elapsed_ms(fetch_started)

    rejection = check_content_gate(bundle)
    if rejection is not None:
        return rejection

    text = bundle.content_text or bundle.body_text
    with ThreadPoolExecutor(max_workers=3) as pool:
        uniqueness_future = pool.submit(build_uniqueness_report, text, services.lookup_frequency, services.rng)
        metrics_future = pool.submit(resolve_real_metrics, services.providers, bundle.url)
        site_future = pool.submit(services.run_site_checks, bundle) if services.run_site_checks else None

        modules = score_modules(bundle, modules=_INDEPENDENT_MODULES)

        real_metrics = metrics_future.result()
        modules.update(score_modules(bundle, real_metrics=real_metrics, modules=("performance",)))

        report = uniqueness_future.result()
        modules.update(score_modules(bundle, uniqueness=report, modules=("content", "trust")))

        site_checks = site_future.result() if site_future is not None else None

    modules = _ordered(modules, MODULE_NAMES)
    performance_source = real_metrics.source if real_metrics is not None else "heuristic"
    inputs = build_inputs(bundle, modules, report, site_checks)

    payload: AnalysisPayload = {
        "success": True,
        "url": url,
        "final_score": aggregate(modules, WEIGHTS),
        "modules": modules,
        "recommendations": generate_recommendations(inputs),
        "phase": "full",
        "cached": False,
        "performance_source": performance_source,
        "uniqueness": report.to_dict(),
        "top_keywords": list(report.top_keywords[:10]),
    }
    if site_checks is not None:
        payload["site_checks"] = site_checks
    if llm:
        payload["recommendations"] = _merge_llm(payload, services)

    elapsed = _elapsed_ms(started)
    payload["explainability"] = build_explainability(WEIGHTS, performance_source, False, site_checks, elapsed)
    payload["generated_ms"] = elapsed
    if config.is_development():
        payload["debug"] = {
            "fetch_ms": fetch_ms,
            "status": bundle.response_meta.status,
            "html_bytes": bundle.html_bytes,
            "content_words": bundle.content_word_count,
            "final_url": bundle.response_meta.final_url or bundle.url,
        }
    return payload


def _run_fast(url: str, llm: bool, services: AnalysisServices, started: float) -> AnalysisPayload | ContentRejection:
    bundle = _load_bundle(url, True, services)
    rejection = check_content_gate(bundle)
    if rejection is not None:
        return rejection

    modules = score_modules(bundle, uniqueness=NEUTRAL_UNIQUENESS, modules=FAST_MODULE_NAMES)
    inputs = build_inputs(bundle, modules, NEUTRAL_UNIQUENESS, None)

    payload: AnalysisPayload = {
        "success": True,
        "url": url,
        "final_score": aggregate(modules, FAST_WEIGHTS),
        "modules": modules,
        "recommendations": generate_recommendations(inputs),
        "phase": "fast",
        "cached": False,
        "performance_source": "heuristic",
    }
    if llm:
        payload["recommendations"] = _merge_llm(payload, services)

    elapsed = _elapsed_ms(started)
    payload["explainability"] = build_explainability(FAST_WEIGHTS, "heuristic", True, None, elapsed)
    payload["generated_ms"] = elapsed
    return payload


def analyze(
    url: str | None,
    fast: bool = False,
    llm: bool = False,
    services: AnalysisServices | None = None,
) -> AnalysisPayload | ContentRejection:
    """
    Score one page.

    Raises InvalidUrlError for missing or blocked URLs and PageFetchError when
    the page cannot be fetched. Thin pages come back as a ContentRejection.
    Successful payloads are cached per (url, fast, llm).
    """
    services = services or get_default_services()
    started = time.perf_counter()
    url = scraper.validate_url(url)

    cache = services.fast_cache if fast else services.cache
    hit = cache.get(url, fast, llm)
    if hit is not None:
        logger.info("Analysis cache hit for %s (fast=%s, llm=%s)", url, fast, llm)
        return hit
    logger.info("Analysis cache miss for %s (fast=%s, llm=%s)", url, fast, llm)

    runner = _run_fast if fast else _run_full
    result = runner(url, llm, services, started)
    if isinstance(result, ContentRejection):
        return result

    cache.set(url, fast, llm, result)
    logger.info("Analyzed %s: score %s in %d ms", url, result["final_score"], result["generated_ms"])
    return result


def analyze_fast(
    url: str | None,
    fast: bool = True,
    llm: bool = False,
    services: AnalysisServices | None = None,
) -> AnalysisPayload | ContentRejection:
    """Reduced four-module analysis; with fast=False this is the full analysis."""
    return analyze(url, fast=fast, llm=llm, services=services)
