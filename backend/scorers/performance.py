"""
Performance: Core Web Vitals plus seven resource-hygiene sub-scores.

Timings come from a RealMetrics provider result when one is supplied;
otherwise LCP, TBT and CLS are proxied from HTML size, blocking scripts and
images without explicit dimensions.
"""

import re

from models import ModuleResult, PerformanceMetrics, RealMetrics, SignalBundle
from scorers.normalize import clamp_score, norm_higher_is_better, norm_lower_is_better

WEIGHTS = {
    "core_web_vitals": 0.25,
    "load_cost": 0.18,
    "network_efficiency": 0.12,
    "render_blocking": 0.12,
    "media_optimization": 0.10,
    "caching_cdn": 0.08,
    "fonts": 0.05,
    "progressive_enhancements": 0.05,
}
CWV_WEIGHTS = {"lcp": 0.50, "tbt": 0.30, "cls": 0.20}

NEUTRAL_PROTOCOL_SCORE = 70
DEFAULT_FONT_DISPLAY_SCORE = 80

_LARGE_ASSET = re.compile(r"\.(jpg|jpeg|png|gif|mp4|webm)$", re.IGNORECASE)
_SMALL_ASSET = re.compile(r"icon|logo|sprite|favicon|\.svg$")
_MAX_AGE = re.compile(r"max-age\s*=\s*(\d+)", re.IGNORECASE)


def heuristic_lcp(bundle: SignalBundle) -> float:
    return max(1.0, bundle.html_bytes / 100000)


def heuristic_tbt_ms(bundle: SignalBundle) -> float:
    return float(min(400, bundle.scripts.blocking * 40))


def heuristic_cls(bundle: SignalBundle) -> float:
    """Layout-shift proxy: share of images without width/height, scaled to 0.25."""
    images = bundle.images
    missing = sum(1 for img in images if not img.has_dimensions)
    return min(0.5, missing / max(1, len(images)) * 0.25)


def _timings(bundle: SignalBundle, real: RealMetrics | None):
    """(lcp s, tbt ms or None, cls, fcp s, ttfb s, source)."""
    if real is None:
        return heuristic_lcp(bundle), heuristic_tbt_ms(bundle), heuristic_cls(bundle), None, None, None

    lcp = real.lcp_seconds if real.lcp_seconds is not None else heuristic_lcp(bundle)
    cls = real.cls if real.cls is not None else heuristic_cls(bundle)
    tbt = real.tbt_seconds * 1000 if real.tbt_seconds is not None else None
    return lcp, tbt, cls, real.fcp_seconds, real.ttfb_seconds, real.source


def core_web_vitals_score(lcp: float, tbt_ms: float | None, cls: float) -> int:
    """Weighted LCP/TBT/CLS; TBT's weight is redistributed when it was not measured."""
    parts = {
        "lcp": norm_lower_is_better(lcp, 2.5, 4.0),
        "cls": norm_lower_is_better(cls, 0.1, 0.25),
    }
    if tbt_ms is not None:
        parts["tbt"] = norm_lower_is_better(tbt_ms, 0, 250)
    present = sum(CWV_WEIGHTS[k] for k in parts)
    return clamp_score(sum(CWV_WEIGHTS[k] * v for k, v in parts.items()) / present)


def score_performance(bundle: SignalBundle, real_metrics: RealMetrics | None = None) -> ModuleResult:
    soup = bundle.document
    meta = bundle.response_meta
    images = bundle.images

    lcp, tbt_ms, cls, fcp, real_ttfb, source = _timings(bundle, real_metrics)
    cwv = core_web_vitals_score(lcp, tbt_ms, cls)

    # --- Load cost ---
    page_weight_mb = round(bundle.html_bytes / (1024 * 1024), 2)
    requests_count = (
        bundle.scripts.total
        + bundle.stylesheets.total
        + len(images)
        + len(soup.find_all("iframe"))
        + 1
    )
    large_assets = sum(
        1
        for img in images
        if img.src and not _SMALL_ASSET.search(img.src.lower()) and _LARGE_ASSET.search(img.src)
    )
    load_cost = clamp_score(
        0.55 * norm_lower_is_better(page_weight_mb, 0.3, 3.0)
        + 0.30 * norm_lower_is_better(requests_count, 10, 120)
        + 0.15 * norm_lower_is_better(large_assets, 0, 8)
    )

    # --- Network efficiency ---
    hints = len(soup.select('link[rel="preconnect"], link[rel="dns-prefetch"], link[rel="preload"]'))
    ttfb_ms = meta.elapsed_ms
    network = clamp_score(
        0.4 * NEUTRAL_PROTOCOL_SCORE
        + 0.3 * clamp_score(min(hints, 3) / 3 * 100)
        + 0.3 * norm_lower_is_better(ttfb_ms, 50, 800)
    )

    # --- Render blocking ---
    critical_css = soup.find("style") is not None
    if tbt_ms is None:
        w_js, w_css = 0.3, 0.5
        tbt_for_render = min(600, bundle.scripts.blocking * 60)
    else:
        w_js, w_css = 0.5, 0.3
        tbt_for_render = tbt_ms
    render_blocking = clamp_score(
        w_js * norm_lower_is_better(tbt_for_render, 0, 500)
        + w_css * norm_lower_is_better(bundle.stylesheets.blocking, 3, 15)
        + 0.2 * (100 if critical_css else 0)
    )

    # --- Media ---
    with_srcset = len(soup.select("img[srcset], picture source[srcset]"))
    missing_srcset_ratio = (len(images) - with_srcset) / len(images) if images else 0.0
    missing_srcset_ratio = max(0.0, missing_srcset_ratio)
    missing_dims = sum(1 for img in images if not img.has_dimensions)
    autoplay_with_sound = sum(1 for v in soup.select("video[autoplay]") if not v.has_attr("muted"))
    media = clamp_score(
        0.6 * norm_lower_is_better(missing_srcset_ratio, 0, 0.8)
        + 0.2 * norm_lower_is_better(missing_dims, 0, max(4, len(images)))
        + 0.2 * clamp_score(100 - min(100, autoplay_with_sound * 50))
    )

    # --- Caching / CDN ---
    cache_control = meta.header("cache-control") or ""
    encoding = meta.header("content-encoding") or ""
    max_age = _MAX_AGE.search(cache_control)
    cache_ttl_days = int(max_age.group(1)) / 86400 if max_age else 0.0
    caching = clamp_score(
        0.5 * (100 if cache_control else 40)
        + 0.3 * (100 if meta.cdn_detected else 50)
        + 0.2 * norm_higher_is_better(cache_ttl_days, 0.1, 30)
    )

    # --- Fonts ---
    font_preload = bool(soup.select('link[rel="preload"][as="font"]'))
    fonts = clamp_score(0.6 * (100 if font_preload else 60) + 0.4 * DEFAULT_FONT_DISPLAY_SCORE)

    # --- Progressive enhancements ---
    service_worker = any("serviceworker" in (s.string or "").lower() for s in soup.find_all("script"))
    manifest = bool(soup.select('link[rel="manifest"]'))
    progressive = clamp_score(0.6 * (100 if service_worker else 0) + 0.4 * (100 if manifest else 0))

    subscores = {
        "core_web_vitals": cwv,
        "load_cost": load_cost,
        "network_efficiency": network,
        "render_blocking": render_blocking,
        "media_optimization": media,
        "caching_cdn": caching,
        "fonts": fonts,
        "progressive_enhancements": progressive,
    }
    score = clamp_score(sum(WEIGHTS[k] * v for k, v in subscores.items()))

    metrics: PerformanceMetrics = {
        "lcp_seconds": round(lcp, 2),
        "tbt_ms": tbt_ms,
        "cls": round(cls, 3),
        "fcp_seconds": fcp,
        "using_real_data": real_metrics is not None,
        "data_source": source or "heuristic",
        "real_ttfb": real_ttfb,
        "core_web_vitals_score": cwv,
        "total_page_weight_mb": page_weight_mb,
        "requests_count": requests_count,
        "large_asset_count": large_assets,
        "load_cost_score": load_cost,
        "preconnect_preload_count": hints,
        "ttfb_ms": ttfb_ms,
        "network_efficiency_score": network,
        "blocking_stylesheets_count": bundle.stylesheets.blocking,
        "blocking_scripts_count": bundle.scripts.blocking,
        "critical_css_present": critical_css,
        "render_blocking_score": render_blocking,
        "images_missing_srcset_ratio": round(missing_srcset_ratio, 2),
        "video_autoplay_with_sound_count": autoplay_with_sound,
        "media_optimization_score": media,
        "compression": encoding or None,
        "cache_control": cache_control or None,
        "cache_ttl_days": round(cache_ttl_days, 2),
        "cdn_detected": meta.cdn_detected,
        "caching_cdn_score": caching,
        "font_preload_present": font_preload,
        "fonts_score": fonts,
        "service_worker_present": service_worker,
        "manifest_present": manifest,
        "progressive_enhancements_score": progressive,
    }
    return {"score": score, "metrics": dict(metrics)}
