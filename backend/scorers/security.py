"""Security: HTTPS, response security headers and reverse-tabnabbing links (raw max 55)."""

import re

from models import ModuleResult, SecurityMetrics, SignalBundle
from scorers.normalize import rescale

MAX_RAW = 55

_SAFE_REL = re.compile(r"noopener|noreferrer", re.IGNORECASE)


def unsafe_target_blank_count(soup) -> int:
    """Links opening a new tab without rel=noopener/noreferrer."""
    return sum(
        1 for a in soup.select('a[target="_blank"]') if not _SAFE_REL.search(" ".join(a.get("rel") or []))
    )


def score_security(bundle: SignalBundle) -> ModuleResult:
    soup = bundle.document
    meta = bundle.response_meta

    csp = bool(meta.header("content-security-policy")) or soup.find(
        "meta", attrs={"http-equiv": re.compile(r"^content-security-policy$", re.IGNORECASE)}
    ) is not None
    hsts = bool(meta.header("strict-transport-security"))
    xfo = bool(meta.header("x-frame-options"))
    unsafe = unsafe_target_blank_count(soup)

    points = {
        "https_points": 10 if bundle.is_https else 0,
        "csp_points": 15 if csp else 0,
        "hsts_points": 10 if hsts else 0,
        "xfo_points": 10 if xfo else 0,
        "unsafe_target_points": 10 if unsafe == 0 else 5 if unsafe <= 3 else 0,
    }
    raw = sum(points.values())

    metrics: SecurityMetrics = {
        **points,
        "raw_score": raw,
        "https": bundle.is_https,
        "csp_present": csp,
        "hsts_present": hsts,
        "xfo_present": xfo,
        "unsafe_target_blank_count": unsafe,
    }
    return {"score": rescale(raw, MAX_RAW), "metrics": dict(metrics)}
