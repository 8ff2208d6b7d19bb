"""
Module scorers.

Public API: score_modules(bundle, uniqueness, real_metrics, modules) -> {name: ModuleResult}

Each scorer is a pure function of the SignalBundle (plus, for Performance,
optional measured metrics and, for Content/Trust, the uniqueness report) that
returns an integer score in [0, 100] and a flat metrics dict.
"""

MODULE_NAMES = (
    "performance",
    "accessibility",
    "seo",
    "content",
    "ux",
    "monetization",
    "trust",
    "security",
)
FAST_MODULE_NAMES = ("performance", "accessibility", "seo", "content")


def score_modules(bundle, uniqueness=None, real_metrics=None, modules=MODULE_NAMES) -> dict:
    """Run the named scorers in order and return their results keyed by module name."""
    from models import NEUTRAL_UNIQUENESS
    from scorers.accessibility import score_accessibility
    from scorers.content import score_content
    from scorers.monetization import score_monetization
    from scorers.performance import score_performance
    from scorers.security import score_security
    from scorers.seo import score_seo
    from scorers.trust import score_trust
    from scorers.ux import score_ux

    report = uniqueness if uniqueness is not None else NEUTRAL_UNIQUENESS
    runners = {
        "performance": lambda: score_performance(bundle, real_metrics),
        "accessibility": lambda: score_accessibility(bundle),
        "seo": lambda: score_seo(bundle),
        "content": lambda: score_content(bundle, report),
        "ux": lambda: score_ux(bundle),
        "monetization": lambda: score_monetization(bundle),
        "trust": lambda: score_trust(bundle, report),
        "security": lambda: score_security(bundle),
    }
    unknown = [name for name in modules if name not in runners]
    if unknown:
        raise ValueError(f"Unknown scoring modules: {', '.join(unknown)}")
    return {name: runners[name]() for name in modules}
